"""
Async HTTP Client for get-aria2

This module provides asynchronous HTTP operations using aiohttp:
- Listing the releases of a GitHub repository
- Streaming a release asset chunk by chunk, without touching the disk
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, List, Optional

import aiohttp
from aiohttp import ClientResponse, ClientSession, ClientTimeout, TCPConnector

from get_aria2.constants import (
    DEFAULT_CHUNK_SIZE,
    GITHUB_API_ACCEPT,
    GITHUB_API_BASE,
    GITHUB_MAX_PER_PAGE,
    HTTP_STATUS_ERROR_THRESHOLD,
    HTTP_STATUS_FORBIDDEN,
)
from get_aria2.exceptions import HTTPError, NetworkError, RateLimitError
from get_aria2.log_utils import logger

from .interfaces import Asset, Release


class AsyncGitHubClient:
    """
    Asynchronous GitHub client using aiohttp.

    The proxy, when given, is applied to every request the client makes. No
    total timeout is applied by default because an archive download may
    legitimately outlive any fixed deadline.

    Example:
        async with AsyncGitHubClient(proxy="http://proxy:3128") as client:
            releases = await client.get_releases("aria2/aria2")
            async for chunk in client.iter_content(releases[0].assets[0].download_url):
                ...
    """

    def __init__(
        self,
        github_token: Optional[str] = None,
        proxy: Optional[str] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """
        Initialize the async GitHub client.

        Parameters:
            github_token (Optional[str]): GitHub personal access token for authentication.
            proxy (Optional[str]): URL of an HTTP proxy to route requests through.
            timeout (Optional[float]): Total per-request timeout in seconds, or None for no limit.
        """
        self.github_token = github_token
        self.proxy = proxy
        self.timeout = ClientTimeout(total=timeout)
        self._session: Optional[ClientSession] = None
        self._closed: bool = False

        self._rate_limit_remaining: Optional[int] = None
        self._rate_limit_reset: Optional[datetime] = None

    async def __aenter__(self) -> "AsyncGitHubClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> ClientSession:
        """
        Ensure a session exists, creating one if needed.

        Returns:
            ClientSession: The active aiohttp session.
        """
        if self._session is None or self._session.closed:
            self._session = ClientSession(
                connector=TCPConnector(enable_cleanup_closed=True),
                timeout=self.timeout,
                headers=self._get_default_headers(),
            )
            self._closed = False
        return self._session

    def _get_default_headers(self) -> Dict[str, str]:
        """
        Build default HTTP headers for GitHub requests.

        Includes the GitHub v3 Accept header and the package User-Agent. If the
        client was configured with a GitHub token, includes an Authorization header.
        """
        from get_aria2.utils import get_user_agent

        headers = {
            "Accept": GITHUB_API_ACCEPT,
            "User-Agent": get_user_agent(),
        }
        if self.github_token:
            headers["Authorization"] = f"token {self.github_token}"
        return headers

    async def close(self) -> None:
        """Close the client session and release resources."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    async def get_releases(
        self,
        repository: str,
        per_page: int = GITHUB_MAX_PER_PAGE,
    ) -> List[Release]:
        """
        Fetch the first page of a repository's releases, newest first.

        Parameters:
            repository (str): Repository in ``owner/name`` form.
            per_page (int): Page size requested from the API.

        Returns:
            List[Release]: Parsed releases in listing order. Malformed entries are skipped.

        Raises:
            RateLimitError: If the API rate limit is exhausted.
            HTTPError: If the API answers with any other error status.
            NetworkError: If the request fails at the transport level.
        """
        session = await self._ensure_session()
        url = f"{GITHUB_API_BASE}/{repository}/releases"

        try:
            async with session.get(
                url, params={"per_page": per_page}, proxy=self.proxy
            ) as response:
                self._update_rate_limits(response)
                self._raise_for_status(response, url)
                data = await response.json()
        except aiohttp.ClientError as e:
            logger.error(f"Network error fetching releases from {url}: {e}")
            raise NetworkError(
                "Network error while listing releases", url=url, details=str(e)
            ) from e
        except asyncio.TimeoutError as e:
            logger.error(f"Timed out fetching releases from {url}")
            raise NetworkError(
                "Timed out while listing releases", url=url
            ) from e

        if not isinstance(data, list):
            logger.warning(
                "Unexpected releases payload type from %s: expected list, got %s",
                url,
                type(data).__name__,
            )
            return []

        releases = [
            release
            for release in (self._parse_release(item, url) for item in data)
            if release is not None
        ]
        logger.debug(f"Fetched {len(releases)} releases from {url}")
        return releases

    @staticmethod
    def _parse_release(item: Any, url: str) -> Optional[Release]:
        if not isinstance(item, dict):
            logger.warning(
                "Skipping malformed release entry from %s: expected dict, got %s",
                url,
                type(item).__name__,
            )
            return None

        tag_name = item.get("tag_name") or ""
        if not isinstance(tag_name, str):
            tag_name = str(tag_name)

        assets_data = item.get("assets", [])
        if not isinstance(assets_data, list):
            logger.warning(
                "Skipping assets for release %s due to invalid assets type %s",
                tag_name or "<unknown>",
                type(assets_data).__name__,
            )
            assets_data = []

        assets: List[Asset] = []
        for asset in assets_data:
            if not isinstance(asset, dict):
                continue
            name = asset.get("name")
            download_url = asset.get("browser_download_url")
            if not isinstance(name, str) or not isinstance(download_url, str):
                logger.debug(
                    "Skipping asset without name or download URL in release %s",
                    tag_name or "<unknown>",
                )
                continue
            try:
                size = int(asset.get("size", 0))
            except (TypeError, ValueError):
                size = 0
            assets.append(Asset(name=name, download_url=download_url, size=size))

        return Release(
            tag_name=tag_name,
            assets=assets,
        )

    async def iter_content(
        self, url: str, chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> AsyncIterator[bytes]:
        """
        Stream the body of `url` as it arrives.

        The request is sent when iteration starts and the response is released
        when iteration ends, fails or the generator is closed.

        Raises:
            HTTPError: If the server answers with an error status.
            NetworkError: If the connection fails before or during the transfer.
        """
        session = await self._ensure_session()
        try:
            async with session.get(
                url,
                headers={"Accept": "application/octet-stream"},
                proxy=self.proxy,
            ) as response:
                self._raise_for_status(response, url)
                logger.debug(
                    "Streaming %s (%s bytes)",
                    url,
                    response.headers.get("Content-Length", "unknown"),
                )
                async for chunk in response.content.iter_chunked(chunk_size):
                    yield chunk
        except aiohttp.ClientError as e:
            logger.error(f"Download failed for {url}: {e}")
            raise NetworkError("Download failed", url=url, details=str(e)) from e
        except asyncio.TimeoutError as e:
            logger.error(f"Download timed out for {url}")
            raise NetworkError("Download timed out", url=url) from e

    def _raise_for_status(self, response: ClientResponse, url: str) -> None:
        status = response.status
        if status < HTTP_STATUS_ERROR_THRESHOLD:
            return

        if status == HTTP_STATUS_FORBIDDEN and self._rate_limit_remaining == 0:
            reset_time = self._rate_limit_reset
            raise RateLimitError(
                f"GitHub API rate limit exceeded. Resets at {reset_time}",
                reset_time=int(reset_time.timestamp()) if reset_time else None,
                url=url,
            )

        logger.error(f"HTTP error {status} from {url}")
        raise HTTPError(
            f"HTTP error {status}",
            status_code=status,
            url=url,
            details=getattr(response, "reason", None),
        )

    def _update_rate_limits(self, response: ClientResponse) -> None:
        """
        Record the GitHub rate-limit headers of an API response.

        Unparseable header values are ignored.
        """
        remaining = response.headers.get("X-RateLimit-Remaining")
        reset = response.headers.get("X-RateLimit-Reset")

        if remaining:
            try:
                self._rate_limit_remaining = int(remaining)
            except (ValueError, TypeError):
                pass

        if reset:
            try:
                self._rate_limit_reset = datetime.fromtimestamp(
                    int(reset), tz=timezone.utc
                )
            except (ValueError, TypeError, OSError):
                pass

        if self._rate_limit_remaining is not None:
            logger.debug(
                "GitHub API rate limit remaining: %s", self._rate_limit_remaining
            )
