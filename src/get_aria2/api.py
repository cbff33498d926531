"""
Public entry point of get-aria2.

    result = await get_binary("linux", "x64")
    with open("aria2c", "wb") as f:
        async for chunk in result.binary_stream:
            f.write(chunk)
"""

from typing import Optional

from get_aria2.download.async_client import AsyncGitHubClient
from get_aria2.download.extractor import extract_binary
from get_aria2.download.interfaces import ExtractionResult
from get_aria2.download.resolver import resolve_release, validate_target
from get_aria2.env_utils import (
    detect_arch,
    detect_platform,
    get_github_token,
    get_proxy_url,
)
from get_aria2.log_utils import logger


async def get_binary(
    platform: Optional[str] = None,
    arch: Optional[str] = None,
    *,
    proxy: Optional[str] = None,
    github_token: Optional[str] = None,
    client: Optional[AsyncGitHubClient] = None,
) -> ExtractionResult:
    """
    Resolve the latest aria2 build for a target and stream its aria2c binary.

    Returns as soon as the binary has been located inside the release archive;
    its bytes keep arriving through ``result.binary_stream``. The caller must
    consume or close that stream.

    Parameters:
        platform (Optional[str]): win32, darwin, linux or android; defaults to the running system.
        arch (Optional[str]): x32, x64 or arm; defaults to the running machine.
        proxy (Optional[str]): HTTP proxy URL; defaults to the proxy environment variables.
        github_token (Optional[str]): GitHub token; defaults to the GITHUB_TOKEN environment variable.
        client (Optional[AsyncGitHubClient]): Client to use instead of a private one.
            A client passed in is not closed; a private one is closed once the archive
            has been read.

    Returns:
        ExtractionResult: The binary stream and the aria2 version.

    Raises:
        ConfigurationError: If the platform/arch pair is unsupported.
        AssetNotFoundError: If no release provides a build for the target.
        UnsupportedArchiveError: If the release asset is not a supported archive.
        DownloadError: If listing releases or downloading the archive fails.
        ArchiveError: If the archive is malformed or holds no aria2c binary.
    """
    platform = platform or detect_platform()
    arch = arch or detect_arch()
    validate_target(platform, arch)

    owns_client = client is None
    if client is None:
        client = AsyncGitHubClient(
            github_token=github_token or get_github_token(),
            proxy=proxy or get_proxy_url(),
        )
        if client.proxy:
            logger.debug(f"Routing requests through proxy {client.proxy}")

    try:
        target = await resolve_release(client, platform, arch)
        return await extract_binary(
            client.iter_content(target.url),
            target.archive_format,
            target.version,
            on_close=client.close if owns_client else None,
        )
    except BaseException:
        if owns_client:
            await client.close()
        raise
