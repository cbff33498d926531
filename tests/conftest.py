from unittest.mock import AsyncMock

import pytest

from get_aria2.constants import (
    GITHUB_TOKEN_ENV_VAR,
    LOG_DIR_ENV_VAR,
    LOG_LEVEL_ENV_VAR,
    PROXY_ENV_VARS,
)

_ASYNC_NETWORK_BLOCK_MSG = (
    "Async network access is blocked during tests. Mock aiohttp.ClientSession."
)


async def _async_block_network(*_args, **_kwargs):
    """
    Prevent async network calls during tests by raising a RuntimeError.

    Raises:
        RuntimeError: `_ASYNC_NETWORK_BLOCK_MSG` explaining that async network access is blocked and suggesting mocking `aiohttp.ClientSession`.
    """
    raise RuntimeError(_ASYNC_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """
    Register the markers used across the test suite.

    Parameters:
        config: pytest.Config
            The pytest configuration object used to register markers.
    """
    config.addinivalue_line(
        "markers", "asyncio: mark test as an asyncio test (auto-detected)"
    )
    config.addinivalue_line("markers", "unit: fast tests without I/O")
    config.addinivalue_line("markers", "extraction: streaming archive extraction")


@pytest.fixture(autouse=True)
def _isolate_test_environment(monkeypatch):
    """
    Remove proxy, token and logging variables so the host environment cannot leak into tests.
    """
    for name in (
        *PROXY_ENV_VARS,
        GITHUB_TOKEN_ENV_VAR,
        LOG_LEVEL_ENV_VAR,
        LOG_DIR_ENV_VAR,
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """
    Prevent real network requests during tests by replacing aiohttp entry points with blocking callables.
    """
    import aiohttp

    monkeypatch.setattr(aiohttp, "request", _async_block_network)
    for method in ("_request", "get", "post", "put", "delete", "head", "patch", "options"):
        monkeypatch.setattr(aiohttp.ClientSession, method, _async_block_network)


# =============================================================================
# Async Test Fixtures
# =============================================================================


@pytest.fixture
def mock_aiohttp_session(mocker):
    """
    Provide a mock aiohttp.ClientSession for testing async HTTP operations.

    Yields a MagicMock configured with the aiohttp.ClientSession spec and with `closed` set to False.
    """
    import aiohttp

    mock_session = mocker.MagicMock(spec=aiohttp.ClientSession)
    mock_session.closed = False
    mock_session.close = AsyncMock()
    yield mock_session


@pytest.fixture
def mock_async_response(mocker):
    """
    Provide a factory that creates configured mock aiohttp.ClientResponse objects for tests.

    The returned response works as the target of `async with session.get(...)`, exposes
    `status`, `headers` and `reason`, an async `json()` and, when `content_chunks` is given,
    a `content.iter_chunked()` that yields those chunks.
    """

    def _create_response(
        status=200,
        headers=None,
        json_data=None,
        content_chunks=None,
        reason="OK",
    ):
        """
        Create a mocked aiohttp.ClientResponse configured for tests.

        Parameters:
            status (int): HTTP status code to expose on the response.
            headers (dict | None): Headers mapping for the response; defaults to empty dict.
            json_data (Any | None): Value that the response's asynchronous `json()` method will return.
            content_chunks (Iterable[bytes] | None): Chunks yielded by `response.content.iter_chunked(...)`.
            reason (str): HTTP reason phrase.
        """
        response = mocker.MagicMock()
        response.status = status
        response.reason = reason
        response.headers = headers or {}
        response.json = AsyncMock(return_value=json_data)
        response.__aenter__ = AsyncMock(return_value=response)
        response.__aexit__ = AsyncMock(return_value=False)

        async def _async_iter_chunks(*_args, **_kwargs):
            for chunk in content_chunks or ():
                yield chunk

        response.content.iter_chunked = mocker.Mock(side_effect=_async_iter_chunks)
        return response

    return _create_response


@pytest.fixture
def sample_release_data():
    """Fixture providing GitHub release listing data shaped like aria2's releases."""
    base = "https://github.com/aria2/aria2/releases/download"
    return [
        {
            "tag_name": "release-1.37.0",
            "prerelease": False,
            "published_at": "2023-11-15T00:00:00Z",
            "assets": [
                {
                    "name": "aria2-1.37.0.tar.xz",
                    "browser_download_url": f"{base}/release-1.37.0/aria2-1.37.0.tar.xz",
                    "size": 1600000,
                },
                {
                    "name": "aria2-1.37.0-osx-darwin.dmg",
                    "browser_download_url": f"{base}/release-1.37.0/aria2-1.37.0-osx-darwin.dmg",
                    "size": 3000000,
                },
                {
                    "name": "aria2-1.37.0-osx-darwin.tar.bz2",
                    "browser_download_url": f"{base}/release-1.37.0/aria2-1.37.0-osx-darwin.tar.bz2",
                    "size": 2900000,
                },
                {
                    "name": "aria2-1.37.0-win-32bit-build1.zip",
                    "browser_download_url": f"{base}/release-1.37.0/aria2-1.37.0-win-32bit-build1.zip",
                    "size": 2500000,
                },
                {
                    "name": "aria2-1.37.0-win-64bit-build1.zip",
                    "browser_download_url": f"{base}/release-1.37.0/aria2-1.37.0-win-64bit-build1.zip",
                    "size": 2600000,
                },
            ],
        },
        {
            "tag_name": "release-1.36.0",
            "prerelease": False,
            "published_at": "2021-08-21T00:00:00Z",
            "assets": [
                {
                    "name": "aria2-1.36.0-aarch64-linux-android-build1.zip",
                    "browser_download_url": f"{base}/release-1.36.0/aria2-1.36.0-aarch64-linux-android-build1.zip",
                    "size": 2000000,
                },
                {
                    "name": "aria2-1.36.0-android-arm-build1.zip",
                    "browser_download_url": f"{base}/release-1.36.0/aria2-1.36.0-android-arm-build1.zip",
                    "size": 2000000,
                },
                {
                    "name": "aria2-1.36.0-win-64bit-build1.zip",
                    "browser_download_url": f"{base}/release-1.36.0/aria2-1.36.0-win-64bit-build1.zip",
                    "size": 2600000,
                },
            ],
        },
    ]


@pytest.fixture
def linux_release_data():
    """Fixture providing release listing data shaped like the static Linux builds."""
    base = "https://github.com/q3aql/aria2-static-builds/releases/download/v1.36.0"
    names = [
        "aria2-1.36.0-linux-gnu-32bit-build1.tar.bz2",
        "aria2-1.36.0-linux-gnu-64bit-build1.dmg.tar.bz2",
        "aria2-1.36.0-linux-gnu-64bit-build1.tar.bz2",
        "aria2-1.36.0-linux-gnu-arm-rbpi-build1.tar.bz2",
        "aria2-1.36.0-win-64bit-build1.zip",
    ]
    return [
        {
            "tag_name": "v1.36.0",
            "assets": [
                {"name": name, "browser_download_url": f"{base}/{name}", "size": 1}
                for name in names
            ],
        }
    ]
