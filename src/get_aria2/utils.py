# src/get_aria2/utils.py
import importlib.metadata
from typing import Optional
from urllib.parse import unquote, urlsplit

from get_aria2.constants import USER_AGENT_NAME

# Cache for the User-Agent string to avoid repeated metadata lookups
_USER_AGENT_CACHE: Optional[str] = None


def get_user_agent() -> str:
    """
    Get the User-Agent string used for HTTP requests.

    Returns:
        The string `get-aria2c/{version}`, where `{version}` is the installed package version or `unknown` if the version cannot be determined.
    """
    global _USER_AGENT_CACHE

    if _USER_AGENT_CACHE is None:
        try:
            app_version = importlib.metadata.version("get-aria2")
        except importlib.metadata.PackageNotFoundError:
            app_version = "unknown"

        _USER_AGENT_CACHE = f"{USER_AGENT_NAME}/{app_version}"

    return _USER_AGENT_CACHE


def url_filename(url: str) -> str:
    """
    Return the last path segment of a URL, percent-decoded.

    Query strings and fragments are ignored, so signed download URLs still
    yield the asset's filename.
    """
    path = urlsplit(url).path
    return unquote(path.rstrip("/").rsplit("/", 1)[-1])
