"""
Release resolution for aria2 builds.

Picks the release asset that provides aria2c for a platform/arch pair and
classifies its archive format, all before a single archive byte is fetched.
"""

from typing import Iterable, Optional, Tuple

from get_aria2.constants import (
    ARIA2_REPO,
    DISK_IMAGE_MARKER,
    LINUX_BUILD_REPO,
    PLATFORM_ARCHES,
    PLATFORM_LINUX,
    SUPPORTED_PLATFORMS,
)
from get_aria2.exceptions import (
    AssetNotFoundError,
    UnsupportedArchitectureError,
    UnsupportedPlatformError,
)
from get_aria2.log_utils import logger

from .assets import match_asset
from .async_client import AsyncGitHubClient
from .formats import classify_archive
from .interfaces import Asset, Release, ResolvedTarget


def validate_target(platform: str, arch: str) -> None:
    """
    Check a platform/arch pair against the supported pairings.

    Raises:
        UnsupportedPlatformError: If the platform is not supported at all.
        UnsupportedArchitectureError: If the arch is not built for the platform.
    """
    if platform not in SUPPORTED_PLATFORMS:
        raise UnsupportedPlatformError(
            f'Unsupported platform "{platform}"',
            platform=platform,
            arch=arch,
            details="supported platforms: " + ", ".join(SUPPORTED_PLATFORMS),
        )

    if arch not in PLATFORM_ARCHES[platform]:
        raise UnsupportedArchitectureError(
            f'Architecture "{arch}" is not supported on "{platform}"',
            platform=platform,
            arch=arch,
            details="supported architectures: " + ", ".join(PLATFORM_ARCHES[platform]),
        )


def repository_for(platform: str) -> str:
    """Linux builds come from a static-build repository, everything else from upstream."""
    return LINUX_BUILD_REPO if platform == PLATFORM_LINUX else ARIA2_REPO


def select_asset(
    releases: Iterable[Release], platform: str, arch: str
) -> Optional[Tuple[Asset, str]]:
    """
    Return the first asset built for platform/arch, with its version.

    Releases and their assets are scanned in listing order, so with GitHub's
    newest-first ordering this picks the latest compatible build. Disk images
    are never selected.
    """
    for release in releases:
        for asset in release.assets:
            info = match_asset(asset.name)
            if info is None or info.platform != platform or info.arch != arch:
                continue
            if DISK_IMAGE_MARKER in asset.download_url:
                logger.debug(f"Skipping disk image asset {asset.name}")
                continue
            return asset, info.version
    return None


async def resolve_release(
    client: AsyncGitHubClient, platform: str, arch: str
) -> ResolvedTarget:
    """
    Resolve the download URL, version and archive format of aria2c for a target.

    Parameters:
        client (AsyncGitHubClient): Client used to list the releases.
        platform (str): One of win32, darwin, linux, android.
        arch (str): One of x32, x64, arm.

    Returns:
        ResolvedTarget: The selected asset.

    Raises:
        ConfigurationError: If the pair is unsupported; raised before any request.
        AssetNotFoundError: If no release carries a matching asset.
        UnsupportedArchiveError: If the matching asset is not a supported archive.
        DownloadError: If listing the releases fails.
    """
    validate_target(platform, arch)

    repository = repository_for(platform)
    logger.debug(f"Looking up aria2 releases for {platform}/{arch} in {repository}")
    releases = await client.get_releases(repository)

    selected = select_asset(releases, platform, arch)
    if selected is None:
        raise AssetNotFoundError(
            f"No matching asset found for {platform}/{arch}",
            repository=repository,
            details=f"scanned {len(releases)} releases",
        )

    asset, version = selected
    archive_format = classify_archive(asset.download_url)
    logger.info(f"Resolved aria2 {version} for {platform}/{arch}: {asset.name}")

    return ResolvedTarget(
        url=asset.download_url,
        version=version,
        archive_format=archive_format,
        repository=repository,
        asset_name=asset.name,
    )
