"""
Release asset name parsing.

aria2 release assets follow a naming scheme such as
``aria2-1.37.0-win-64bit-build1.zip`` or
``aria2-1.36.0-linux-gnu-arm-rbpi-build1.tar.bz2``; this module turns such a
name into an AssetInfo.
"""

from typing import Optional

from get_aria2.constants import (
    ARCH_X64,
    ASSET_ARCH_MAPPINGS,
    ASSET_NAME_PATTERN,
    ASSET_PLATFORM_MAPPINGS,
    PLATFORM_DARWIN,
)

from .interfaces import AssetInfo


def match_asset(asset_name: str) -> Optional[AssetInfo]:
    """
    Parse version, platform and architecture out of a release asset name.

    macOS builds are single-architecture, so the arch of a darwin asset is
    always x64 whatever the name says.

    Parameters:
        asset_name (str): Name of the asset as listed by GitHub.

    Returns:
        Optional[AssetInfo]: The parsed info, or None when the name does not
        follow the release naming scheme (checksums, source tarballs, ...).
    """
    match = ASSET_NAME_PATTERN.search(asset_name)
    if not match:
        return None

    version, platform_token, arch_token = match.groups()
    platform = ASSET_PLATFORM_MAPPINGS[platform_token]
    if platform == PLATFORM_DARWIN:
        arch: Optional[str] = ARCH_X64
    else:
        arch = ASSET_ARCH_MAPPINGS.get(arch_token) if arch_token else None

    return AssetInfo(version=version, platform=platform, arch=arch)
