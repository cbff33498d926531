"""
Core Interfaces for the get-aria2 Download Subsystem

This module defines the data structures passed between the resolver, the
archive format detector and the streaming extractor.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from .extractor import BinaryStream


@dataclass
class Release:
    """Represents a release from a GitHub repository."""

    tag_name: str
    """The release tag/version identifier (e.g., 'release-1.37.0')"""

    assets: List["Asset"] = field(default_factory=list)
    """List of downloadable assets for this release"""


@dataclass
class Asset:
    """Represents a downloadable asset from a release."""

    name: str
    """The filename of the asset"""

    download_url: str
    """Direct URL to download the asset"""

    size: int = 0
    """File size in bytes"""


@dataclass(frozen=True)
class AssetInfo:
    """Version and target parsed from a release asset name."""

    version: str
    platform: str
    arch: Optional[str]


class ArchiveFormat(Enum):
    """Container formats an aria2 release asset can come in."""

    TAR = "tar"
    TAR_GZ = "tar.gz"
    TAR_BZ2 = "tar.bz2"
    ZIP = "zip"


@dataclass(frozen=True)
class ResolvedTarget:
    """The release asset chosen for a platform/arch pair."""

    url: str
    version: str
    archive_format: ArchiveFormat
    repository: str = ""
    asset_name: str = ""


@dataclass
class ExtractionResult:
    """Result of a successful extraction: a live binary stream and its version."""

    binary_stream: "BinaryStream"
    """Stream of the aria2c executable's bytes; may still be receiving data"""

    version: str
    """aria2 version parsed from the release asset name"""
