"""
get-aria2: stream the aria2c executable straight out of its GitHub release archive.
"""

from get_aria2.api import get_binary
from get_aria2.download.extractor import BinaryStream
from get_aria2.download.interfaces import ExtractionResult
from get_aria2.exceptions import (
    ArchiveError,
    AssetNotFoundError,
    BinaryNotFoundError,
    ConfigurationError,
    CorruptedArchiveError,
    DownloadError,
    GetAria2Error,
    UnsupportedArchiveError,
)

__all__ = [
    "get_binary",
    "BinaryStream",
    "ExtractionResult",
    "GetAria2Error",
    "ConfigurationError",
    "AssetNotFoundError",
    "UnsupportedArchiveError",
    "DownloadError",
    "ArchiveError",
    "CorruptedArchiveError",
    "BinaryNotFoundError",
]
