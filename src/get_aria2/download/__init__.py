"""
get-aria2 Download Subsystem

Core Components:
- interfaces: Data structures shared by the pipeline
- assets: Release asset name parsing
- async_client: aiohttp GitHub client
- resolver: Release asset selection
- formats: Archive format detection
- streams: Buffered reader and decompression stages
- containers: Streaming tar and zip parsers
- extractor: Background extraction and the BinaryStream channel
"""

from .assets import match_asset
from .async_client import AsyncGitHubClient
from .containers import ArchiveEntry, iter_tar_entries, iter_zip_entries
from .extractor import PIPELINES, BinaryStream, extract_binary
from .formats import classify_archive
from .interfaces import (
    ArchiveFormat,
    Asset,
    AssetInfo,
    ExtractionResult,
    Release,
    ResolvedTarget,
)
from .resolver import resolve_release, select_asset, validate_target

__all__ = [
    # Interfaces
    "ArchiveFormat",
    "Asset",
    "AssetInfo",
    "ExtractionResult",
    "Release",
    "ResolvedTarget",
    # Resolution
    "AsyncGitHubClient",
    "match_asset",
    "resolve_release",
    "select_asset",
    "validate_target",
    "classify_archive",
    # Extraction
    "ArchiveEntry",
    "BinaryStream",
    "PIPELINES",
    "extract_binary",
    "iter_tar_entries",
    "iter_zip_entries",
]
