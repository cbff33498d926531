"""
Archive format detection for release assets.

Detection is purely lexical so that an unsupported asset fails before any
bytes are downloaded.
"""

from get_aria2.exceptions import UnsupportedArchiveError
from get_aria2.utils import url_filename

from .interfaces import ArchiveFormat

ARCHIVE_SUFFIXES = (
    (".tar.bz2", ArchiveFormat.TAR_BZ2),
    (".tar.gz", ArchiveFormat.TAR_GZ),
    (".tgz", ArchiveFormat.TAR_GZ),
    (".tar", ArchiveFormat.TAR),
    (".zip", ArchiveFormat.ZIP),
)


def classify_archive(url: str) -> ArchiveFormat:
    """
    Classify an asset URL by the suffix of its filename.

    Parameters:
        url (str): Download URL (or bare filename) of the asset.

    Returns:
        ArchiveFormat: The container format of the asset.

    Raises:
        UnsupportedArchiveError: If the filename ends in none of the supported suffixes.
    """
    filename = url_filename(url).lower()
    for suffix, archive_format in ARCHIVE_SUFFIXES:
        if filename.endswith(suffix):
            return archive_format

    raise UnsupportedArchiveError(
        f'Could not determine archive type of "{url}"',
        archive_url=url,
        details="expected one of " + ", ".join(s for s, _ in ARCHIVE_SUFFIXES),
    )
