"""
Constants and configuration values for get-aria2.

This module contains all hardcoded values, URLs, lookup tables and patterns
used throughout the application.
"""

import re

# GitHub API
GITHUB_API_BASE = "https://api.github.com/repos"
GITHUB_API_ACCEPT = "application/vnd.github.v3+json"
GITHUB_MAX_PER_PAGE = 100
USER_AGENT_NAME = "get-aria2c"

# Repositories
ARIA2_REPO = "aria2/aria2"  # Windows, macOS and Android builds
LINUX_BUILD_REPO = "q3aql/aria2-static-builds"  # upstream ships no portable Linux builds

# Platform/architecture policy
PLATFORM_WIN32 = "win32"
PLATFORM_DARWIN = "darwin"
PLATFORM_LINUX = "linux"
PLATFORM_ANDROID = "android"

ARCH_X32 = "x32"
ARCH_X64 = "x64"
ARCH_ARM = "arm"

SUPPORTED_PLATFORMS = (
    PLATFORM_WIN32,
    PLATFORM_DARWIN,
    PLATFORM_LINUX,
    PLATFORM_ANDROID,
)

PLATFORM_ARCHES = {
    PLATFORM_WIN32: (ARCH_X32, ARCH_X64),
    PLATFORM_LINUX: (ARCH_X32, ARCH_X64, ARCH_ARM),
    PLATFORM_ANDROID: (ARCH_ARM,),
    PLATFORM_DARWIN: (ARCH_X64,),
}

# Release asset naming
ASSET_PLATFORM_MAPPINGS = {
    "win": PLATFORM_WIN32,
    "linux-gnu": PLATFORM_LINUX,
    "osx-darwin": PLATFORM_DARWIN,
    "android": PLATFORM_ANDROID,
}

ASSET_ARCH_MAPPINGS = {
    "32bit": ARCH_X32,
    "64bit": ARCH_X64,
    "arm": ARCH_ARM,
}

ASSET_NAME_PATTERN = re.compile(
    r"((?:\d+\.)?(?:\d+\.)?(?:\*|\d+))"  # version
    r"-.?(android|osx-darwin|win|linux-gnu)+?"  # platform
    r"(?:-(arm|64bit|32bit))?"  # optional architecture
)

DISK_IMAGE_MARKER = ".dmg"

# Host machine names mapped to the arch vocabulary
MACHINE_ARCH_MAPPINGS = {
    "x86_64": ARCH_X64,
    "amd64": ARCH_X64,
    "x64": ARCH_X64,
    "i386": ARCH_X32,
    "i686": ARCH_X32,
    "x86": ARCH_X32,
    "ia32": ARCH_X32,
    "aarch64": ARCH_ARM,
    "arm64": ARCH_ARM,
}

# Archive handling
BINARY_PATH_PATTERN = re.compile(r"(?:^|/)aria2c$|/aria2c\.exe$")
TAR_BLOCK_SIZE = 512
DEFAULT_CHUNK_SIZE = 64 * 1024
CHANNEL_MAX_CHUNKS = 16
MAX_DECOMPRESSED_CHUNK = 64 * 1024

# Environment variable names
PROXY_ENV_VARS = ("http_proxy", "HTTP_PROXY", "PROXY_URL")
GITHUB_TOKEN_ENV_VAR = "GITHUB_TOKEN"
LOG_LEVEL_ENV_VAR = "GET_ARIA2_LOG_LEVEL"
LOG_DIR_ENV_VAR = "GET_ARIA2_LOG_DIR"

# HTTP
HTTP_STATUS_ERROR_THRESHOLD = 400
HTTP_STATUS_FORBIDDEN = 403

# Logging configuration
LOGGER_NAME = "get_aria2"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
INFO_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"
DEBUG_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s: %(message)s"
LOG_FILE_NAME = "get-aria2.log"
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
LOG_FILE_BACKUP_COUNT = 5
