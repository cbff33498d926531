"""
Environment detection helpers.
"""

from __future__ import annotations

import os
import platform
import sys
from typing import Mapping, Optional

from get_aria2.constants import (
    ARCH_ARM,
    GITHUB_TOKEN_ENV_VAR,
    MACHINE_ARCH_MAPPINGS,
    PLATFORM_ANDROID,
    PLATFORM_DARWIN,
    PLATFORM_LINUX,
    PLATFORM_WIN32,
    PROXY_ENV_VARS,
)


def is_termux() -> bool:
    """
    Check if the current environment is Termux.
    """
    return "com.termux" in os.environ.get("PREFIX", "")


def get_proxy_url(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """
    Return the proxy URL configured in the environment, if any.

    The variables in PROXY_ENV_VARS are checked in order and the first
    non-empty value wins.
    """
    env = os.environ if environ is None else environ
    for name in PROXY_ENV_VARS:
        value = env.get(name, "").strip()
        if value:
            return value
    return None


def get_github_token(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    token = env.get(GITHUB_TOKEN_ENV_VAR, "").strip()
    return token or None


def detect_platform() -> str:
    """
    Return the running system's platform in the win32/darwin/linux/android vocabulary.

    Unknown systems are returned as reported by ``sys.platform`` so that target
    validation can reject them with a clear message.
    """
    if sys.platform == PLATFORM_ANDROID or is_termux():
        return PLATFORM_ANDROID
    if sys.platform.startswith("linux"):
        return PLATFORM_LINUX
    if sys.platform in ("win32", "cygwin"):
        return PLATFORM_WIN32
    if sys.platform == PLATFORM_DARWIN:
        return PLATFORM_DARWIN
    return sys.platform


def detect_arch() -> str:
    """
    Return the running machine's architecture in the x32/x64/arm vocabulary.

    Any ``arm*`` machine name maps to ``arm``; unknown names are returned
    lower-cased so that target validation can reject them.
    """
    machine = platform.machine().lower()
    if machine in MACHINE_ARCH_MAPPINGS:
        return MACHINE_ARCH_MAPPINGS[machine]
    if machine.startswith("arm"):
        return ARCH_ARM
    return machine
