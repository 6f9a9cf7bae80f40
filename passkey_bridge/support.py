"""Detect whether the running platform can perform passkey ceremonies."""
from __future__ import annotations

import platform
import re
import sys
from dataclasses import dataclass
from typing import Optional, Union

__all__ = [
    "ANDROID",
    "ANDROID_MIN_API_LEVEL",
    "IOS",
    "IOS_MIN_VERSION",
    "PlatformInfo",
    "detect_platform",
    "is_supported",
]

IOS = "ios"
ANDROID = "android"

# Passkeys need a platform newer than these; equal is not enough.
IOS_MIN_VERSION = 14
ANDROID_MIN_API_LEVEL = 28

_LEADING_NUMBER = re.compile(r"^\s*(\d+)")


@dataclass(frozen=True)
class PlatformInfo:
    """Operating system name (``ios``/``android``/other) and its version.

    For iOS the version is the release string (``"17.4"``), for Android the
    API level (``34``).
    """

    system: str
    version: Union[str, int, None] = None

    @property
    def major_version(self) -> Optional[int]:
        if self.version is None or isinstance(self.version, bool):
            return None
        if isinstance(self.version, int):
            return self.version
        match = _LEADING_NUMBER.match(str(self.version))
        return int(match.group(1)) if match else None


def detect_platform() -> PlatformInfo:
    """Describe the interpreter's host platform."""

    system = sys.platform
    if system == IOS:
        ios_ver = getattr(platform, "ios_ver", None)
        return PlatformInfo(IOS, ios_ver().release if ios_ver else None)
    if system == ANDROID:
        android_ver = getattr(platform, "android_ver", None)
        return PlatformInfo(ANDROID, android_ver().api_level if android_ver else None)
    return PlatformInfo(system, platform.release() or None)


def is_supported(platform_info: Optional[PlatformInfo] = None) -> bool:
    """True only on iOS 15 or later or Android newer than API level 28."""

    info = platform_info or detect_platform()
    version = info.major_version
    if version is None:
        return False
    if info.system == IOS:
        return version > IOS_MIN_VERSION
    if info.system == ANDROID:
        return version > ANDROID_MIN_API_LEVEL
    return False
