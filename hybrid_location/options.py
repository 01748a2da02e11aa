"""Platform dependent acquisition options."""

from __future__ import annotations

import re
from enum import StrEnum

from .models import AcquisitionOptions

_ANDROID_RE = re.compile(r"android", re.IGNORECASE)
_IOS_RE = re.compile(r"iphone|ipad|ipod|\bios\b", re.IGNORECASE)


class DevicePlatform(StrEnum):
    """Platform families with distinct location behaviour."""

    ANDROID = "android"
    IOS = "ios"
    OTHER = "other"


def detect_platform(platform_hint: str) -> DevicePlatform:
    """Classify an OS name or user-agent string."""
    if _ANDROID_RE.search(platform_hint):
        return DevicePlatform.ANDROID
    if _IOS_RE.search(platform_hint):
        return DevicePlatform.IOS
    return DevicePlatform.OTHER


def options_for(high_accuracy: bool, platform_hint: str) -> AcquisitionOptions:
    """Return the acquisition options for an accuracy mode on a platform.

    Android devices get a longer timeout since cold GPS fixes are slow there.
    iOS treats the accuracy flag as a hard power switch, so standard mode
    turns it off explicitly.
    """
    platform = detect_platform(platform_hint)

    if platform is DevicePlatform.ANDROID:
        return AcquisitionOptions(
            enable_high_accuracy=high_accuracy,
            timeout=20.0,
            maximum_age=5.0 if high_accuracy else 15.0,
        )

    if platform is DevicePlatform.IOS:
        return AcquisitionOptions(
            enable_high_accuracy=bool(high_accuracy),
            timeout=15.0,
            maximum_age=3.0 if high_accuracy else 10.0,
        )

    return AcquisitionOptions(
        enable_high_accuracy=high_accuracy,
        timeout=15.0,
        maximum_age=10.0,
    )
