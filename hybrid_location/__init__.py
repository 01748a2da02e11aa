"""Best-effort current position from several unreliable location sources."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from .api import IpGeolocationClient
from .config import validate_config
from .const import CONF_FALLBACK_TIMEOUT, CONF_IP_ENDPOINT, CONF_PLATFORM
from .coordinator import HybridLocationCoordinator
from .device import LocationDevice
from .exceptions import (
    AcquisitionFailedError,
    AllSourcesFailedError,
    HybridLocationError,
    NetworkFailureError,
    ProviderError,
    ProviderTimeoutError,
    UnsupportedProviderError,
)
from .models import AcquisitionOptions, PositionRecord, ProviderDescriptor, ResolvedPosition
from .options import DevicePlatform, detect_platform, options_for
from .providers import build_providers

_LOGGER = logging.getLogger(__name__)

__all__ = [
    "AcquisitionFailedError",
    "AcquisitionOptions",
    "AllSourcesFailedError",
    "DevicePlatform",
    "HybridLocationCoordinator",
    "HybridLocationError",
    "LocationDevice",
    "NetworkFailureError",
    "PositionRecord",
    "ProviderDescriptor",
    "ProviderError",
    "ProviderTimeoutError",
    "ResolvedPosition",
    "UnsupportedProviderError",
    "create_coordinator",
    "detect_platform",
    "options_for",
]


def create_coordinator(
    device: LocationDevice,
    session: aiohttp.ClientSession,
    config: dict[str, Any] | None = None,
) -> HybridLocationCoordinator:
    """Set up a coordinator with the default provider set."""
    conf = validate_config(config)
    platform_hint = conf[CONF_PLATFORM]
    _LOGGER.debug(
        "Creating location coordinator for platform %s",
        detect_platform(platform_hint),
    )
    ip_client = IpGeolocationClient(session=session, url=conf[CONF_IP_ENDPOINT])
    providers = build_providers(device, ip_client, platform_hint)
    return HybridLocationCoordinator(providers, fallback_timeout=conf[CONF_FALLBACK_TIMEOUT])
