"""Position providers for each location source."""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Callable, Mapping
from typing import Any

from .api import (
    IpGeolocationClient,
    IpGeolocationError,
    IpGeolocationTimeoutError,
    extract_ip_position,
)
from .const import (
    SOURCE_GPS_HIGH_ACCURACY,
    SOURCE_GPS_STANDARD,
    SOURCE_IP_GEOLOCATION,
    SOURCE_NETWORK,
)
from .device import LocationDevice, error_reason, extract_fix
from .exceptions import (
    AcquisitionFailedError,
    NetworkFailureError,
    ProviderTimeoutError,
    UnsupportedProviderError,
)
from .models import AcquisitionOptions, PositionRecord, ProviderDescriptor
from .options import options_for

_LOGGER = logging.getLogger(__name__)


class PositionProvider(ABC):
    """Strategy that obtains a position from one underlying source.

    Implementations raise only ProviderError subclasses.
    """

    def __init__(self, name: str) -> None:
        """Initialize the provider."""
        self.name = name

    @abstractmethod
    async def async_resolve(self, options: AcquisitionOptions) -> PositionRecord:
        """Attempt to produce a position record."""
        raise NotImplementedError


class GpsPositionProvider(PositionProvider):
    """Position from the device location subsystem."""

    def __init__(self, name: str, device: LocationDevice) -> None:
        """Initialize the provider."""
        super().__init__(name)
        self._device = device

    async def async_resolve(self, options: AcquisitionOptions) -> PositionRecord:
        """Request a fix from the device and wait for its callback."""
        loop = asyncio.get_running_loop()
        future: asyncio.Future[Mapping[str, Any]] = loop.create_future()

        def _set_fix(raw: Mapping[str, Any]) -> None:
            if not future.done():
                future.set_result(raw)

        def _set_error(code: int, message: str) -> None:
            if future.done():
                return
            reason = error_reason(code)
            future.set_exception(
                AcquisitionFailedError(self.name, message or reason, reason=reason)
            )

        def _on_success(raw: Mapping[str, Any]) -> None:
            _deliver(_set_fix, raw)

        def _on_error(code: int, message: str) -> None:
            _deliver(_set_error, code, message)

        def _deliver(callback: Callable[..., None], *args: Any) -> None:
            try:
                loop.call_soon_threadsafe(callback, *args)
            except RuntimeError:
                # late callbacks after the loop is gone are dropped
                _LOGGER.debug("Dropping %s callback, event loop is closed", self.name)

        _LOGGER.debug(
            "Requesting %s fix (high accuracy: %s, timeout: %ss, max age: %ss)",
            self.name,
            options.enable_high_accuracy,
            options.timeout,
            options.maximum_age,
        )
        try:
            self._device.request_current_position(options, _on_success, _on_error)
        except Exception as err:  # noqa: BLE001
            raise AcquisitionFailedError(
                self.name, f"Location request could not be started: {err}"
            ) from err

        try:
            async with asyncio.timeout(options.timeout):
                raw = await future
        except TimeoutError as err:
            raise ProviderTimeoutError(
                self.name, f"No fix within {options.timeout}s"
            ) from err

        try:
            return extract_fix(raw)
        except (KeyError, TypeError, ValueError) as err:
            raise AcquisitionFailedError(
                self.name, f"Invalid fix from device: {err}", reason="invalid_fix"
            ) from err


class NetworkPositionProvider(PositionProvider):
    """Network signal based positioning.

    Not available on any supported platform yet; fails immediately so the
    source still shows up in diagnostics.
    """

    async def async_resolve(self, options: AcquisitionOptions) -> PositionRecord:
        """Fail with an unsupported error."""
        raise UnsupportedProviderError(self.name, "Network positioning is not implemented")


class IpPositionProvider(PositionProvider):
    """Coarse position from the public IP address."""

    def __init__(self, name: str, client: IpGeolocationClient) -> None:
        """Initialize the provider."""
        super().__init__(name)
        self._client = client

    async def async_resolve(self, options: AcquisitionOptions) -> PositionRecord:
        """Look up the public IP location."""
        try:
            data = await self._client.async_get_data(options.timeout)
            return extract_ip_position(data)
        except IpGeolocationTimeoutError as err:
            raise ProviderTimeoutError(self.name, str(err)) from err
        except IpGeolocationError as err:
            raise NetworkFailureError(self.name, str(err)) from err


def build_providers(
    device: LocationDevice,
    ip_client: IpGeolocationClient,
    platform_hint: str,
) -> tuple[ProviderDescriptor, ...]:
    """Build the default provider set in declared priority order."""
    standard_options = options_for(False, platform_hint)
    return (
        ProviderDescriptor(
            name=SOURCE_GPS_HIGH_ACCURACY,
            priority=1,
            provider=GpsPositionProvider(SOURCE_GPS_HIGH_ACCURACY, device),
            options=options_for(True, platform_hint),
        ),
        ProviderDescriptor(
            name=SOURCE_GPS_STANDARD,
            priority=2,
            provider=GpsPositionProvider(SOURCE_GPS_STANDARD, device),
            options=standard_options,
        ),
        ProviderDescriptor(
            name=SOURCE_NETWORK,
            priority=3,
            provider=NetworkPositionProvider(SOURCE_NETWORK),
            options=standard_options,
        ),
        ProviderDescriptor(
            name=SOURCE_IP_GEOLOCATION,
            priority=4,
            provider=IpPositionProvider(SOURCE_IP_GEOLOCATION, ip_client),
            options=standard_options,
        ),
    )
