"""IP geolocation API client."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any

import aiohttp
import voluptuous as vol

from .const import IP_ACCURACY_METERS, IP_GEOLOCATION_URL
from .models import PositionRecord

_LOGGER = logging.getLogger(__name__)

REQUIRED_HEADERS = {
    "Accept": "application/json",
}

IP_RESPONSE_SCHEMA = vol.Schema(
    {
        vol.Required("latitude"): vol.All(vol.Coerce(float), vol.Range(min=-90, max=90)),
        vol.Required("longitude"): vol.All(vol.Coerce(float), vol.Range(min=-180, max=180)),
    },
    extra=vol.ALLOW_EXTRA,
)


class IpGeolocationError(Exception):
    """Error talking to the IP geolocation endpoint."""


class IpGeolocationTimeoutError(IpGeolocationError):
    """The endpoint did not answer in time."""


class IpGeolocationClient:
    """Client for a JSON IP geolocation endpoint."""

    def __init__(
        self,
        session: aiohttp.ClientSession,
        url: str = IP_GEOLOCATION_URL,
    ) -> None:
        """Initialize the API client."""
        self._session = session
        self._url = url

    @property
    def url(self) -> str:
        """Return the configured endpoint."""
        return self._url

    async def async_get_data(self, timeout: float) -> dict[str, Any]:
        """Fetch the geolocation payload for the caller's public IP."""
        try:
            async with asyncio.timeout(timeout):
                resp = await self._session.get(self._url, headers=REQUIRED_HEADERS)
                if resp.status != 200:
                    _LOGGER.debug("IP geolocation %s returned HTTP %s", self._url, resp.status)
                    raise IpGeolocationError(f"IP geolocation returned HTTP {resp.status}")
                data = await resp.json(content_type=None)
        except TimeoutError as err:
            raise IpGeolocationTimeoutError(
                f"No response from {self._url} within {timeout}s"
            ) from err
        except (ValueError, aiohttp.ContentTypeError) as err:
            raise IpGeolocationError(f"Invalid JSON from IP geolocation: {err}") from err
        except aiohttp.ClientError as err:
            raise IpGeolocationError(f"Error communicating with {self._url}: {err}") from err

        if not isinstance(data, dict) or not data:
            raise IpGeolocationError("IP geolocation returned empty response")

        # ipapi.co style error payload, e.g. rate limiting
        if data.get("error"):
            _LOGGER.warning("IP geolocation %s reported an error: %s", self._url, data)
            raise IpGeolocationError(
                f"IP geolocation reported an error: {data.get('reason', 'unknown')}"
            )

        return data


def extract_ip_position(data: dict[str, Any], now_ms: int | None = None) -> PositionRecord:
    """Build a coarse position record from an IP geolocation payload.

    The endpoint does not supply a timestamp, so the resolution time is used.
    """
    try:
        coords = IP_RESPONSE_SCHEMA(data)
    except vol.Invalid as err:
        raise IpGeolocationError(f"Malformed IP geolocation payload: {err}") from err

    if now_ms is None:
        now_ms = int(time.time() * 1000)

    try:
        return PositionRecord(
            latitude=coords["latitude"],
            longitude=coords["longitude"],
            accuracy=IP_ACCURACY_METERS,
            timestamp=now_ms,
        )
    except ValueError as err:
        raise IpGeolocationError(f"Invalid IP geolocation coordinates: {err}") from err
