"""Device location capability and raw fix mapping."""

from __future__ import annotations

import logging
import math
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from .const import ERROR_PERMISSION_DENIED, ERROR_POSITION_UNAVAILABLE, ERROR_TIMEOUT
from .models import AcquisitionOptions, PositionRecord

_LOGGER = logging.getLogger(__name__)

ERROR_REASONS = {
    ERROR_PERMISSION_DENIED: "permission_denied",
    ERROR_POSITION_UNAVAILABLE: "position_unavailable",
    ERROR_TIMEOUT: "timeout",
}

OPTIONAL_FIELDS = ("altitude", "altitude_accuracy", "heading", "speed")


class LocationDevice(Protocol):
    """The platform's one-shot location capability.

    Exactly one of the callbacks is expected to fire per request. Callbacks
    may be invoked from any thread.
    """

    def request_current_position(
        self,
        options: AcquisitionOptions,
        on_success: Callable[[Mapping[str, Any]], None],
        on_error: Callable[[int, str], None],
    ) -> None:
        """Start a position request."""


def error_reason(code: int) -> str:
    """Translate a device error code into a reason string."""
    return ERROR_REASONS.get(code, "unknown")


def extract_fix(raw: Mapping[str, Any]) -> PositionRecord:
    """Map a raw device fix into a position record.

    Raises ValueError or KeyError when the mandatory fields are missing or
    invalid. Optional fields that are absent or zero-equivalent are left unset.
    """
    latitude = float(raw["latitude"])
    longitude = float(raw["longitude"])
    accuracy = float(raw["accuracy"])
    timestamp = int(raw["timestamp"])

    optional: dict[str, float | None] = {}
    for key in OPTIONAL_FIELDS:
        optional[key] = _optional_float(raw.get(key))

    return PositionRecord(
        latitude=latitude,
        longitude=longitude,
        accuracy=accuracy,
        timestamp=timestamp,
        **optional,
    )


def _optional_float(value: Any) -> float | None:
    """Parse an optional fix value, treating zero and NaN as unset."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        _LOGGER.debug("Ignoring unparsable optional fix value %r", value)
        return None
    if number == 0 or math.isnan(number):
        return None
    return number
