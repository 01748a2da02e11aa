"""Configuration schema for the hybrid location resolver."""

from __future__ import annotations

from typing import Any

import voluptuous as vol

from .const import (
    CONF_FALLBACK_TIMEOUT,
    CONF_IP_ENDPOINT,
    CONF_PLATFORM,
    FALLBACK_TIMEOUT,
    IP_GEOLOCATION_URL,
)

CONFIG_SCHEMA = vol.Schema(
    {
        vol.Optional(CONF_PLATFORM, default=""): vol.Any(None, str),
        vol.Optional(CONF_FALLBACK_TIMEOUT, default=FALLBACK_TIMEOUT): vol.All(
            vol.Coerce(float), vol.Range(min=0, min_included=False)
        ),
        vol.Optional(CONF_IP_ENDPOINT, default=IP_GEOLOCATION_URL): vol.Url(),
    }
)


def validate_config(config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Validate and fill in defaults; raises vol.Invalid on bad input."""
    validated = CONFIG_SCHEMA(dict(config or {}))
    if validated[CONF_PLATFORM] is None:
        validated[CONF_PLATFORM] = ""
    return validated
