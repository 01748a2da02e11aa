"""Data models for the hybrid location resolver."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from .providers import PositionProvider


@dataclass(frozen=True)
class PositionRecord:
    """A single resolved position."""

    latitude: float
    longitude: float
    accuracy: float
    timestamp: int
    altitude: float | None = None
    altitude_accuracy: float | None = None
    heading: float | None = None
    speed: float | None = None

    def __post_init__(self) -> None:
        """Reject coordinates outside the valid ranges."""
        for field_name in ("latitude", "longitude", "accuracy"):
            if not math.isfinite(getattr(self, field_name)):
                raise ValueError(f"{field_name} must be finite")
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"latitude {self.latitude} out of range")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"longitude {self.longitude} out of range")
        if self.accuracy < 0:
            raise ValueError("accuracy must be >= 0")


@dataclass(frozen=True)
class AcquisitionOptions:
    """Per-invocation acquisition parameters (durations in seconds)."""

    enable_high_accuracy: bool
    timeout: float
    maximum_age: float


@dataclass(frozen=True)
class ProviderDescriptor:
    """A named provider entry in the resolution race."""

    name: str
    priority: int
    provider: PositionProvider
    options: AcquisitionOptions

    async def async_resolve(self) -> PositionRecord:
        """Run the provider with its derived options."""
        return await self.provider.async_resolve(self.options)


class ResolvedPosition(NamedTuple):
    """The winning position and the source that produced it."""

    source: str
    position: PositionRecord
