"""Errors raised by location providers and the resolution coordinator."""

from __future__ import annotations


class HybridLocationError(Exception):
    """General hybrid location error."""


class ProviderError(HybridLocationError):
    """A single provider failed to produce a position."""

    def __init__(self, provider: str, message: str) -> None:
        """Initialize the error with the originating provider name."""
        super().__init__(f"{provider}: {message}")
        self.provider = provider
        self.message = message


class AcquisitionFailedError(ProviderError):
    """Device location subsystem reported a failure."""

    def __init__(self, provider: str, message: str, reason: str = "unknown") -> None:
        """Initialize the error with the device's failure reason."""
        super().__init__(provider, message)
        self.reason = reason


class ProviderTimeoutError(ProviderError):
    """Provider did not complete within its allotted window."""


class NetworkFailureError(ProviderError):
    """Transport or parse failure contacting an external source."""


class UnsupportedProviderError(ProviderError):
    """Provider is intentionally not implemented."""


class AllSourcesFailedError(HybridLocationError):
    """Every provider failed or timed out."""

    def __init__(self, errors: dict[str, ProviderError]) -> None:
        """Initialize the error with the per-provider failures."""
        summary = ", ".join(f"{name}={type(err).__name__}" for name, err in errors.items())
        super().__init__(f"All location sources failed ({summary})")
        self.errors = errors
