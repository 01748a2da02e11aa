"""Resolution coordinator racing all location providers."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence

from .const import FALLBACK_TIMEOUT
from .exceptions import AllSourcesFailedError, ProviderError, ProviderTimeoutError
from .models import PositionRecord, ProviderDescriptor, ResolvedPosition

_LOGGER = logging.getLogger(__name__)


class HybridLocationCoordinator:
    """Resolve the current position from the fastest successful provider.

    Every call is an independent race: all providers start at once, each
    bounded by the fallback timeout, and the first success wins regardless
    of declared priority. Providers still running when a winner is found
    are cancelled and their results discarded.
    """

    def __init__(
        self,
        providers: Sequence[ProviderDescriptor],
        fallback_timeout: float = FALLBACK_TIMEOUT,
    ) -> None:
        """Initialize the coordinator."""
        if not providers:
            raise ValueError("At least one provider is required")
        names = [descriptor.name for descriptor in providers]
        if len(set(names)) != len(names):
            raise ValueError(f"Provider names must be unique: {names}")
        if fallback_timeout <= 0:
            raise ValueError("fallback_timeout must be > 0")
        self._providers = tuple(providers)
        self._fallback_timeout = fallback_timeout

    @property
    def providers(self) -> tuple[ProviderDescriptor, ...]:
        """Return the providers in declared order."""
        return self._providers

    @property
    def fallback_timeout(self) -> float:
        """Return the hard per-provider time limit in seconds."""
        return self._fallback_timeout

    async def async_get_current_position(self) -> PositionRecord:
        """Return the first position any provider produces.

        Raises AllSourcesFailedError when every provider fails or times out.
        """
        resolved = await self.async_resolve()
        return resolved.position

    async def async_resolve(self) -> ResolvedPosition:
        """Race all providers and return the winner with its source name."""
        tasks = {
            asyncio.create_task(
                self._async_run_provider(descriptor), name=f"locate-{descriptor.name}"
            ): descriptor
            for descriptor in self._providers
        }
        order = {task: index for index, task in enumerate(tasks)}
        errors: dict[str, ProviderError] = {}
        pending = set(tasks)

        try:
            while pending:
                done, pending = await asyncio.wait(
                    pending, return_when=asyncio.FIRST_COMPLETED
                )
                winner: ProviderDescriptor | None = None
                position: PositionRecord | None = None
                # same-step completions are settled in declared order
                for task in sorted(done, key=order.__getitem__):
                    descriptor = tasks[task]
                    # cancelling this call raises at asyncio.wait; here the source cancelled itself
                    if task.cancelled():
                        err: BaseException | None = ProviderError(
                            descriptor.name, "Location source was cancelled"
                        )
                    else:
                        err = task.exception()
                    if err is not None:
                        _LOGGER.debug(
                            "Location source %s (priority %s) failed: %s",
                            descriptor.name,
                            descriptor.priority,
                            err,
                        )
                        errors[descriptor.name] = err
                    elif winner is None:
                        winner = descriptor
                        position = task.result()

                if winner is not None and position is not None:
                    _LOGGER.info(
                        "Position obtained via %s (priority %s, accuracy %sm)",
                        winner.name,
                        winner.priority,
                        position.accuracy,
                    )
                    return ResolvedPosition(winner.name, position)
        finally:
            for task in pending:
                task.add_done_callback(_discard_outcome)
                task.cancel()

        ordered = {descriptor.name: errors[descriptor.name] for descriptor in self._providers}
        _LOGGER.warning("All location sources failed: %s", ", ".join(map(str, ordered.values())))
        raise AllSourcesFailedError(ordered)

    async def _async_run_provider(self, descriptor: ProviderDescriptor) -> PositionRecord:
        """Run one provider under the fallback timeout.

        Any failure surfaces as a ProviderError naming the provider.
        """
        try:
            async with asyncio.timeout(self._fallback_timeout):
                result = await descriptor.async_resolve()
        except TimeoutError as err:
            raise ProviderTimeoutError(
                descriptor.name,
                f"No result within fallback timeout of {self._fallback_timeout}s",
            ) from err
        except ProviderError:
            raise
        except Exception as err:  # noqa: BLE001
            _LOGGER.exception("Unexpected error from location source %s", descriptor.name)
            raise ProviderError(descriptor.name, f"Unexpected error: {err}") from err

        if not isinstance(result, PositionRecord):
            raise ProviderError(
                descriptor.name, f"Returned {type(result).__name__} instead of a position"
            )
        return result


def _discard_outcome(task: asyncio.Task) -> None:
    """Consume the outcome of an abandoned provider task."""
    if not task.cancelled():
        task.exception()
