from __future__ import annotations

import asyncio

import pytest

from hybrid_location.coordinator import HybridLocationCoordinator
from hybrid_location.exceptions import (
    AcquisitionFailedError,
    AllSourcesFailedError,
    NetworkFailureError,
    ProviderError,
    ProviderTimeoutError,
    UnsupportedProviderError,
)
from tests.fakes import (
    OddResultProvider,
    SelfCancellingProvider,
    StaticProvider,
    descriptor,
    make_position,
)


def _four_sources(gps_high, gps_standard, network, ip):
    return [
        descriptor(gps_high, 1),
        descriptor(gps_standard, 2),
        descriptor(network, 3),
        descriptor(ip, 4),
    ]


@pytest.mark.asyncio
async def test_fastest_success_wins_over_declared_priority() -> None:
    ip_position = make_position(-23.0, -46.0, 10_000.0)
    providers = _four_sources(
        StaticProvider(
            "GPS_HIGH_ACCURACY",
            delay=0.2,
            error=AcquisitionFailedError("GPS_HIGH_ACCURACY", "signal unavailable"),
        ),
        StaticProvider("GPS_STANDARD", delay=0.3, position=make_position(-23.5, -46.6, 20.0)),
        StaticProvider("NETWORK", error=UnsupportedProviderError("NETWORK", "not implemented")),
        StaticProvider("IP_GEOLOCATION", delay=0.18, position=ip_position),
    )
    coordinator = HybridLocationCoordinator(providers, fallback_timeout=1.5)

    resolved = await coordinator.async_resolve()

    assert resolved.source == "IP_GEOLOCATION"
    assert resolved.position == ip_position


@pytest.mark.asyncio
async def test_single_success_is_returned() -> None:
    position = make_position(37.5665, 126.978, 15.0)
    providers = _four_sources(
        StaticProvider(
            "GPS_HIGH_ACCURACY",
            error=AcquisitionFailedError("GPS_HIGH_ACCURACY", "denied"),
        ),
        StaticProvider("GPS_STANDARD", delay=0.05, position=position),
        StaticProvider("NETWORK", error=UnsupportedProviderError("NETWORK", "not implemented")),
        StaticProvider(
            "IP_GEOLOCATION",
            delay=0.01,
            error=NetworkFailureError("IP_GEOLOCATION", "offline"),
        ),
    )
    coordinator = HybridLocationCoordinator(providers, fallback_timeout=1.0)

    assert await coordinator.async_get_current_position() == position


@pytest.mark.asyncio
async def test_all_sources_failing_reports_every_provider() -> None:
    providers = _four_sources(
        StaticProvider(
            "GPS_HIGH_ACCURACY",
            delay=0.05,
            error=AcquisitionFailedError("GPS_HIGH_ACCURACY", "denied"),
        ),
        StaticProvider(
            "GPS_STANDARD",
            delay=0.1,
            error=AcquisitionFailedError("GPS_STANDARD", "denied"),
        ),
        StaticProvider("NETWORK", error=UnsupportedProviderError("NETWORK", "not implemented")),
        StaticProvider(
            "IP_GEOLOCATION",
            delay=0.15,
            error=NetworkFailureError("IP_GEOLOCATION", "offline"),
        ),
    )
    coordinator = HybridLocationCoordinator(providers, fallback_timeout=1.0)
    loop = asyncio.get_running_loop()

    started = loop.time()
    with pytest.raises(AllSourcesFailedError) as exc_info:
        await coordinator.async_get_current_position()
    elapsed = loop.time() - started

    errors = exc_info.value.errors
    assert list(errors) == ["GPS_HIGH_ACCURACY", "GPS_STANDARD", "NETWORK", "IP_GEOLOCATION"]
    assert isinstance(errors["GPS_STANDARD"], AcquisitionFailedError)
    assert isinstance(errors["NETWORK"], UnsupportedProviderError)
    assert isinstance(errors["IP_GEOLOCATION"], NetworkFailureError)
    assert 0.14 <= elapsed < 0.6


@pytest.mark.asyncio
async def test_slow_provider_is_reported_as_timeout() -> None:
    providers = [
        descriptor(
            StaticProvider("GPS_HIGH_ACCURACY", delay=2.0, position=make_position(1.0, 1.0, 5.0)),
            1,
        ),
        descriptor(
            StaticProvider("NETWORK", error=UnsupportedProviderError("NETWORK", "not implemented")),
            3,
        ),
    ]
    coordinator = HybridLocationCoordinator(providers, fallback_timeout=0.1)
    loop = asyncio.get_running_loop()

    started = loop.time()
    with pytest.raises(AllSourcesFailedError) as exc_info:
        await coordinator.async_resolve()

    assert loop.time() - started < 1.0
    timeout_error = exc_info.value.errors["GPS_HIGH_ACCURACY"]
    assert isinstance(timeout_error, ProviderTimeoutError)
    assert timeout_error.provider == "GPS_HIGH_ACCURACY"


@pytest.mark.asyncio
async def test_hanging_providers_never_block_past_fallback_timeout() -> None:
    providers = [descriptor(StaticProvider(f"SOURCE_{i}"), i) for i in range(4)]
    coordinator = HybridLocationCoordinator(providers, fallback_timeout=0.1)

    with pytest.raises(AllSourcesFailedError) as exc_info:
        await asyncio.wait_for(coordinator.async_resolve(), timeout=1.0)

    assert len(exc_info.value.errors) == 4
    assert all(isinstance(err, ProviderTimeoutError) for err in exc_info.value.errors.values())


@pytest.mark.asyncio
async def test_simultaneous_successes_pick_declared_order() -> None:
    first = make_position(10.0, 10.0, 50.0)
    second = make_position(20.0, 20.0, 5.0)
    providers = [
        descriptor(StaticProvider("GPS_HIGH_ACCURACY", position=first), 1),
        descriptor(StaticProvider("GPS_STANDARD", position=second), 2),
    ]
    coordinator = HybridLocationCoordinator(providers)

    resolved = await coordinator.async_resolve()

    assert resolved.source == "GPS_HIGH_ACCURACY"
    assert resolved.position == first


@pytest.mark.asyncio
async def test_losing_providers_are_cancelled() -> None:
    slow = StaticProvider("GPS_HIGH_ACCURACY", delay=5.0, position=make_position(1.0, 1.0, 5.0))
    fast = StaticProvider("IP_GEOLOCATION", position=make_position(2.0, 2.0, 10_000.0))
    coordinator = HybridLocationCoordinator([descriptor(slow, 1), descriptor(fast, 4)])

    resolved = await coordinator.async_resolve()
    await asyncio.sleep(0.01)

    assert resolved.source == "IP_GEOLOCATION"
    assert slow.cancelled is True


@pytest.mark.asyncio
async def test_unexpected_provider_errors_are_contained() -> None:
    providers = [
        descriptor(StaticProvider("GPS_HIGH_ACCURACY", error=RuntimeError("driver crashed")), 1),
        descriptor(
            StaticProvider("NETWORK", error=UnsupportedProviderError("NETWORK", "not implemented")),
            3,
        ),
    ]
    coordinator = HybridLocationCoordinator(providers)

    with pytest.raises(AllSourcesFailedError) as exc_info:
        await coordinator.async_resolve()

    error = exc_info.value.errors["GPS_HIGH_ACCURACY"]
    assert type(error) is ProviderError
    assert isinstance(error.__cause__, RuntimeError)


@pytest.mark.asyncio
async def test_each_call_is_an_independent_race() -> None:
    provider = StaticProvider("GPS_STANDARD", position=make_position(1.0, 2.0, 3.0))
    coordinator = HybridLocationCoordinator([descriptor(provider, 2)])

    await coordinator.async_get_current_position()
    await coordinator.async_get_current_position()

    assert provider.calls == 2


def test_coordinator_rejects_empty_provider_set() -> None:
    with pytest.raises(ValueError):
        HybridLocationCoordinator([])


def test_coordinator_rejects_duplicate_names() -> None:
    providers = [descriptor(StaticProvider("GPS"), 1), descriptor(StaticProvider("GPS"), 2)]

    with pytest.raises(ValueError, match="unique"):
        HybridLocationCoordinator(providers)


def test_coordinator_rejects_non_positive_timeout() -> None:
    with pytest.raises(ValueError):
        HybridLocationCoordinator([descriptor(StaticProvider("GPS"), 1)], fallback_timeout=0)


@pytest.mark.asyncio
async def test_non_position_result_does_not_hide_other_success() -> None:
    position = make_position(5.0, 6.0, 30.0)
    providers = [
        descriptor(OddResultProvider("GPS_HIGH_ACCURACY"), 1),
        descriptor(StaticProvider("GPS_STANDARD", position=position), 2),
    ]
    coordinator = HybridLocationCoordinator(providers)

    resolved = await coordinator.async_resolve()

    assert resolved.source == "GPS_STANDARD"
    assert resolved.position == position


@pytest.mark.asyncio
async def test_non_position_result_is_reported_as_provider_error() -> None:
    providers = [
        descriptor(OddResultProvider("GPS_HIGH_ACCURACY", result={"latitude": 1.0}), 1),
        descriptor(OddResultProvider("IP_GEOLOCATION"), 4),
    ]
    coordinator = HybridLocationCoordinator(providers)

    with pytest.raises(AllSourcesFailedError) as exc_info:
        await coordinator.async_resolve()

    errors = exc_info.value.errors
    assert list(errors) == ["GPS_HIGH_ACCURACY", "IP_GEOLOCATION"]
    assert all(type(err) is ProviderError for err in errors.values())
    assert "dict" in str(errors["GPS_HIGH_ACCURACY"])


@pytest.mark.asyncio
async def test_self_cancelled_provider_is_recorded_as_failure() -> None:
    network_error = UnsupportedProviderError("NETWORK", "not implemented")
    providers = [
        descriptor(SelfCancellingProvider("GPS_HIGH_ACCURACY"), 1),
        descriptor(StaticProvider("NETWORK", delay=0.05, error=network_error), 3),
    ]
    coordinator = HybridLocationCoordinator(providers)

    with pytest.raises(AllSourcesFailedError) as exc_info:
        await coordinator.async_resolve()

    cancelled = exc_info.value.errors["GPS_HIGH_ACCURACY"]
    assert type(cancelled) is ProviderError
    assert cancelled.provider == "GPS_HIGH_ACCURACY"
    assert exc_info.value.errors["NETWORK"] is network_error


@pytest.mark.asyncio
async def test_caller_cancellation_still_propagates() -> None:
    slow = StaticProvider("GPS_HIGH_ACCURACY", delay=5.0, position=make_position(1.0, 1.0, 5.0))
    coordinator = HybridLocationCoordinator([descriptor(slow, 1)])

    task = asyncio.create_task(coordinator.async_resolve())
    await asyncio.sleep(0.01)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    await asyncio.sleep(0.01)
    assert slow.cancelled is True
