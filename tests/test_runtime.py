from __future__ import annotations

import dataclasses
import logging
from typing import Any

import pytest

from pyticker._transport import HttpJsonTransport
from pyticker.config import ProviderSymbols, StaticConfigStore, TickerConfig
from pyticker.exceptions import ProviderTransportError
from pyticker.models.enums import ProviderId, Screen
from pyticker.models.quote import Quote, SecondaryMetrics
from pyticker.providers.coingecko import CoinGeckoProvider
from pyticker.runtime import TickerRuntime


class _FakeClock:
    def __init__(self, now: int = 0, tick: int = 0) -> None:
        self.now = now
        self.tick = tick

    def now_ms(self) -> int:
        value = self.now
        self.now += self.tick
        return value


class _FakeRenderer:
    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []

    def render_primary(
        self,
        value: float | None,
        change_ratio: float | None,
        provider_label: str,
        stale: bool,
        connected: bool,
    ) -> None:
        self.calls.append(("primary", value, change_ratio, provider_label, stale, connected))

    def render_secondary(self, metrics: SecondaryMetrics | None, stale: bool, connected: bool) -> None:
        self.calls.append(("secondary", metrics, stale, connected))

    def render_countdown(self, seconds: int) -> None:
        self.calls.append(("countdown", seconds))

    def clear(self) -> None:
        self.calls.append(("clear",))

    def set_orientation(self, flipped: bool) -> None:
        self.calls.append(("orientation", flipped))

    def take(self) -> list[tuple[Any, ...]]:
        calls, self.calls = self.calls, []
        return calls


class _FakeProvider:
    def __init__(self, provider_id: ProviderId, label: str, result: Quote | Exception) -> None:
        self.provider_id = provider_id
        self.label = label
        self.result = result

    async def attempt(self) -> Quote:
        if isinstance(self.result, Exception):
            raise self.result
        return self.result


class _FakeMetrics:
    label = "Open-Meteo"

    def __init__(self, metrics: SecondaryMetrics) -> None:
        self.metrics = metrics

    async def attempt(self) -> SecondaryMetrics:
        return self.metrics


class _FakeInput:
    def __init__(self) -> None:
        self.active = False

    def is_active(self) -> bool:
        return self.active


class _FakeIndicator:
    def __init__(self) -> None:
        self.levels: list[bool] = []

    def set_level(self, on: bool) -> None:
        self.levels.append(on)


class _ResetRecorder:
    def __init__(self) -> None:
        self.calls = 0

    async def __call__(self) -> None:
        self.calls += 1


def _providers(*providers: _FakeProvider) -> dict[ProviderId, _FakeProvider]:
    return {provider.provider_id: provider for provider in providers}


def _gecko(value: float = 65_000.0) -> _FakeProvider:
    return _FakeProvider(ProviderId.COINGECKO, "CoinGecko", Quote(value=value, change_ratio=0.01))


@pytest.mark.asyncio
async def test_first_iteration_renders_placeholder_then_value() -> None:
    renderer = _FakeRenderer()
    clock = _FakeClock()
    runtime = TickerRuntime(
        StaticConfigStore(TickerConfig()),
        providers=_providers(_gecko()),
        renderer=renderer,
        clock=clock,
    )

    await runtime.run_once()

    assert renderer.take() == [
        ("orientation", False),
        ("primary", None, None, "CoinGecko", False, False),
        ("primary", 65_000.0, 0.01, "CoinGecko", False, True),
    ]

    clock.now = 20
    await runtime.run_once()
    assert renderer.take() == []


@pytest.mark.asyncio
async def test_fallback_provider_label_is_rendered() -> None:
    renderer = _FakeRenderer()
    down = _FakeProvider(ProviderId.COINGECKO, "CoinGecko", ProviderTransportError("HTTP 500", status_code=500))
    kraken = _FakeProvider(ProviderId.KRAKEN, "Kraken", Quote(value=64_000.0))
    runtime = TickerRuntime(
        StaticConfigStore(TickerConfig(providers=("coingecko", "kraken"))),
        providers=_providers(down, kraken),
        renderer=renderer,
        clock=_FakeClock(),
    )

    await runtime.run_once()

    assert renderer.calls[-1] == ("primary", 64_000.0, None, "Kraken", False, True)
    assert runtime.acquisition.active_provider is ProviderId.KRAKEN


@pytest.mark.asyncio
async def test_stale_flag_is_rendered_when_it_flips() -> None:
    renderer = _FakeRenderer()
    gecko = _gecko()
    clock = _FakeClock()
    runtime = TickerRuntime(
        StaticConfigStore(TickerConfig(poll_interval_s=60)),
        providers=_providers(gecko),
        renderer=renderer,
        clock=clock,
    )
    await runtime.run_once()
    gecko.result = ProviderTransportError("HTTP 503", status_code=503)

    for now in (60_000, 120_000, 180_000):
        clock.now = now
        await runtime.run_once()
    renderer.take()

    clock.now = 240_000
    await runtime.run_once()

    assert renderer.take() == [("primary", 65_000.0, 0.01, "CoinGecko", True, False)]


@pytest.mark.asyncio
async def test_alert_blinks_display_and_indicator() -> None:
    renderer = _FakeRenderer()
    indicator = _FakeIndicator()
    clock = _FakeClock()
    config = TickerConfig(high_threshold=60_000, high_pattern="slow", alert_mode="both")
    runtime = TickerRuntime(
        StaticConfigStore(config),
        providers=_providers(_gecko()),
        renderer=renderer,
        indicator=indicator,
        clock=clock,
    )

    await runtime.run_once()
    assert indicator.levels == [False, True]
    assert renderer.calls[-1][0] == "primary"
    renderer.take()

    clock.now = 1_000
    await runtime.run_once()
    assert renderer.take() == [("clear",)]
    assert indicator.levels[-1] is False

    clock.now = 2_000
    await runtime.run_once()
    assert renderer.take() == [("primary", 65_000.0, 0.01, "CoinGecko", False, True)]
    assert indicator.levels[-1] is True


@pytest.mark.asyncio
async def test_indicator_only_alert_leaves_display_alone() -> None:
    renderer = _FakeRenderer()
    indicator = _FakeIndicator()
    clock = _FakeClock()
    config = TickerConfig(low_threshold=70_000, low_pattern="fast", alert_mode="indicator", indicator_active_low=True)
    runtime = TickerRuntime(
        StaticConfigStore(config),
        providers=_providers(_gecko()),
        renderer=renderer,
        indicator=indicator,
        clock=clock,
    )
    await runtime.run_once()
    renderer.take()

    clock.now = 250
    await runtime.run_once()

    assert renderer.take() == []
    assert indicator.levels == [True, False, True]


@pytest.mark.asyncio
async def test_factory_reset_countdown_and_reset() -> None:
    renderer = _FakeRenderer()
    reset_input = _FakeInput()
    reset = _ResetRecorder()
    clock = _FakeClock()
    runtime = TickerRuntime(
        StaticConfigStore(TickerConfig()),
        providers=_providers(_gecko()),
        renderer=renderer,
        reset_input=reset_input,
        clock=clock,
        factory_reset=reset,
    )
    reset_input.active = True
    await runtime.run_once()
    renderer.take()

    for now, expected in ((2_000, 8), (3_000, 7), (5_000, 5), (9_000, 1)):
        clock.now = now
        await runtime.run_once()
        assert renderer.take() == [("countdown", expected)]

    clock.now = 9_500
    await runtime.run_once()
    assert renderer.take() == []

    clock.now = 10_000
    await runtime.run_once()
    assert reset.calls == 1
    assert runtime.reset_fired

    clock.now = 11_000
    await runtime.run_once()
    assert reset.calls == 1


@pytest.mark.asyncio
async def test_releasing_reset_input_restores_screen() -> None:
    renderer = _FakeRenderer()
    reset_input = _FakeInput()
    reset = _ResetRecorder()
    clock = _FakeClock()
    runtime = TickerRuntime(
        StaticConfigStore(TickerConfig()),
        providers=_providers(_gecko()),
        renderer=renderer,
        reset_input=reset_input,
        clock=clock,
        factory_reset=reset,
    )
    reset_input.active = True
    await runtime.run_once()
    clock.now = 3_000
    await runtime.run_once()
    renderer.take()

    reset_input.active = False
    clock.now = 9_999
    await runtime.run_once()

    assert renderer.take() == [("primary", 65_000.0, 0.01, "CoinGecko", False, True)]
    assert runtime.watchdog.countdown is None
    assert runtime.watchdog.pressed_since is None
    assert reset.calls == 0


@pytest.mark.asyncio
async def test_dual_button_role_takes_over_reset_input() -> None:
    renderer = _FakeRenderer()
    reset_input = _FakeInput()
    reset = _ResetRecorder()
    clock = _FakeClock()
    metrics = SecondaryMetrics(temperature_c=11.5, humidity_pct=80.0)
    config = TickerConfig(secondary_enabled=True, dual_button_role="shows_secondary")
    runtime = TickerRuntime(
        StaticConfigStore(config),
        providers=_providers(_gecko()),
        metrics_provider=_FakeMetrics(metrics),
        renderer=renderer,
        reset_input=reset_input,
        clock=clock,
        factory_reset=reset,
    )
    await runtime.run_once()
    renderer.take()

    reset_input.active = True
    clock.now = 100
    await runtime.run_once()
    assert renderer.take() == [("secondary", metrics, False, True)]

    clock.now = 20_000
    await runtime.run_once()
    assert renderer.take() == []
    assert reset.calls == 0

    reset_input.active = False
    clock.now = 20_100
    await runtime.run_once()
    assert renderer.take()[-1][0] == "primary"
    assert runtime.screen is not None
    assert runtime.screen.active_screen is Screen.PRIMARY


@pytest.mark.asyncio
async def test_cycle_button_switches_screen() -> None:
    renderer = _FakeRenderer()
    cycle_input = _FakeInput()
    clock = _FakeClock()
    metrics = SecondaryMetrics(weather_code=3)
    runtime = TickerRuntime(
        StaticConfigStore(TickerConfig(secondary_enabled=True, button_mode="manual")),
        providers=_providers(_gecko()),
        metrics_provider=_FakeMetrics(metrics),
        renderer=renderer,
        cycle_input=cycle_input,
        clock=clock,
    )
    await runtime.run_once()
    renderer.take()

    cycle_input.active = True
    clock.now = 1_000
    await runtime.run_once()
    cycle_input.active = False
    clock.now = 1_200
    await runtime.run_once()

    assert renderer.take() == [("secondary", metrics, False, True)]


@pytest.mark.asyncio
async def test_invalid_config_update_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    store = StaticConfigStore(TickerConfig(poll_interval_s=60))
    clock = _FakeClock()
    runtime = TickerRuntime(store, providers=_providers(_gecko()), renderer=_FakeRenderer(), clock=clock)
    await runtime.run_once()

    store.replace(TickerConfig(poll_interval_s=0))
    clock.now = 20
    with caplog.at_level(logging.ERROR, logger="pyticker.runtime"):
        await runtime.run_once()

    assert runtime.policy.poll_interval_ms == 60_000
    assert "Ignoring invalid configuration update" in caplog.text


@pytest.mark.asyncio
async def test_orientation_change_re_renders() -> None:
    renderer = _FakeRenderer()
    config = TickerConfig()
    store = StaticConfigStore(config)
    clock = _FakeClock()
    runtime = TickerRuntime(store, providers=_providers(_gecko()), renderer=renderer, clock=clock)
    await runtime.run_once()
    renderer.take()

    store.replace(dataclasses.replace(config, display_flipped=True))
    clock.now = 20
    await runtime.run_once()

    assert renderer.take() == [
        ("orientation", True),
        ("primary", 65_000.0, 0.01, "CoinGecko", False, True),
    ]


@pytest.mark.asyncio
async def test_run_stops_after_factory_reset() -> None:
    reset_input = _FakeInput()
    reset_input.active = True
    reset = _ResetRecorder()
    runtime = TickerRuntime(
        StaticConfigStore(TickerConfig(loop_interval_s=0)),
        providers=_providers(_gecko()),
        renderer=_FakeRenderer(),
        reset_input=reset_input,
        clock=_FakeClock(tick=500),
        factory_reset=reset,
    )

    await runtime.run()

    assert reset.calls == 1
    assert not runtime.running


class _BinaryResponse:
    status = 200

    async def read(self) -> bytes:
        return b'{"bitcoin": {"usd": 65000\xff}}'

    async def __aenter__(self) -> _BinaryResponse:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        return None


class _BinarySession:
    def get(self, url: str, **kwargs: Any) -> _BinaryResponse:
        return _BinaryResponse()


@pytest.mark.asyncio
async def test_undecodable_provider_body_falls_back_to_next_provider() -> None:
    renderer = _FakeRenderer()
    gecko = CoinGeckoProvider(HttpJsonTransport(_BinarySession()), ProviderSymbols())  # type: ignore[arg-type]
    kraken = _FakeProvider(ProviderId.KRAKEN, "Kraken", Quote(value=64_000.0))
    runtime = TickerRuntime(
        StaticConfigStore(TickerConfig(providers=("coingecko", "kraken"))),
        providers={ProviderId.COINGECKO: gecko, ProviderId.KRAKEN: kraken},  # type: ignore[dict-item]
        renderer=renderer,
        clock=_FakeClock(),
    )

    await runtime.run_once()

    assert runtime.acquisition.active_provider is ProviderId.KRAKEN
    assert renderer.calls[-1] == ("primary", 64_000.0, None, "Kraken", False, True)


@pytest.mark.asyncio
async def test_switching_alert_mode_releases_indicator_after_breach_clears() -> None:
    indicator = _FakeIndicator()
    gecko = _gecko()
    config = TickerConfig(high_threshold=1_000, alert_mode="both")
    store = StaticConfigStore(config)
    clock = _FakeClock()
    runtime = TickerRuntime(
        store,
        providers=_providers(gecko),
        renderer=_FakeRenderer(),
        indicator=indicator,
        clock=clock,
    )
    await runtime.run_once()
    assert indicator.levels[-1] is True

    store.replace(dataclasses.replace(config, alert_mode="display"))
    clock.now = 20
    await runtime.run_once()
    assert indicator.levels[-1] is False

    gecko.result = Quote(value=500.0)
    for now in (60_000, 60_020, 60_040, 60_060):
        clock.now = now
        await runtime.run_once()

    assert not runtime.alert.triggered
    assert indicator.levels[-1] is False


@pytest.mark.asyncio
async def test_switching_alert_mode_during_dark_phase_restores_display() -> None:
    renderer = _FakeRenderer()
    config = TickerConfig(high_threshold=1_000, high_pattern="slow", alert_mode="display")
    store = StaticConfigStore(config)
    clock = _FakeClock()
    runtime = TickerRuntime(store, providers=_providers(_gecko()), renderer=renderer, clock=clock)
    await runtime.run_once()
    renderer.take()

    clock.now = 1_000
    await runtime.run_once()
    assert renderer.take() == [("clear",)]

    store.replace(dataclasses.replace(config, alert_mode="indicator"))
    clock.now = 1_100
    await runtime.run_once()
    assert renderer.take() == [("primary", 65_000.0, 0.01, "CoinGecko", False, True)]

    for now in (1_120, 1_140, 2_100):
        clock.now = now
        await runtime.run_once()
    assert ("clear",) not in renderer.take()


@pytest.mark.asyncio
async def test_rejected_config_is_reported_once_and_revert_is_silent(caplog: pytest.LogCaptureFixture) -> None:
    config = TickerConfig(poll_interval_s=60)
    store = StaticConfigStore(config)
    clock = _FakeClock()
    runtime = TickerRuntime(store, providers=_providers(_gecko()), renderer=_FakeRenderer(), clock=clock)
    await runtime.run_once()

    with caplog.at_level(logging.INFO, logger="pyticker.runtime"):
        store.replace(TickerConfig(poll_interval_s=0))
        for now in (20, 40):
            clock.now = now
            await runtime.run_once()

        store.replace(config)
        clock.now = 60
        await runtime.run_once()

    messages = [record.getMessage() for record in caplog.records]
    assert sum("Ignoring invalid configuration update" in message for message in messages) == 1
    assert "Configuration reloaded" not in messages
    assert runtime.policy.poll_interval_ms == 60_000
