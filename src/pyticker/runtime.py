"""Cooperative control loop.

:class:`TickerRuntime` owns every engine state and all collaborators. Each
iteration reads the clock once and runs the engines in a fixed order so no
engine ever sees a half-updated state from another one:

1. acquisition (price, then secondary metrics) when due
2. screen coordinator
3. factory-reset watchdog
4. alert engine

Output ownership follows a fixed priority. The watchdog owns the display
while its countdown is visible. Otherwise a triggered alert that drives the
display owns it. Otherwise the screen coordinator does. The indicator is
only ever written by the alert engine.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Protocol

from pyticker._clock import Clock, MonotonicClock
from pyticker.config import ConfigStore, TickerConfig
from pyticker.engine import alert as alert_engine
from pyticker.engine import screen as screen_engine
from pyticker.engine import watchdog as watchdog_engine
from pyticker.engine.acquisition import initial_acquisition_state, poll, poll_metrics
from pyticker.engine.screen import ScreenInputs, displayed_screen, initial_screen_state
from pyticker.exceptions import TickerConfigError
from pyticker.models.enums import DualButtonRole, ProviderId, Screen
from pyticker.models.quote import SecondaryMetrics
from pyticker.models.state import AcquisitionState, AlertState, ScreenState, WatchdogState
from pyticker.policy import RuntimePolicy
from pyticker.providers.base import MetricsProvider, Provider

_logger = logging.getLogger(__name__)

ResetAction = Callable[[], Awaitable[None] | None]


class Renderer(Protocol):
    """Display collaborator. Pixel layout is entirely its concern."""

    def render_primary(
        self,
        value: float | None,
        change_ratio: float | None,
        provider_label: str,
        stale: bool,
        connected: bool,
    ) -> None:
        ...

    def render_secondary(self, metrics: SecondaryMetrics | None, stale: bool, connected: bool) -> None:
        ...

    def render_countdown(self, seconds: int) -> None:
        ...

    def clear(self) -> None:
        ...

    def set_orientation(self, flipped: bool) -> None:
        ...


class IndicatorOutput(Protocol):
    def set_level(self, on: bool) -> None:
        ...


class DigitalInput(Protocol):
    def is_active(self) -> bool:
        ...


def _display_fields(state: AcquisitionState) -> tuple[Any, ...]:
    return (
        state.has_value,
        state.value,
        state.change_ratio,
        state.is_stale,
        state.active_provider,
        state.connected,
        state.metrics,
        state.metrics_stale,
        state.metrics_connected,
    )


class TickerRuntime:
    """Single-threaded coordinator for acquisition, screens, alerts and reset.

    Usage::

        runtime = TickerRuntime(store, providers=providers, renderer=renderer)
        await runtime.run()
    """

    def __init__(
        self,
        config_store: ConfigStore,
        *,
        providers: Mapping[ProviderId, Provider],
        renderer: Renderer,
        metrics_provider: MetricsProvider | None = None,
        indicator: IndicatorOutput | None = None,
        reset_input: DigitalInput | None = None,
        cycle_input: DigitalInput | None = None,
        clock: Clock | None = None,
        factory_reset: ResetAction | None = None,
    ) -> None:
        self._config_store = config_store
        self._config: TickerConfig = config_store.load()
        self._rejected_config: TickerConfig | None = None
        self._policy = RuntimePolicy.from_config(self._config)
        self._providers = providers
        self._metrics_provider = metrics_provider
        self._renderer = renderer
        self._indicator = indicator
        self._reset_input = reset_input
        self._cycle_input = cycle_input
        self._clock: Clock = clock or MonotonicClock()
        self._factory_reset = factory_reset

        self._acquisition = initial_acquisition_state(self._policy)
        self._screen: ScreenState | None = None
        self._alert = AlertState()
        self._watchdog = WatchdogState()

        self._started = False
        self._running = False
        self._reset_fired = False
        self._display_blank = False

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def policy(self) -> RuntimePolicy:
        return self._policy

    @property
    def acquisition(self) -> AcquisitionState:
        return self._acquisition

    @property
    def screen(self) -> ScreenState | None:
        return self._screen

    @property
    def alert(self) -> AlertState:
        return self._alert

    @property
    def watchdog(self) -> WatchdogState:
        return self._watchdog

    @property
    def reset_fired(self) -> bool:
        return self._reset_fired

    @property
    def running(self) -> bool:
        return self._running

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Loop until :meth:`stop` is called or the factory reset fires."""
        self._running = True
        _logger.info("Ticker runtime started with providers %s", ", ".join(self._policy.providers))
        while self._running:
            await self.run_once()
            if self._running:
                await asyncio.sleep(self._policy.loop_interval_s)
        _logger.info("Ticker runtime stopped")

    def stop(self) -> None:
        self._running = False

    async def run_once(self) -> None:
        """Execute one control-loop iteration."""
        if self._reset_fired:
            return
        self._reload_policy()
        policy = self._policy
        now = self._clock.now_ms()

        if not self._started:
            self._start(policy, now)
        assert self._screen is not None  # noqa: S101

        previous = self._acquisition
        acquisition = await poll(previous, self._providers, policy, now)
        acquisition = await poll_metrics(acquisition, self._metrics_provider, policy, now)
        self._acquisition = acquisition
        data_changed = _display_fields(previous) != _display_fields(acquisition)

        reset_level = self._reset_input.is_active() if self._reset_input is not None else False
        cycle_level = self._cycle_input.is_active() if self._cycle_input is not None else False
        shared = policy.dual_button_role is not DualButtonRole.NONE

        self._screen, screen_render = screen_engine.step(
            self._screen,
            policy,
            now,
            ScreenInputs(dual_button=reset_level and shared, cycle_button=cycle_level),
        )
        self._watchdog, watchdog_out = watchdog_engine.step(self._watchdog, policy, now, reset_level and not shared)
        self._alert, alert_out = alert_engine.step(self._alert, policy, now, acquisition)

        if watchdog_out.reset:
            await self._fire_reset()
            return

        if alert_out.indicator_level is not None and self._indicator is not None:
            self._indicator.set_level(alert_out.indicator_level)

        if watchdog_out.armed:
            if watchdog_out.countdown is not None:
                self._renderer.render_countdown(watchdog_out.countdown)
            return

        needs_render = (
            screen_render is not None or data_changed or watchdog_out.cancelled or alert_out.restore_display
        )
        self._apply_display(policy, alert_out, needs_render)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _start(self, policy: RuntimePolicy, now: int) -> None:
        self._screen = initial_screen_state(policy, now)
        self._renderer.set_orientation(policy.display_flipped)
        if self._indicator is not None:
            self._indicator.set_level(alert_engine.indicator_level(False, policy))
        self._render_current(policy)
        self._started = True

    def _reload_policy(self) -> None:
        config = self._config_store.load()
        if config == self._config or config == self._rejected_config:
            return
        try:
            policy = RuntimePolicy.from_config(config)
        except TickerConfigError as exc:
            _logger.error("Ignoring invalid configuration update: %s", exc)
            self._rejected_config = config
            return
        self._rejected_config = None
        _logger.info("Configuration reloaded")
        flipped = policy.display_flipped != self._policy.display_flipped
        self._config = config
        self._policy = policy
        if flipped and self._started:
            self._renderer.set_orientation(policy.display_flipped)
            self._render_current(policy)

    def _apply_display(self, policy: RuntimePolicy, outputs: alert_engine.AlertOutputs, needs_render: bool) -> None:
        if outputs.display_visible is False:
            self._renderer.clear()
            self._display_blank = True
            return
        if outputs.display_visible is True:
            self._display_blank = False
            self._render_current(policy)
            return
        if not needs_render:
            return
        if self._display_blank and outputs.active:
            # Blink is in its dark phase; the next visible phase re-renders.
            self._renderer.clear()
            return
        self._display_blank = False
        self._render_current(policy)

    def _render_current(self, policy: RuntimePolicy) -> None:
        assert self._screen is not None  # noqa: S101
        acquisition = self._acquisition
        if displayed_screen(self._screen, policy) is Screen.SECONDARY:
            self._renderer.render_secondary(
                acquisition.metrics,
                acquisition.metrics_stale,
                acquisition.metrics_connected,
            )
            return
        provider = self._providers.get(acquisition.active_provider)
        label = provider.label if provider is not None else str(acquisition.active_provider)
        self._renderer.render_primary(
            acquisition.value if acquisition.has_value else None,
            acquisition.change_ratio,
            label,
            acquisition.is_stale,
            acquisition.connected,
        )

    async def _fire_reset(self) -> None:
        self._reset_fired = True
        self._running = False
        _logger.warning("Factory reset requested")
        if self._factory_reset is None:
            return
        result = self._factory_reset()
        if inspect.isawaitable(result):
            await result
