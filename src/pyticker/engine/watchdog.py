"""Factory-reset watchdog.

Tracks how long the reset input has been held. Past the countdown threshold
it takes over the display with the seconds remaining; at the hold threshold
it requests the reset exactly once. Releasing earlier leaves no trace.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pyticker._clock import elapsed_ms
from pyticker.models.state import WatchdogState
from pyticker.policy import RuntimePolicy

_logger = logging.getLogger(__name__)

_IDLE = WatchdogState()


@dataclass(frozen=True)
class WatchdogOutputs:
    countdown: int | None = None
    """Seconds remaining to render, only when the value changed."""
    armed: bool = False
    """Countdown window reached; other screen updates are suppressed."""
    reset: bool = False
    cancelled: bool = False
    """A visible countdown was abandoned; the normal screen must be restored."""


def step(
    state: WatchdogState,
    policy: RuntimePolicy,
    now: int,
    pressed: bool,
) -> tuple[WatchdogState, WatchdogOutputs]:
    if not policy.factory_reset_enabled or not pressed:
        if state.countdown is not None:
            _logger.info("Factory reset cancelled")
            return _IDLE, WatchdogOutputs(cancelled=True)
        return _IDLE, WatchdogOutputs()

    if state.pressed_since is None:
        return state.model_copy(update={"pressed_since": now}), WatchdogOutputs()

    held = elapsed_ms(now, state.pressed_since)
    if held >= policy.factory_reset_hold_ms:
        if state.fired:
            return state, WatchdogOutputs(armed=True)
        _logger.warning("Reset input held for %d ms; factory reset", held)
        return state.model_copy(update={"fired": True}), WatchdogOutputs(armed=True, reset=True)

    if held < policy.factory_reset_countdown_ms:
        return state, WatchdogOutputs()

    remaining = policy.factory_reset_hold_ms // 1000 - held // 1000
    if remaining == state.countdown:
        return state, WatchdogOutputs(armed=True)
    if state.countdown is None:
        _logger.info("Factory reset countdown started")
    return state.model_copy(update={"countdown": remaining}), WatchdogOutputs(countdown=remaining, armed=True)
