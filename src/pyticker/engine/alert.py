"""Threshold alert engine.

Evaluates the thresholds against the latest acquired value, latches the
alert, and produces blink output for the display and/or the indicator.

Latch semantics: ``started_at`` is set when a breach begins and cleared
only when the breach ends. With a duration cutoff the alert stops blinking
once the cutoff passes but keeps ``started_at``, so the same continuous
breach cannot re-arm it. The breach has to clear and happen again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import NamedTuple

from pyticker._clock import elapsed_ms
from pyticker._constants import (
    BLINK_PERIOD_FAST_MS,
    BLINK_PERIOD_SLOW_MS,
    BLINK_PERIOD_STROBE_MS,
    SOS_GAP_MS,
    SOS_LETTER_GAP_MS,
    SOS_LONG_MS,
    SOS_PAUSE_MS,
    SOS_RESYNC_MS,
    SOS_SHORT_MS,
)
from pyticker.models.enums import AlertMode, AlertPattern
from pyticker.models.state import AcquisitionState, AlertState
from pyticker.policy import RuntimePolicy

_logger = logging.getLogger(__name__)


class SosStep(NamedTuple):
    visible: bool
    duration_ms: int


def _letter(on_ms: int, trailing_gap_ms: int) -> tuple[SosStep, ...]:
    return (
        SosStep(True, on_ms),
        SosStep(False, SOS_GAP_MS),
        SosStep(True, on_ms),
        SosStep(False, SOS_GAP_MS),
        SosStep(True, on_ms),
        SosStep(False, trailing_gap_ms),
    )


#: ``... --- ...`` followed by the inter-cycle pause.
SOS_STEPS: tuple[SosStep, ...] = (
    _letter(SOS_SHORT_MS, SOS_LETTER_GAP_MS)
    + _letter(SOS_LONG_MS, SOS_LETTER_GAP_MS)
    + _letter(SOS_SHORT_MS, SOS_PAUSE_MS)
)

BLINK_PERIODS_MS: dict[AlertPattern, int] = {
    AlertPattern.SLOW: BLINK_PERIOD_SLOW_MS,
    AlertPattern.FAST: BLINK_PERIOD_FAST_MS,
    AlertPattern.STROBE: BLINK_PERIOD_STROBE_MS,
}


@dataclass(frozen=True)
class AlertOutputs:
    """What the runtime has to write this iteration.

    ``None`` means "leave that output alone". ``indicator_level`` is already
    polarity-corrected.
    """

    active: bool = False
    display_visible: bool | None = None
    indicator_level: bool | None = None
    restore_display: bool = False


def breached_pattern(acquisition: AcquisitionState, policy: RuntimePolicy) -> AlertPattern | None:
    """Pattern of the breached threshold, or ``None`` when within limits.

    The low threshold is checked first and wins if both apply.
    """
    if not acquisition.has_value:
        return None
    value = acquisition.value
    if policy.low_threshold > 0 and value < policy.low_threshold:
        return policy.low_pattern
    if policy.high_threshold > 0 and value > policy.high_threshold:
        return policy.high_pattern
    return None


def indicator_level(visible: bool, policy: RuntimePolicy) -> bool:
    return visible != policy.indicator_active_low


def _outputs(state: AlertState, policy: RuntimePolicy) -> AlertOutputs:
    mode = policy.alert_mode
    return AlertOutputs(
        active=True,
        display_visible=state.blink_visible if mode.drives_display else None,
        indicator_level=indicator_level(state.blink_visible, policy) if mode.drives_indicator else None,
    )


def _start(state: AlertState, pattern: AlertPattern, policy: RuntimePolicy, now: int) -> AlertState:
    visible = SOS_STEPS[0].visible if pattern is AlertPattern.SOS else True
    return state.model_copy(
        update={
            "triggered": True,
            "started_at": now,
            "pattern": pattern,
            "mode": policy.alert_mode,
            "blink_visible": visible,
            "sos_step": 0,
            "last_step_at": now,
            "cleaned_up": False,
        }
    )


def _advance_sos(state: AlertState, now: int) -> AlertState:
    since = elapsed_ms(now, state.last_step_at)
    if since > SOS_RESYNC_MS:
        return state.model_copy(
            update={"sos_step": 0, "blink_visible": SOS_STEPS[0].visible, "last_step_at": now}
        )
    if since < SOS_STEPS[state.sos_step].duration_ms:
        return state
    step_index = (state.sos_step + 1) % len(SOS_STEPS)
    return state.model_copy(
        update={"sos_step": step_index, "blink_visible": SOS_STEPS[step_index].visible, "last_step_at": now}
    )


def _advance_blink(state: AlertState, now: int) -> AlertState:
    if state.pattern is AlertPattern.SOS:
        return _advance_sos(state, now)
    if elapsed_ms(now, state.last_step_at) < BLINK_PERIODS_MS[state.pattern]:
        return state
    return state.model_copy(update={"blink_visible": not state.blink_visible, "last_step_at": now})


def _cleanup(state: AlertState, policy: RuntimePolicy) -> tuple[AlertState, AlertOutputs]:
    if state.cleaned_up:
        return state, AlertOutputs()
    # Release what the alert drove, even if the configured mode changed since.
    mode = state.mode
    outputs = AlertOutputs(
        display_visible=True if mode.drives_display else None,
        indicator_level=indicator_level(False, policy) if mode.drives_indicator else None,
        restore_display=mode.drives_display,
    )
    return state.model_copy(update={"cleaned_up": True, "blink_visible": True, "sos_step": 0}), outputs


def _release_previous_mode(previous: AlertMode, outputs: AlertOutputs, policy: RuntimePolicy) -> AlertOutputs:
    """Add steady-state writes for outputs only the previous mode drove."""
    mode = policy.alert_mode
    if previous.drives_indicator and not mode.drives_indicator:
        outputs = replace(outputs, indicator_level=indicator_level(False, policy))
    if previous.drives_display and not mode.drives_display:
        outputs = replace(outputs, display_visible=True, restore_display=True)
    return outputs


def step(
    state: AlertState,
    policy: RuntimePolicy,
    now: int,
    acquisition: AcquisitionState,
) -> tuple[AlertState, AlertOutputs]:
    """Advance the alert by one iteration."""
    pattern = breached_pattern(acquisition, policy)

    if pattern is None:
        if state.started_at is not None:
            _logger.info("Alert cleared at value %s", acquisition.value)
            state = state.model_copy(update={"triggered": False, "started_at": None})
        return _cleanup(state, policy)

    if state.started_at is None:
        _logger.info("Alert triggered at value %s (%s pattern)", acquisition.value, pattern)
        state = _start(state, pattern, policy, now)
        return state, _outputs(state, policy)

    if not state.triggered:
        # Cut off earlier during this same breach.
        return _cleanup(state, policy)

    if policy.alert_duration_ms > 0 and elapsed_ms(now, state.started_at) >= policy.alert_duration_ms:
        _logger.info("Alert duration of %d ms elapsed; blinking stopped", policy.alert_duration_ms)
        state = state.model_copy(update={"triggered": False})
        return _cleanup(state, policy)

    if pattern is not state.pattern or policy.alert_mode is not state.mode:
        # Crossed from one threshold to the other, or the mode changed.
        previous = state.mode
        state = _start(state, pattern, policy, now).model_copy(update={"started_at": state.started_at})
        return state, _release_previous_mode(previous, _outputs(state, policy), policy)

    advanced = _advance_blink(state, now)
    if advanced.blink_visible == state.blink_visible:
        return advanced, AlertOutputs(active=True)
    return advanced, _outputs(advanced, policy)
