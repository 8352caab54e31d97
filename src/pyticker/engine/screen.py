"""Screen coordinator.

Owns which logical screen is visible. ``step`` is pure: it takes the
previous :class:`ScreenState`, the policy, the clock and the raw input
levels, and returns the next state plus the screen to render *now*. A
render is only requested on a transition, never on every iteration.

Button handling:

* The dual-purpose button (the factory-reset input, when repurposed) shows
  its target screen while held and reverts to the home screen on release,
  either immediately or after ``dual_button_timeout_ms``. A new hold cancels
  a pending revert.
* The cycle button acts on short presses only: released after at least
  ``cycle_press_min_ms`` and before ``cycle_press_max_ms``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from pyticker._clock import elapsed_ms
from pyticker.models.enums import ButtonMode, DualButtonRole, Screen
from pyticker.models.state import ScreenState
from pyticker.policy import RuntimePolicy

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScreenInputs:
    """Raw input levels sampled for one iteration."""

    dual_button: bool = False
    cycle_button: bool = False


def _clamp(screen: Screen, policy: RuntimePolicy) -> Screen:
    if screen is Screen.SECONDARY and not policy.secondary_enabled:
        return Screen.PRIMARY
    return screen


def initial_screen_state(policy: RuntimePolicy, now: int) -> ScreenState:
    return ScreenState(
        active_screen=policy.home_screen,
        last_switch_at=now,
        button_mode=policy.button_mode,
        dual_button_role=policy.dual_button_role,
    )


def displayed_screen(state: ScreenState, policy: RuntimePolicy) -> Screen:
    """Screen that is actually on the display."""
    if state.one_shot:
        return Screen.PRIMARY
    return _clamp(state.active_screen, policy)


def _switch(state: ScreenState, screen: Screen, now: int) -> tuple[ScreenState, Screen | None]:
    if screen is state.active_screen and not state.one_shot:
        return state, None
    _logger.debug("Screen %s -> %s", state.active_screen, screen)
    return state.model_copy(update={"active_screen": screen, "last_switch_at": now, "one_shot": False}), screen


def _dual_button(
    state: ScreenState,
    policy: RuntimePolicy,
    now: int,
    pressed: bool,
) -> tuple[ScreenState, Screen | None]:
    home = policy.home_screen
    if policy.dual_button_role is DualButtonRole.SHOWS_SECONDARY:
        target = Screen.SECONDARY
    else:
        target = Screen.PRIMARY
    target = _clamp(target, policy)

    if pressed and not state.hold_active:
        state = state.model_copy(update={"hold_active": True, "release_started_at": None})
        return _switch(state, target, now)

    if not pressed and state.hold_active:
        if policy.dual_button_timeout_ms == 0:
            state = state.model_copy(update={"hold_active": False})
            return _switch(state, home, now)
        return state.model_copy(update={"hold_active": False, "release_started_at": now}), None

    if (
        not pressed
        and state.release_started_at is not None
        and elapsed_ms(now, state.release_started_at) >= policy.dual_button_timeout_ms
    ):
        state = state.model_copy(update={"release_started_at": None})
        return _switch(state, home, now)

    return state, None


def _short_press(state: ScreenState, policy: RuntimePolicy, now: int) -> tuple[ScreenState, Screen | None]:
    if not policy.secondary_enabled:
        return state, None

    if policy.button_mode is ButtonMode.ALWAYS_SECONDARY:
        if state.one_shot:
            state = state.model_copy(update={"one_shot": False, "last_switch_at": now})
            return state, state.active_screen
        return state.model_copy(update={"one_shot": True, "last_switch_at": now}), Screen.PRIMARY

    # AutoCycle, OnDemand and Manual all toggle; the timers decide what
    # happens afterwards.
    return _switch(state, state.active_screen.other, now)


def _cycle_button(
    state: ScreenState,
    policy: RuntimePolicy,
    now: int,
    pressed: bool,
) -> tuple[ScreenState, Screen | None]:
    if pressed:
        if state.cycle_pressed_at is None:
            return state.model_copy(update={"cycle_pressed_at": now}), None
        return state, None

    if state.cycle_pressed_at is None:
        return state, None

    held = elapsed_ms(now, state.cycle_pressed_at)
    state = state.model_copy(update={"cycle_pressed_at": None})
    if not policy.cycle_press_min_ms <= held < policy.cycle_press_max_ms:
        _logger.debug("Ignoring cycle button hold of %d ms", held)
        return state, None
    return _short_press(state, policy, now)


def _timers(state: ScreenState, policy: RuntimePolicy, now: int) -> tuple[ScreenState, Screen | None]:
    since = elapsed_ms(now, state.last_switch_at)
    mode = policy.button_mode

    if mode is ButtonMode.AUTO_CYCLE:
        if not policy.secondary_enabled:
            return state, None
        if since >= policy.screen_duration_ms(state.active_screen):
            return _switch(state, state.active_screen.other, now)
        return state, None

    if mode is ButtonMode.ON_DEMAND:
        if state.active_screen is Screen.SECONDARY and since >= policy.secondary_duration_ms:
            return _switch(state, Screen.PRIMARY, now)
        return state, None

    if mode is ButtonMode.ALWAYS_SECONDARY:
        if state.one_shot and since >= policy.primary_duration_ms:
            state = state.model_copy(update={"one_shot": False, "last_switch_at": now})
            return state, state.active_screen
        return state, None

    return state, None


def step(
    state: ScreenState,
    policy: RuntimePolicy,
    now: int,
    inputs: ScreenInputs,
) -> tuple[ScreenState, Screen | None]:
    """Advance the coordinator by one iteration.

    Returns the next state and the screen to render now, or ``None`` when
    nothing changed.
    """
    render: Screen | None = None
    if state.button_mode is not policy.button_mode or state.dual_button_role is not policy.dual_button_role:
        _logger.info("Screen policy changed to %s/%s", policy.button_mode, policy.dual_button_role)
        state = initial_screen_state(policy, now)
        render = state.active_screen

    if policy.dual_button_role is not DualButtonRole.NONE:
        state, changed = _dual_button(state, policy, now, inputs.dual_button)
        render = changed or render

    state, changed = _cycle_button(state, policy, now, inputs.cycle_button)
    render = changed or render

    state, changed = _timers(state, policy, now)
    render = changed or render

    if render is not None:
        render = displayed_screen(state, policy)
    return state, render
