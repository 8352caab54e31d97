"""Per-engine state snapshots.

Each engine owns exactly one of these models. They are frozen; engines
return updated copies (``model_copy(update=...)``) and the runtime threads
the latest copy into the next iteration. Timestamps are 32-bit millisecond
counter values from :mod:`pyticker._clock`.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pyticker.models.enums import AlertMode, AlertPattern, ButtonMode, DualButtonRole, ProviderId, Screen
from pyticker.models.quote import SecondaryMetrics

_STATE_CONFIG = ConfigDict(frozen=True, extra="forbid")


class AcquisitionState(BaseModel):
    """Cached price and secondary metrics plus provider bookkeeping.

    ``is_stale`` is true iff ``has_value`` and more than three poll
    intervals passed since ``last_success_at``. The same rule applies to
    ``metrics_stale`` with the secondary poll interval.
    """

    model_config = _STATE_CONFIG

    value: float = 0.0
    change_ratio: float | None = None
    has_value: bool = False
    is_stale: bool = False
    active_provider: ProviderId
    provider_since: int = 0
    consecutive_failures: int = 0
    last_success_at: int = 0
    last_poll_at: int | None = None

    metrics: SecondaryMetrics | None = None
    metrics_stale: bool = False
    metrics_failures: int = 0
    metrics_last_success_at: int = 0
    metrics_last_poll_at: int | None = None

    @property
    def connected(self) -> bool:
        """Whether the most recent price poll succeeded."""
        return self.has_value and self.consecutive_failures == 0

    @property
    def metrics_connected(self) -> bool:
        return self.metrics is not None and self.metrics_failures == 0


class ScreenState(BaseModel):
    """Visible screen and button bookkeeping."""

    model_config = _STATE_CONFIG

    active_screen: Screen = Screen.PRIMARY
    last_switch_at: int = 0
    button_mode: ButtonMode = ButtonMode.AUTO_CYCLE
    dual_button_role: DualButtonRole = DualButtonRole.NONE
    hold_active: bool = False
    """Dual-purpose button was held on the previous step."""
    release_started_at: int | None = None
    """Pending revert countdown after the dual-purpose button was released."""
    cycle_pressed_at: int | None = None
    """Press start of the cycle button, ``None`` while released."""
    one_shot: bool = False
    """AlwaysSecondary: Primary is shown for one window without changing ``active_screen``."""


class AlertState(BaseModel):
    """Threshold alert latch and blink timing."""

    model_config = _STATE_CONFIG

    triggered: bool = False
    started_at: int | None = None
    pattern: AlertPattern = AlertPattern.SLOW
    mode: AlertMode = AlertMode.DISPLAY
    blink_visible: bool = True
    sos_step: int = Field(default=0, ge=0, le=17)
    last_step_at: int = 0
    cleaned_up: bool = True


class WatchdogState(BaseModel):
    """Hold tracking for the factory-reset input."""

    model_config = _STATE_CONFIG

    pressed_since: int | None = None
    countdown: int | None = None
    fired: bool = False
