"""Canonical runtime policy.

:class:`RuntimePolicy` is the single normalization step between a raw
:class:`~pyticker.config.TickerConfig` snapshot and the engines. It converts
durations to integer milliseconds, parses enum knobs, rejects invalid values
and reconciles mutually exclusive flags with a fixed precedence:

1. A dual-purpose button role forces manual screen switching and disables the
   factory reset, because both use the same physical input.
2. ``prefer``/``only`` without a usable provider falls back to ``auto``.
3. ``always_secondary`` without the secondary feature becomes ``auto_cycle``.

Engines never re-check these rules.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from pyticker.config import TickerConfig
from pyticker.exceptions import TickerConfigError
from pyticker.models.enums import AlertMode, AlertPattern, ButtonMode, DualButtonRole, ProviderId, ProviderMode, Screen

_logger = logging.getLogger(__name__)

#: Staleness is declared after this many poll intervals without a success.
STALE_POLL_INTERVALS = 3


def _ms(seconds: float) -> int:
    return int(round(float(seconds) * 1000))


class RuntimePolicy(BaseModel):
    """Validated, self-consistent policy consumed by all engines."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    providers: tuple[ProviderId, ...] = Field(min_length=1)
    provider_mode: ProviderMode = ProviderMode.AUTO
    provider: ProviderId | None = None
    poll_interval_ms: int = Field(default=60_000, gt=0)
    provider_timeout_ms: int = Field(default=5_000, gt=0)
    provider_reset_ms: int = Field(default=0, ge=0)

    secondary_enabled: bool = False
    secondary_poll_interval_ms: int = Field(default=600_000, gt=0)

    primary_duration_ms: int = Field(default=120_000, gt=0)
    secondary_duration_ms: int = Field(default=10_000, gt=0)
    button_mode: ButtonMode = ButtonMode.AUTO_CYCLE
    dual_button_role: DualButtonRole = DualButtonRole.NONE
    dual_button_timeout_ms: int = Field(default=0, ge=0)
    cycle_press_min_ms: int = Field(default=50, ge=0)
    cycle_press_max_ms: int = Field(default=1_000, gt=0)

    low_threshold: float = Field(default=0.0, ge=0)
    high_threshold: float = Field(default=0.0, ge=0)
    low_pattern: AlertPattern = AlertPattern.FAST
    high_pattern: AlertPattern = AlertPattern.SLOW
    alert_mode: AlertMode = AlertMode.DISPLAY
    alert_duration_ms: int = Field(default=0, ge=0)
    indicator_active_low: bool = False

    factory_reset_enabled: bool = True
    factory_reset_hold_ms: int = Field(default=10_000, gt=0)
    factory_reset_countdown_ms: int = Field(default=2_000, ge=0)

    display_flipped: bool = False
    loop_interval_s: float = Field(default=0.02, ge=0)

    @field_validator("providers", mode="before")
    @classmethod
    def _dedupe_providers(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = [value]
        if not isinstance(value, (list, tuple)):
            return value
        seen: list[Any] = []
        for item in value:
            if item not in seen:
                seen.append(item)
        return tuple(seen)

    @model_validator(mode="after")
    def _reconcile(self) -> RuntimePolicy:
        if self.cycle_press_min_ms >= self.cycle_press_max_ms:
            raise ValueError("cycle_press_min_ms must be lower than cycle_press_max_ms")
        if self.factory_reset_countdown_ms >= self.factory_reset_hold_ms:
            raise ValueError("factory_reset_countdown must be shorter than factory_reset_hold")

        # Frozen model: adjust fields in place during validation only.
        if self.dual_button_role is not DualButtonRole.NONE:
            if self.button_mode is not ButtonMode.MANUAL:
                _logger.warning(
                    "Dual-purpose button role %s forces manual screen mode (was %s)",
                    self.dual_button_role,
                    self.button_mode,
                )
                object.__setattr__(self, "button_mode", ButtonMode.MANUAL)
            if self.factory_reset_enabled:
                _logger.warning("Dual-purpose button shares the reset input; factory reset disabled")
                object.__setattr__(self, "factory_reset_enabled", False)

        if self.provider_mode is not ProviderMode.AUTO and self.provider not in self.providers:
            _logger.warning(
                "Provider mode %s needs a configured provider (got %r); using auto",
                self.provider_mode,
                self.provider,
            )
            object.__setattr__(self, "provider_mode", ProviderMode.AUTO)

        if not self.secondary_enabled and self.button_mode is ButtonMode.ALWAYS_SECONDARY:
            _logger.warning("always_secondary needs the secondary screen; using auto_cycle")
            object.__setattr__(self, "button_mode", ButtonMode.AUTO_CYCLE)
        return self

    @classmethod
    def from_config(cls, config: TickerConfig) -> RuntimePolicy:
        """Validate and normalize a raw configuration snapshot.

        Raises
        ------
        TickerConfigError
            If any value is out of range or unknown.
        """
        data: dict[str, Any] = {
            "providers": config.providers,
            "provider_mode": config.provider_mode,
            "provider": config.provider or None,
            "poll_interval_ms": _ms(config.poll_interval_s),
            "provider_timeout_ms": _ms(config.provider_timeout_s),
            "provider_reset_ms": _ms(config.provider_reset_s),
            "secondary_enabled": config.secondary_enabled,
            "secondary_poll_interval_ms": _ms(config.secondary_poll_interval_s),
            "primary_duration_ms": _ms(config.primary_duration_s),
            "secondary_duration_ms": _ms(config.secondary_duration_s),
            "button_mode": config.button_mode,
            "dual_button_role": config.dual_button_role,
            "dual_button_timeout_ms": _ms(config.dual_button_timeout_s),
            "cycle_press_min_ms": config.cycle_press_min_ms,
            "cycle_press_max_ms": config.cycle_press_max_ms,
            "low_threshold": config.low_threshold,
            "high_threshold": config.high_threshold,
            "low_pattern": config.low_pattern,
            "high_pattern": config.high_pattern,
            "alert_mode": config.alert_mode,
            "alert_duration_ms": _ms(config.alert_duration_s),
            "indicator_active_low": config.indicator_active_low,
            "factory_reset_enabled": config.factory_reset_enabled,
            "factory_reset_hold_ms": _ms(config.factory_reset_hold_s),
            "factory_reset_countdown_ms": _ms(config.factory_reset_countdown_s),
            "display_flipped": config.display_flipped,
            "loop_interval_s": config.loop_interval_s,
        }
        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise TickerConfigError(f"Invalid ticker configuration: {exc}") from exc

    @property
    def preferred_provider(self) -> ProviderId:
        """Provider every poll starts with (before sticky fallback)."""
        if self.provider_mode is ProviderMode.AUTO or self.provider is None:
            return self.providers[0]
        return self.provider

    @property
    def stale_after_ms(self) -> int:
        return STALE_POLL_INTERVALS * self.poll_interval_ms

    @property
    def metrics_stale_after_ms(self) -> int:
        return STALE_POLL_INTERVALS * self.secondary_poll_interval_ms

    @property
    def home_screen(self) -> Screen:
        """Screen shown when no button or timer has selected another one."""
        if not self.secondary_enabled:
            return Screen.PRIMARY
        if self.dual_button_role is DualButtonRole.SHOWS_PRIMARY:
            return Screen.SECONDARY
        if self.button_mode is ButtonMode.ALWAYS_SECONDARY:
            return Screen.SECONDARY
        return Screen.PRIMARY

    def screen_duration_ms(self, screen: Screen) -> int:
        if screen is Screen.SECONDARY:
            return self.secondary_duration_ms
        return self.primary_duration_ms
