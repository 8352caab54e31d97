"""Ticker configuration for pyticker."""

from __future__ import annotations

import dataclasses
import os
from typing import Any, Protocol


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_list(value: str) -> tuple[str, ...]:
    return tuple(item.strip() for item in value.split(",") if item.strip())


@dataclasses.dataclass(frozen=True)
class ProviderSymbols:
    """Instrument identifiers used by each price provider.

    The providers name the same market differently, so each one gets its
    own identifier. ``currency`` is the quote currency used by CoinGecko.
    """

    coingecko_id: str = "bitcoin"
    currency: str = "usd"
    binance_symbol: str = "BTCUSDT"
    kraken_pair: str = "XBTUSD"
    coinbase_product: str = "BTC-USD"
    coingecko_api_key: str | None = None


@dataclasses.dataclass(frozen=True)
class TickerConfig:
    """Raw configuration snapshot.

    Values are stored exactly as configured; :class:`pyticker.policy.RuntimePolicy`
    validates them and reconciles conflicting flags.

    Parameters
    ----------
    providers : tuple of str
        Configured provider set in ring order. The first entry is the
        primary provider.
    provider_mode : str
        ``"auto"`` starts every poll at the primary provider, ``"prefer"``
        starts at ``provider``, ``"only"`` queries ``provider`` alone.
    provider : str or None
        Provider used by ``prefer`` and ``only``.
    poll_interval_s : float
        Minimum time between price polls.
    provider_timeout_s : float
        Upper bound for a single provider attempt.
    provider_reset_s : float
        ``0`` keeps the ring anchored at the preferred provider. A positive
        value lets a fallback provider that succeeded stay first in the ring
        for this long before the preferred provider is tried first again.
    symbols : ProviderSymbols
        Per-provider instrument identifiers.
    secondary_enabled : bool
        Enable the secondary (weather) screen and its acquisition.
    latitude, longitude : float
        Weather location.
    secondary_poll_interval_s : float
        Minimum time between weather polls.
    primary_duration_s, secondary_duration_s : float
        Visible time per screen in auto-cycle mode. ``secondary_duration_s``
        is also the on-demand window.
    button_mode : str
        ``"auto_cycle"``, ``"always_secondary"``, ``"on_demand"`` or ``"manual"``.
    dual_button_role : str
        ``"none"``, ``"shows_secondary"`` or ``"shows_primary"``. Any role
        other than ``"none"`` repurposes the factory-reset input.
    dual_button_timeout_s : float
        Delay before reverting to the home screen after the dual-purpose
        button is released. ``0`` reverts immediately.
    cycle_press_min_ms, cycle_press_max_ms : int
        A cycle-button press counts when it lasts at least the minimum and
        less than the maximum.
    low_threshold, high_threshold : float
        Alert thresholds; ``0`` disables each one.
    low_pattern, high_pattern : str
        Blink pattern per threshold: ``"slow"``, ``"fast"``, ``"strobe"``, ``"sos"``.
    alert_mode : str
        ``"display"``, ``"indicator"`` or ``"both"``.
    alert_duration_s : float
        Stop blinking after this long; ``0`` blinks until the breach clears.
    indicator_active_low : bool
        Indicator output is lit by a low level.
    factory_reset_enabled : bool
        Hold-to-reset on the dedicated input.
    factory_reset_hold_s, factory_reset_countdown_s : float
        Hold time that fires the reset, and the point where the countdown
        becomes visible.
    display_flipped : bool
        Rotate the display by 180 degrees.
    loop_interval_s : float
        Pause between control-loop iterations.
    """

    providers: tuple[str, ...] = ("coingecko", "binance", "kraken", "coinbase")
    provider_mode: str = "auto"
    provider: str | None = None
    poll_interval_s: float = 60.0
    provider_timeout_s: float = 5.0
    provider_reset_s: float = 0.0
    symbols: ProviderSymbols = dataclasses.field(default_factory=ProviderSymbols)
    secondary_enabled: bool = False
    latitude: float = 52.37
    longitude: float = 4.90
    secondary_poll_interval_s: float = 600.0
    primary_duration_s: float = 120.0
    secondary_duration_s: float = 10.0
    button_mode: str = "auto_cycle"
    dual_button_role: str = "none"
    dual_button_timeout_s: float = 0.0
    cycle_press_min_ms: int = 50
    cycle_press_max_ms: int = 1000
    low_threshold: float = 0.0
    high_threshold: float = 0.0
    low_pattern: str = "fast"
    high_pattern: str = "slow"
    alert_mode: str = "display"
    alert_duration_s: float = 0.0
    indicator_active_low: bool = False
    factory_reset_enabled: bool = True
    factory_reset_hold_s: float = 10.0
    factory_reset_countdown_s: float = 2.0
    display_flipped: bool = False
    loop_interval_s: float = 0.02

    @classmethod
    def from_env(cls, **overrides: Any) -> TickerConfig:
        """Create configuration from environment variables.

        Reads optional ``TICKER_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        TickerConfig
            Populated configuration.
        """
        env = os.environ

        symbol_kwargs: dict[str, str] = {}
        _ENV_SYMBOL_MAP = {
            "TICKER_COINGECKO_ID": "coingecko_id",
            "TICKER_CURRENCY": "currency",
            "TICKER_BINANCE_SYMBOL": "binance_symbol",
            "TICKER_KRAKEN_PAIR": "kraken_pair",
            "TICKER_COINBASE_PRODUCT": "coinbase_product",
            "TICKER_COINGECKO_API_KEY": "coingecko_api_key",
        }
        for env_key, field_name in _ENV_SYMBOL_MAP.items():
            val = env.get(env_key)
            if val is not None:
                symbol_kwargs[field_name] = val

        # Allow overriding symbol fields via a nested dict
        symbol_overrides = overrides.pop("symbols", None)
        if isinstance(symbol_overrides, dict):
            symbol_kwargs.update(symbol_overrides)
        elif isinstance(symbol_overrides, ProviderSymbols):
            symbol_kwargs = dataclasses.asdict(symbol_overrides)

        config_kwargs: dict[str, Any] = {"symbols": ProviderSymbols(**symbol_kwargs)}

        _ENV_STR_MAP = {
            "TICKER_PROVIDER_MODE": "provider_mode",
            "TICKER_PROVIDER": "provider",
            "TICKER_BUTTON_MODE": "button_mode",
            "TICKER_DUAL_BUTTON_ROLE": "dual_button_role",
            "TICKER_LOW_PATTERN": "low_pattern",
            "TICKER_HIGH_PATTERN": "high_pattern",
            "TICKER_ALERT_MODE": "alert_mode",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val.strip().lower()

        providers_env = env.get("TICKER_PROVIDERS")
        if providers_env is not None:
            config_kwargs["providers"] = _env_list(providers_env.lower())

        _ENV_FLOAT_MAP = {
            "TICKER_POLL_INTERVAL_S": "poll_interval_s",
            "TICKER_PROVIDER_TIMEOUT_S": "provider_timeout_s",
            "TICKER_PROVIDER_RESET_S": "provider_reset_s",
            "TICKER_LATITUDE": "latitude",
            "TICKER_LONGITUDE": "longitude",
            "TICKER_SECONDARY_POLL_INTERVAL_S": "secondary_poll_interval_s",
            "TICKER_PRIMARY_DURATION_S": "primary_duration_s",
            "TICKER_SECONDARY_DURATION_S": "secondary_duration_s",
            "TICKER_DUAL_BUTTON_TIMEOUT_S": "dual_button_timeout_s",
            "TICKER_LOW_THRESHOLD": "low_threshold",
            "TICKER_HIGH_THRESHOLD": "high_threshold",
            "TICKER_ALERT_DURATION_S": "alert_duration_s",
            "TICKER_FACTORY_RESET_HOLD_S": "factory_reset_hold_s",
            "TICKER_FACTORY_RESET_COUNTDOWN_S": "factory_reset_countdown_s",
            "TICKER_LOOP_INTERVAL_S": "loop_interval_s",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = float(val)

        _ENV_INT_MAP = {
            "TICKER_CYCLE_PRESS_MIN_MS": "cycle_press_min_ms",
            "TICKER_CYCLE_PRESS_MAX_MS": "cycle_press_max_ms",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = int(val)

        _ENV_BOOL_MAP = {
            "TICKER_SECONDARY_ENABLED": ("secondary_enabled", False),
            "TICKER_INDICATOR_ACTIVE_LOW": ("indicator_active_low", False),
            "TICKER_FACTORY_RESET_ENABLED": ("factory_reset_enabled", True),
            "TICKER_DISPLAY_FLIPPED": ("display_flipped", False),
        }
        for env_key, (field_name, default) in _ENV_BOOL_MAP.items():
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), default)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)


class ConfigStore(Protocol):
    """Read-only source of configuration snapshots."""

    def load(self) -> TickerConfig:
        ...


class StaticConfigStore:
    """Config store returning a fixed snapshot, replaceable at runtime."""

    def __init__(self, config: TickerConfig) -> None:
        self._config = config

    def load(self) -> TickerConfig:
        return self._config

    def replace(self, config: TickerConfig) -> None:
        self._config = config
