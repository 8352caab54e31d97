"""Enumerations shared by configuration, state and engines."""

from __future__ import annotations

from enum import StrEnum


class ProviderId(StrEnum):
    """Closed set of price providers."""

    COINGECKO = "coingecko"
    BINANCE = "binance"
    KRAKEN = "kraken"
    COINBASE = "coinbase"


class ProviderMode(StrEnum):
    """Where the provider ring starts."""

    AUTO = "auto"
    PREFER = "prefer"
    ONLY = "only"


class Screen(StrEnum):
    PRIMARY = "primary"
    SECONDARY = "secondary"

    @property
    def other(self) -> Screen:
        return Screen.SECONDARY if self is Screen.PRIMARY else Screen.PRIMARY


class ButtonMode(StrEnum):
    """Policy governing automatic vs. manual screen switching."""

    AUTO_CYCLE = "auto_cycle"
    ALWAYS_SECONDARY = "always_secondary"
    ON_DEMAND = "on_demand"
    MANUAL = "manual"


class DualButtonRole(StrEnum):
    """Meaning of the reset input when it is repurposed as a screen button."""

    NONE = "none"
    SHOWS_SECONDARY = "shows_secondary"
    SHOWS_PRIMARY = "shows_primary"


class AlertPattern(StrEnum):
    SLOW = "slow"
    FAST = "fast"
    STROBE = "strobe"
    SOS = "sos"


class AlertMode(StrEnum):
    """Which outputs an active alert drives."""

    DISPLAY = "display"
    INDICATOR = "indicator"
    BOTH = "both"

    @property
    def drives_display(self) -> bool:
        return self is not AlertMode.INDICATOR

    @property
    def drives_indicator(self) -> bool:
        return self is not AlertMode.DISPLAY
