"""Data models for pyticker."""

from pyticker.models.enums import (
    AlertMode,
    AlertPattern,
    ButtonMode,
    DualButtonRole,
    ProviderId,
    ProviderMode,
    Screen,
)
from pyticker.models.payloads import BinanceTicker, CoinbaseStats, KrakenTicker, OpenMeteoCurrent
from pyticker.models.quote import Quote, SecondaryMetrics
from pyticker.models.state import AcquisitionState, AlertState, ScreenState, WatchdogState

__all__ = [
    "AcquisitionState",
    "AlertMode",
    "AlertPattern",
    "AlertState",
    "BinanceTicker",
    "ButtonMode",
    "CoinbaseStats",
    "DualButtonRole",
    "KrakenTicker",
    "OpenMeteoCurrent",
    "ProviderId",
    "ProviderMode",
    "Quote",
    "Screen",
    "ScreenState",
    "SecondaryMetrics",
    "WatchdogState",
]
