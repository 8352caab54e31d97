"""pyticker - cooperative price ticker runtime with provider fallback, screens and alerts."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyticker")
except PackageNotFoundError:
    __version__ = "0+local"
from pyticker._clock import Clock, MonotonicClock, elapsed_ms
from pyticker.config import ConfigStore, ProviderSymbols, StaticConfigStore, TickerConfig
from pyticker.exceptions import (
    ProviderDataError,
    ProviderError,
    ProviderTimeoutError,
    ProviderTransportError,
    TickerConfigError,
    TickerError,
)
from pyticker.models import (
    AcquisitionState,
    AlertMode,
    AlertPattern,
    AlertState,
    ButtonMode,
    DualButtonRole,
    ProviderId,
    ProviderMode,
    Quote,
    Screen,
    ScreenState,
    SecondaryMetrics,
    WatchdogState,
)
from pyticker.policy import RuntimePolicy
from pyticker.runtime import DigitalInput, IndicatorOutput, Renderer, TickerRuntime

__all__ = [
    "__version__",
    "AcquisitionState",
    "AlertMode",
    "AlertPattern",
    "AlertState",
    "ButtonMode",
    "Clock",
    "ConfigStore",
    "DigitalInput",
    "DualButtonRole",
    "IndicatorOutput",
    "MonotonicClock",
    "ProviderDataError",
    "ProviderError",
    "ProviderId",
    "ProviderMode",
    "ProviderSymbols",
    "ProviderTimeoutError",
    "ProviderTransportError",
    "Quote",
    "Renderer",
    "RuntimePolicy",
    "Screen",
    "ScreenState",
    "SecondaryMetrics",
    "StaticConfigStore",
    "TickerConfig",
    "TickerConfigError",
    "TickerError",
    "TickerRuntime",
    "WatchdogState",
    "elapsed_ms",
]
