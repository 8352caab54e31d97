"""Price and metrics providers.

The provider set is closed: :data:`PROVIDER_CLASSES` maps every
:class:`~pyticker.models.enums.ProviderId` to its implementation, and
:func:`build_providers` instantiates the configured subset.
"""

from __future__ import annotations

from collections.abc import Iterable

from pyticker._transport import JsonTransport
from pyticker.config import ProviderSymbols
from pyticker.models.enums import ProviderId
from pyticker.providers.base import HttpQuoteProvider, MetricsProvider, Provider
from pyticker.providers.binance import BinanceProvider
from pyticker.providers.coinbase import CoinbaseProvider
from pyticker.providers.coingecko import CoinGeckoProvider
from pyticker.providers.kraken import KrakenProvider
from pyticker.providers.open_meteo import OpenMeteoProvider

PROVIDER_CLASSES: dict[ProviderId, type[HttpQuoteProvider]] = {
    ProviderId.COINGECKO: CoinGeckoProvider,
    ProviderId.BINANCE: BinanceProvider,
    ProviderId.KRAKEN: KrakenProvider,
    ProviderId.COINBASE: CoinbaseProvider,
}


def build_providers(
    provider_ids: Iterable[ProviderId],
    transport: JsonTransport,
    symbols: ProviderSymbols,
) -> dict[ProviderId, Provider]:
    """Instantiate the configured providers over a shared transport."""
    return {provider_id: PROVIDER_CLASSES[provider_id](transport, symbols) for provider_id in provider_ids}


__all__ = [
    "PROVIDER_CLASSES",
    "BinanceProvider",
    "CoinGeckoProvider",
    "CoinbaseProvider",
    "HttpQuoteProvider",
    "KrakenProvider",
    "MetricsProvider",
    "OpenMeteoProvider",
    "Provider",
    "build_providers",
]
