"""Binance 24 h ticker provider."""

from __future__ import annotations

from typing import Any

from pyticker._constants import BINANCE_BASE_URL
from pyticker.models.enums import ProviderId
from pyticker.models.payloads import BinanceTicker
from pyticker.models.quote import Quote
from pyticker.providers.base import HttpQuoteProvider


class BinanceProvider(HttpQuoteProvider):
    provider_id = ProviderId.BINANCE
    label = "Binance"

    def _request(self) -> tuple[str, dict[str, str], dict[str, str]]:
        return f"{BINANCE_BASE_URL}/api/v3/ticker/24hr", {"symbol": self._symbols.binance_symbol}, {}

    def _parse(self, payload: Any) -> Quote:
        ticker = BinanceTicker.model_validate(self._require_mapping(payload, "ticker"))
        return self._quote(ticker.last_price, ticker.change_ratio)
