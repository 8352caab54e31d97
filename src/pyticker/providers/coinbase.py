"""Coinbase Exchange product stats provider."""

from __future__ import annotations

from typing import Any

from pyticker._constants import COINBASE_BASE_URL
from pyticker.models.enums import ProviderId
from pyticker.models.payloads import CoinbaseStats
from pyticker.models.quote import Quote
from pyticker.providers.base import HttpQuoteProvider


class CoinbaseProvider(HttpQuoteProvider):
    provider_id = ProviderId.COINBASE
    label = "Coinbase"

    def _request(self) -> tuple[str, dict[str, str], dict[str, str]]:
        return f"{COINBASE_BASE_URL}/products/{self._symbols.coinbase_product}/stats", {}, {}

    def _parse(self, payload: Any) -> Quote:
        stats = CoinbaseStats.model_validate(self._require_mapping(payload, "stats"))
        return self._quote(stats.last, stats.change_ratio)
