"""CoinGecko ``simple/price`` provider (primary)."""

from __future__ import annotations

from typing import Any

from pyticker._constants import COINGECKO_BASE_URL, COINGECKO_PRO_BASE_URL
from pyticker._normalize import percent_to_ratio, safe_float
from pyticker.models.enums import ProviderId
from pyticker.models.quote import Quote
from pyticker.providers.base import HttpQuoteProvider


class CoinGeckoProvider(HttpQuoteProvider):
    """Reads ``{"<id>": {"<cur>": price, "<cur>_24h_change": pct}}``.

    An API key switches to the pro endpoint.
    """

    provider_id = ProviderId.COINGECKO
    label = "CoinGecko"

    def _request(self) -> tuple[str, dict[str, str], dict[str, str]]:
        symbols = self._symbols
        params = {
            "ids": symbols.coingecko_id,
            "vs_currencies": symbols.currency,
            "include_24hr_change": "true",
        }
        if symbols.coingecko_api_key:
            headers = {"x-cg-pro-api-key": symbols.coingecko_api_key}
            return f"{COINGECKO_PRO_BASE_URL}/simple/price", params, headers
        return f"{COINGECKO_BASE_URL}/simple/price", params, {}

    def _parse(self, payload: Any) -> Quote:
        body = self._require_mapping(payload, "response")
        entry = self._require_mapping(body.get(self._symbols.coingecko_id), "coin entry")
        currency = self._symbols.currency.lower()
        return self._quote(
            safe_float(entry.get(currency)),
            percent_to_ratio(entry.get(f"{currency}_24h_change")),
        )
