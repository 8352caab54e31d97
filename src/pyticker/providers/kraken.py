"""Kraken public ticker provider."""

from __future__ import annotations

from typing import Any

from pyticker._constants import KRAKEN_BASE_URL
from pyticker.exceptions import ProviderDataError
from pyticker.models.enums import ProviderId
from pyticker.models.payloads import KrakenTicker
from pyticker.models.quote import Quote
from pyticker.providers.base import HttpQuoteProvider


class KrakenProvider(HttpQuoteProvider):
    """Reads the first pair of ``result``.

    Kraken answers HTTP 200 with a non-empty ``error`` list on failures, and
    renames pairs in ``result`` (``XBTUSD`` comes back as ``XXBTZUSD``).
    """

    provider_id = ProviderId.KRAKEN
    label = "Kraken"

    def _request(self) -> tuple[str, dict[str, str], dict[str, str]]:
        return f"{KRAKEN_BASE_URL}/0/public/Ticker", {"pair": self._symbols.kraken_pair}, {}

    def _parse(self, payload: Any) -> Quote:
        body = self._require_mapping(payload, "response")
        errors = body.get("error") or []
        if errors:
            raise ProviderDataError(f"Kraken error: {', '.join(map(str, errors))}", provider=self.provider_id)
        result = self._require_mapping(body.get("result"), "result")
        if not result:
            raise ProviderDataError("Kraken returned an empty result", provider=self.provider_id)
        entry = result.get(self._symbols.kraken_pair)
        if entry is None:
            entry = next(iter(result.values()))
        ticker = KrakenTicker.model_validate(self._require_mapping(entry, "pair entry"))
        return self._quote(ticker.last_price, ticker.change_ratio)
