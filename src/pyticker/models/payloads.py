"""Provider payload models.

Only the fields the ticker consumes are declared; everything else stays in
``raw``.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, Field

from pyticker._normalize import change_ratio as _change_ratio
from pyticker._normalize import percent_to_ratio, safe_float
from pyticker.models._base import TickerBaseModel
from pyticker.models.quote import SecondaryMetrics


class BinanceTicker(TickerBaseModel):
    """``GET /api/v3/ticker/24hr`` response."""

    symbol: str | None = None
    last_price: float | None = Field(default=None, validation_alias=AliasChoices("lastPrice", "last_price"))
    price_change_percent: float | None = Field(
        default=None,
        validation_alias=AliasChoices("priceChangePercent", "price_change_percent"),
    )

    @property
    def change_ratio(self) -> float | None:
        return percent_to_ratio(self.price_change_percent)


class KrakenTicker(TickerBaseModel):
    """One pair entry of the Kraken ``/0/public/Ticker`` ``result`` map.

    ``c`` is ``[last trade price, lot volume]`` and ``o`` today's opening
    price.
    """

    last_trade: list[Any] = Field(default_factory=list, validation_alias=AliasChoices("c", "last_trade"))
    open: float | None = Field(default=None, validation_alias=AliasChoices("o", "open"))

    @property
    def last_price(self) -> float | None:
        if not self.last_trade:
            return None
        return safe_float(self.last_trade[0])

    @property
    def change_ratio(self) -> float | None:
        return _change_ratio(self.last_price, self.open)


class CoinbaseStats(TickerBaseModel):
    """``GET /products/<product>/stats`` response (24 h window)."""

    last: float | None = None
    open: float | None = None
    high: float | None = None
    low: float | None = None

    @property
    def change_ratio(self) -> float | None:
        return _change_ratio(self.last, self.open)


class OpenMeteoCurrent(TickerBaseModel):
    """``current`` block of the Open-Meteo forecast response."""

    temperature_2m: float | None = None
    relative_humidity_2m: float | None = None
    wind_speed_10m: float | None = None
    weather_code: int | None = Field(default=None, validation_alias=AliasChoices("weather_code", "weathercode"))

    def to_metrics(self) -> SecondaryMetrics:
        return SecondaryMetrics(
            temperature_c=self.temperature_2m,
            humidity_pct=self.relative_humidity_2m,
            wind_speed_kmh=self.wind_speed_10m,
            weather_code=self.weather_code,
        )
