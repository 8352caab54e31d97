"""Acquired values: price quotes and the secondary metric set."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Quote(BaseModel):
    """A single successful price reading.

    Parameters
    ----------
    value : float
        Last price in the configured quote currency.
    change_ratio : float or None
        Change over the provider's reference window (usually 24 h) as a
        ratio, e.g. ``0.015`` for +1.5 %. ``None`` when the provider does
        not report one.
    """

    model_config = ConfigDict(frozen=True)

    value: float = Field(gt=0)
    change_ratio: float | None = None

    @property
    def change_percent(self) -> float | None:
        if self.change_ratio is None:
            return None
        return self.change_ratio * 100.0


class SecondaryMetrics(BaseModel):
    """Current weather readings shown on the secondary screen."""

    model_config = ConfigDict(frozen=True)

    temperature_c: float | None = None
    humidity_pct: float | None = None
    wind_speed_kmh: float | None = None
    weather_code: int | None = None
    """WMO weather interpretation code."""

    @property
    def is_empty(self) -> bool:
        return all(
            value is None
            for value in (self.temperature_c, self.humidity_pct, self.wind_speed_kmh, self.weather_code)
        )
