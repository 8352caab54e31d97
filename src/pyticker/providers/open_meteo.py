"""Open-Meteo current weather, used for the secondary screen."""

from __future__ import annotations

from collections.abc import Mapping

from pydantic import ValidationError

from pyticker._constants import OPEN_METEO_BASE_URL, OPEN_METEO_CURRENT_FIELDS
from pyticker._transport import JsonTransport
from pyticker.exceptions import ProviderDataError, ProviderError
from pyticker.models.payloads import OpenMeteoCurrent
from pyticker.models.quote import SecondaryMetrics

_PROVIDER = "open-meteo"


class OpenMeteoProvider:
    label = "Open-Meteo"

    def __init__(self, transport: JsonTransport, *, latitude: float, longitude: float) -> None:
        self._transport = transport
        self._latitude = latitude
        self._longitude = longitude

    async def attempt(self) -> SecondaryMetrics:
        url = f"{OPEN_METEO_BASE_URL}/v1/forecast"
        params = {
            "latitude": f"{self._latitude:.4f}",
            "longitude": f"{self._longitude:.4f}",
            "current": OPEN_METEO_CURRENT_FIELDS,
            "wind_speed_unit": "kmh",
        }
        try:
            payload = await self._transport.get_json(url, params=params)
        except ProviderError as exc:
            exc.provider = _PROVIDER
            raise

        current = payload.get("current") if isinstance(payload, Mapping) else None
        if not isinstance(current, Mapping):
            raise ProviderDataError("Open-Meteo response has no 'current' block", provider=_PROVIDER, endpoint=url)
        try:
            metrics = OpenMeteoCurrent.model_validate(dict(current)).to_metrics()
        except ValidationError as exc:
            raise ProviderDataError(
                f"Open-Meteo payload failed validation: {exc.error_count()} error(s)",
                provider=_PROVIDER,
                endpoint=url,
            ) from exc
        if metrics.is_empty:
            raise ProviderDataError("Open-Meteo returned no readings", provider=_PROVIDER, endpoint=url)
        return metrics
