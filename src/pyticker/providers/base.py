"""Provider interfaces and the shared HTTP provider base."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, ClassVar, Protocol

from pydantic import ValidationError

from pyticker._transport import JsonTransport
from pyticker.config import ProviderSymbols
from pyticker.exceptions import ProviderDataError, ProviderError
from pyticker.models.enums import ProviderId
from pyticker.models.quote import Quote, SecondaryMetrics

_logger = logging.getLogger(__name__)


class Provider(Protocol):
    """A price source.

    ``attempt`` raises :class:`~pyticker.exceptions.ProviderError` on any
    failure and has no side effects when it does.
    """

    provider_id: ProviderId
    label: str

    async def attempt(self) -> Quote:
        ...


class MetricsProvider(Protocol):
    """A source for the secondary metric set."""

    label: str

    async def attempt(self) -> SecondaryMetrics:
        ...


class HttpQuoteProvider:
    """Base for price providers backed by a single JSON GET request.

    Subclasses declare ``provider_id``/``label`` and implement
    :meth:`_request` and :meth:`_parse`.
    """

    provider_id: ClassVar[ProviderId]
    label: ClassVar[str]

    def __init__(self, transport: JsonTransport, symbols: ProviderSymbols) -> None:
        self._transport = transport
        self._symbols = symbols

    def _request(self) -> tuple[str, dict[str, str], dict[str, str]]:
        """Return ``(url, params, headers)`` for the quote request."""
        raise NotImplementedError

    def _parse(self, payload: Any) -> Quote:
        raise NotImplementedError

    async def attempt(self) -> Quote:
        url, params, headers = self._request()
        try:
            payload = await self._transport.get_json(url, params=params, headers=headers)
            return self._parse(payload)
        except ProviderError as exc:
            exc.provider = self.provider_id
            raise
        except ValidationError as exc:
            raise ProviderDataError(
                f"{self.label} payload failed validation: {exc.error_count()} error(s)",
                provider=self.provider_id,
                endpoint=url,
            ) from exc

    def _quote(self, value: float | None, change_ratio: float | None) -> Quote:
        if value is None or value <= 0:
            raise ProviderDataError(f"{self.label} returned no usable price", provider=self.provider_id)
        return Quote(value=value, change_ratio=change_ratio)

    def _require_mapping(self, payload: Any, what: str) -> Mapping[str, Any]:
        if not isinstance(payload, Mapping):
            raise ProviderDataError(
                f"{self.label} {what} is not an object: {type(payload).__name__}",
                provider=self.provider_id,
            )
        return payload

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.provider_id})"
