"""HTTP JSON transport shared by all providers."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyticker._constants import USER_AGENT
from pyticker._redact import redact_for_log, redact_url
from pyticker.exceptions import ProviderDataError, ProviderTransportError

_logger = logging.getLogger(__name__)


class JsonTransport(Protocol):
    """Structural transport interface used by provider modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpJsonTransport`) concrete.
    """

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        ...


class HttpJsonTransport:
    """GET-and-decode transport over a shared :class:`aiohttp.ClientSession`.

    The session's own timeout is a safety net only; the acquisition engine
    bounds every provider attempt with ``asyncio.wait_for``.
    """

    def __init__(self, http_session: aiohttp.ClientSession) -> None:
        self._http = http_session

    async def get_json(
        self,
        url: str,
        *,
        params: Mapping[str, str] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> Any:
        """GET *url* and return the decoded JSON body.

        Raises
        ------
        ProviderTransportError
            Network failure or non-200 status.
        ProviderDataError
            Body is not valid UTF-8 JSON.
        """
        request_headers: dict[str, str] = {
            "accept": "application/json",
            "user-agent": USER_AGENT,
        }
        if headers:
            request_headers.update(headers)

        endpoint = redact_url(url)
        _logger.debug(
            "GET %s params=%s headers=%s",
            endpoint,
            redact_for_log(dict(params or {})),
            redact_for_log(request_headers),
        )

        try:
            async with self._http.get(url, params=params, headers=request_headers) as resp:
                body = await resp.read()
                if resp.status != 200:
                    raise ProviderTransportError(
                        f"HTTP {resp.status} from {endpoint}: {body[:200].decode('utf-8', errors='replace')}",
                        status_code=resp.status,
                        endpoint=endpoint,
                    )
        except ProviderTransportError:
            raise
        except aiohttp.ClientError as exc:
            raise ProviderTransportError(
                f"Request to {endpoint} failed: {exc}",
                endpoint=endpoint,
            ) from exc

        try:
            return json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ProviderDataError(
                f"Invalid JSON from {endpoint}: {body[:200]!r}",
                endpoint=endpoint,
            ) from exc
