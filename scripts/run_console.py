#!/usr/bin/env python3
"""Run the ticker runtime against live providers with a console "display".

Every render call is printed as one line, so the screen cycling, provider
fallback and alert blinking can be watched without hardware. Buttons and the
indicator are not connected.

Usage
-----
Configure through ``TICKER_*`` environment variables and run::

    export TICKER_SECONDARY_ENABLED=1
    export TICKER_HIGH_THRESHOLD=100000
    python scripts/run_console.py

Options::

    --check-providers    Query every provider once, print the quotes and exit
    --verbose, -v        Enable debug logging
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

import aiohttp

_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyticker import ProviderError, RuntimePolicy, SecondaryMetrics, StaticConfigStore, TickerConfig  # noqa: E402
from pyticker._transport import HttpJsonTransport  # noqa: E402
from pyticker.providers import OpenMeteoProvider, build_providers  # noqa: E402
from pyticker.runtime import TickerRuntime  # noqa: E402


def _stamp() -> str:
    return datetime.now().strftime("%H:%M:%S.%f")[:-3]


class ConsoleRenderer:
    """Renderer that prints one line per draw call."""

    def render_primary(
        self,
        value: float | None,
        change_ratio: float | None,
        provider_label: str,
        stale: bool,
        connected: bool,
    ) -> None:
        price = "----" if value is None else f"{value:,.2f}"
        change = "" if change_ratio is None else f" {change_ratio * 100:+.2f}%"
        flags = "".join((" STALE" if stale else "", "" if connected else " OFFLINE"))
        print(f"{_stamp()} [primary]   {price}{change} via {provider_label}{flags}")

    def render_secondary(self, metrics: SecondaryMetrics | None, stale: bool, connected: bool) -> None:
        if metrics is None:
            print(f"{_stamp()} [secondary] no readings yet")
            return
        flags = "".join((" STALE" if stale else "", "" if connected else " OFFLINE"))
        print(
            f"{_stamp()} [secondary] {metrics.temperature_c} C, {metrics.humidity_pct} %, "
            f"{metrics.wind_speed_kmh} km/h, code {metrics.weather_code}{flags}"
        )

    def render_countdown(self, seconds: int) -> None:
        print(f"{_stamp()} [reset]     {seconds}")

    def clear(self) -> None:
        print(f"{_stamp()} [blank]")

    def set_orientation(self, flipped: bool) -> None:
        print(f"{_stamp()} [orientation] flipped={flipped}")


async def check_providers(config: TickerConfig, transport: HttpJsonTransport) -> int:
    policy = RuntimePolicy.from_config(config)
    failures = 0
    for provider_id, provider in build_providers(policy.providers, transport, config.symbols).items():
        try:
            quote = await asyncio.wait_for(provider.attempt(), timeout=policy.provider_timeout_ms / 1000)
        except (ProviderError, TimeoutError) as exc:
            failures += 1
            print(f"{provider_id:<10} FAILED {type(exc).__name__}: {exc}")
            continue
        change = "n/a" if quote.change_percent is None else f"{quote.change_percent:+.2f}%"
        print(f"{provider_id:<10} {quote.value:,.2f} ({change})")
    return 1 if failures else 0


async def main() -> int:
    parser = argparse.ArgumentParser(description="Run the pyticker runtime with a console renderer.")
    parser.add_argument("--check-providers", action="store_true", help="Query every provider once and exit")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    config = TickerConfig.from_env()

    timeout = aiohttp.ClientTimeout(total=config.provider_timeout_s * 2)
    async with aiohttp.ClientSession(timeout=timeout) as session:
        transport = HttpJsonTransport(session)
        if args.check_providers:
            return await check_providers(config, transport)

        policy = RuntimePolicy.from_config(config)
        metrics_provider = None
        if policy.secondary_enabled:
            metrics_provider = OpenMeteoProvider(transport, latitude=config.latitude, longitude=config.longitude)
        runtime = TickerRuntime(
            StaticConfigStore(config),
            providers=build_providers(policy.providers, transport, config.symbols),
            metrics_provider=metrics_provider,
            renderer=ConsoleRenderer(),
        )
        await runtime.run()
    return 0


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        pass
