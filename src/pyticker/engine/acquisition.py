"""Acquisition engine.

Decides when to poll, walks the provider ring until one provider answers,
and keeps the cached value and its staleness flags. A single failed poll
never blanks the cached value or marks it stale on its own; staleness is
purely a function of time since the last success.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping

from pyticker._clock import elapsed_ms
from pyticker.exceptions import ProviderError, ProviderTimeoutError
from pyticker.models.enums import ProviderId, ProviderMode
from pyticker.models.quote import Quote
from pyticker.models.state import AcquisitionState
from pyticker.policy import RuntimePolicy
from pyticker.providers.base import MetricsProvider, Provider

_logger = logging.getLogger(__name__)


def initial_acquisition_state(policy: RuntimePolicy) -> AcquisitionState:
    return AcquisitionState(active_provider=policy.preferred_provider)


def poll_due(state: AcquisitionState, policy: RuntimePolicy, now: int) -> bool:
    if state.last_poll_at is None:
        return True
    return elapsed_ms(now, state.last_poll_at) >= policy.poll_interval_ms


def metrics_due(state: AcquisitionState, policy: RuntimePolicy, now: int) -> bool:
    if not policy.secondary_enabled:
        return False
    if state.metrics_last_poll_at is None:
        return True
    return elapsed_ms(now, state.metrics_last_poll_at) >= policy.secondary_poll_interval_ms


def ring_start(state: AcquisitionState, policy: RuntimePolicy, now: int) -> ProviderId:
    """Provider the next poll starts with.

    With ``provider_reset_ms`` set, a fallback provider that took over stays
    first until that window has passed since it took over.
    """
    preferred = policy.preferred_provider
    if policy.provider_mode is ProviderMode.ONLY or policy.provider_reset_ms <= 0:
        return preferred
    if state.active_provider not in policy.providers or not state.connected:
        return preferred
    if elapsed_ms(now, state.provider_since) < policy.provider_reset_ms:
        return state.active_provider
    return preferred


def provider_ring(policy: RuntimePolicy, start: ProviderId) -> tuple[ProviderId, ...]:
    """Deterministic attempt order beginning at *start*."""
    if policy.provider_mode is ProviderMode.ONLY:
        return (policy.preferred_provider,)
    order = policy.providers
    if start not in order:
        return order
    index = order.index(start)
    return order[index:] + order[:index]


def _is_stale(has_value: bool, last_success_at: int, stale_after_ms: int, now: int) -> bool:
    return has_value and elapsed_ms(now, last_success_at) > stale_after_ms


def refresh_staleness(state: AcquisitionState, policy: RuntimePolicy, now: int) -> AcquisitionState:
    """Re-evaluate both stale flags against the clock."""
    is_stale = _is_stale(state.has_value, state.last_success_at, policy.stale_after_ms, now)
    metrics_stale = _is_stale(
        state.metrics is not None,
        state.metrics_last_success_at,
        policy.metrics_stale_after_ms,
        now,
    )
    if is_stale == state.is_stale and metrics_stale == state.metrics_stale:
        return state
    if is_stale and not state.is_stale:
        _logger.warning(
            "Price data stale: no successful poll for %d ms (%d consecutive failures)",
            elapsed_ms(now, state.last_success_at),
            state.consecutive_failures,
        )
    if metrics_stale and not state.metrics_stale:
        _logger.warning("Secondary metrics stale after %d failed polls", state.metrics_failures)
    return state.model_copy(update={"is_stale": is_stale, "metrics_stale": metrics_stale})


async def _attempt(provider: Provider, timeout_ms: int) -> Quote:
    try:
        return await asyncio.wait_for(provider.attempt(), timeout=timeout_ms / 1000)
    except TimeoutError as exc:
        raise ProviderTimeoutError(
            f"{provider.label} did not answer within {timeout_ms} ms",
            provider=provider.provider_id,
        ) from exc


async def poll(
    state: AcquisitionState,
    providers: Mapping[ProviderId, Provider],
    policy: RuntimePolicy,
    now: int,
) -> AcquisitionState:
    """Run one price poll if the interval elapsed.

    Providers are tried in ring order and the first success wins. Each
    attempt is bounded by ``policy.provider_timeout_ms``; a timed-out or
    failing provider is abandoned and the next one is tried. There are no
    retries beyond the ring; the next due poll is the retry.
    """
    if not poll_due(state, policy, now):
        return refresh_staleness(state, policy, now)

    attempted = state.active_provider
    for provider_id in provider_ring(policy, ring_start(state, policy, now)):
        attempted = provider_id
        provider = providers.get(provider_id)
        if provider is None:
            _logger.debug("Provider %s configured but not available", provider_id)
            continue
        try:
            quote = await _attempt(provider, policy.provider_timeout_ms)
        except ProviderError as exc:
            _logger.debug("Provider %s failed: %s", provider_id, exc)
            continue

        provider_since = state.provider_since
        if provider_id != state.active_provider or not state.has_value:
            if state.has_value:
                _logger.info("Switched price provider %s -> %s", state.active_provider, provider_id)
            provider_since = now
        if state.consecutive_failures:
            _logger.info("Price poll recovered after %d failed polls", state.consecutive_failures)
        updated = state.model_copy(
            update={
                "value": quote.value,
                "change_ratio": quote.change_ratio,
                "has_value": True,
                "is_stale": False,
                "active_provider": provider_id,
                "provider_since": provider_since,
                "consecutive_failures": 0,
                "last_success_at": now,
                "last_poll_at": now,
            }
        )
        return refresh_staleness(updated, policy, now)

    failures = state.consecutive_failures + 1
    _logger.warning("All price providers failed (%d consecutive polls)", failures)
    failed = state.model_copy(
        update={
            "active_provider": attempted,
            "consecutive_failures": failures,
            "last_poll_at": now,
        }
    )
    return refresh_staleness(failed, policy, now)


async def poll_metrics(
    state: AcquisitionState,
    provider: MetricsProvider | None,
    policy: RuntimePolicy,
    now: int,
) -> AcquisitionState:
    """Run one secondary-metrics poll if enabled and due."""
    if provider is None or not metrics_due(state, policy, now):
        return refresh_staleness(state, policy, now)

    try:
        metrics = await asyncio.wait_for(provider.attempt(), timeout=policy.provider_timeout_ms / 1000)
    except (ProviderError, TimeoutError) as exc:
        failures = state.metrics_failures + 1
        _logger.warning("%s poll failed (%d consecutive): %s", provider.label, failures, str(exc) or "timeout")
        failed = state.model_copy(update={"metrics_failures": failures, "metrics_last_poll_at": now})
        return refresh_staleness(failed, policy, now)

    updated = state.model_copy(
        update={
            "metrics": metrics,
            "metrics_stale": False,
            "metrics_failures": 0,
            "metrics_last_success_at": now,
            "metrics_last_poll_at": now,
        }
    )
    return refresh_staleness(updated, policy, now)
