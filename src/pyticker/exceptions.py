"""Custom exception hierarchy for pyticker."""

from __future__ import annotations


class TickerError(Exception):
    """Base exception for all pyticker errors."""


class TickerConfigError(TickerError):
    """Invalid configuration values.

    Conflicting but valid settings (for example a dual-purpose button that
    shares the factory-reset input) are reconciled by
    :class:`pyticker.policy.RuntimePolicy` and never raise.
    """


class ProviderError(TickerError):
    """A single provider attempt failed.

    Recovered inside the acquisition engine by advancing to the next
    provider in the ring; never fatal to the control loop.
    """

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        endpoint: str = "",
    ) -> None:
        self.provider = provider
        self.endpoint = endpoint
        super().__init__(message)


class ProviderTimeoutError(ProviderError):
    """Provider did not answer within its bounded timeout."""


class ProviderTransportError(ProviderError):
    """HTTP-level failure (network error, non-200 status)."""

    def __init__(
        self,
        message: str,
        *,
        provider: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.status_code = status_code
        super().__init__(message, provider=provider, endpoint=endpoint)


class ProviderDataError(ProviderError):
    """Response arrived but was malformed or missing the expected fields."""
