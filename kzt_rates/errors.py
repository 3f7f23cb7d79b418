"""Exception hierarchy shared by adapters, the store and the service."""

from __future__ import annotations


class RatesError(Exception):
    """Base class for every error raised by :mod:`kzt_rates`."""


class FetchError(RatesError):
    """A source adapter could not produce observations."""

    reason = "unknown"

    def __init__(self, source: str, message: str) -> None:
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class TransportError(FetchError):
    """The request could not be sent or the status was not 2xx."""

    reason = "transport"


class DecodeError(FetchError):
    """The response body is not the JSON/XML shape the source promises."""

    reason = "decode"


class ApiError(FetchError):
    """The upstream API reported a failure in its payload."""

    reason = "api_error"


class EmptyResultError(FetchError):
    """No supported quotes survived filtering."""

    reason = "empty_result"


class DeadlineExceededError(FetchError):
    """The shared fetch context expired or was cancelled."""

    reason = "deadline"


class NotFoundError(RatesError):
    """A store lookup matched zero rows."""


class ValidationError(RatesError, ValueError):
    """Malformed filter input."""


__all__ = [
    "RatesError",
    "FetchError",
    "TransportError",
    "DecodeError",
    "ApiError",
    "EmptyResultError",
    "DeadlineExceededError",
    "NotFoundError",
    "ValidationError",
]
