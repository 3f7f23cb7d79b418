"""Abstractions shared by the bank source adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Any, ClassVar, Iterable, NamedTuple, Protocol

import requests

from kzt_rates.errors import (
    DeadlineExceededError,
    DecodeError,
    EmptyResultError,
    TransportError,
)
from kzt_rates.http import DEFAULT_TIMEOUT, LoggingSession
from kzt_rates.ingestion.models import RateObservation
from kzt_rates.utils.deadline import FetchContext
from kzt_rates.utils.logger import get_logger
from kzt_rates.utils.time_range import utcnow

LOGGER = get_logger(__name__)

# urllib3 rejects a zero timeout, so a nearly expired deadline still gets a sliver.
_MIN_TIMEOUT = 0.001


class RateSource(Protocol):
    """Contract for anything that can produce normalised observations."""

    name: str

    def fetch(self, context: FetchContext | None = None) -> list[RateObservation]:
        ...  # pragma: no cover - protocol definition


class Quote(NamedTuple):
    currency_code: str
    buy: str
    sell: str


class BankSource(ABC):
    """Template for adapters that issue one request and parse one payload.

    Subclasses declare ``name`` (and ``method`` when not ``GET``), may extend
    :meth:`request_options` with headers or a body, may override :meth:`decode`
    for non-JSON payloads, and implement :meth:`parse`, which yields only the
    quotes that pass the currency filters.
    """

    name: ClassVar[str]
    method: ClassVar[str] = "GET"

    def __init__(
        self,
        url: str,
        *,
        session: requests.Session | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self.url = url
        self.session = session or LoggingSession()
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"{type(self).__name__}(url={self.url!r})"

    def fetch(self, context: FetchContext | None = None) -> list[RateObservation]:
        """Fetch, validate and normalise the latest quotes of this source."""

        context = context or FetchContext()
        response = self._send(context)
        payload = self.decode(response)
        observed_at = utcnow()
        observations = [
            RateObservation(
                currency_code=quote.currency_code,
                buy=quote.buy,
                sell=quote.sell,
                source=self.name,
                observed_at=observed_at,
            )
            for quote in self.parse(payload)
        ]
        if not observations:
            raise EmptyResultError(self.name, "no supported currency rates found")
        LOGGER.info(
            "Fetched %s rates from %s (%s)",
            len(observations),
            self.name,
            ", ".join(obs.currency_code for obs in observations),
        )
        return observations

    def request_options(self) -> dict[str, Any]:
        """Extra keyword arguments passed to ``session.request``."""

        return {}

    def decode(self, response: requests.Response) -> Any:
        try:
            return response.json(parse_float=Decimal)
        except ValueError as exc:
            raise DecodeError(self.name, f"decode response: {exc}") from exc

    @abstractmethod
    def parse(self, payload: Any) -> Iterable[Quote]:
        """Validate ``payload`` and yield the supported quotes it contains."""

    def _send(self, context: FetchContext) -> requests.Response:
        if context.done:
            raise DeadlineExceededError(self.name, "fetch context is done before the request")
        timeout = max(context.timeout(self.timeout), _MIN_TIMEOUT)
        try:
            response = self.session.request(
                self.method, self.url, timeout=timeout, **self.request_options()
            )
        except requests.Timeout as exc:
            if context.done:
                raise DeadlineExceededError(self.name, f"deadline exceeded: {exc}") from exc
            raise TransportError(self.name, f"request timed out: {exc}") from exc
        except requests.RequestException as exc:
            raise TransportError(self.name, f"do request: {exc}") from exc
        if not 200 <= response.status_code < 300:
            raise TransportError(self.name, f"unexpected status code: {response.status_code}")
        return response

    # Payload helpers -------------------------------------------------

    def _mapping(self, value: object, what: str) -> dict[str, Any]:
        if not isinstance(value, dict):
            raise DecodeError(self.name, f"expected an object for {what}")
        return value

    def _list(self, value: object, what: str) -> list[Any]:
        if value is None:
            return []
        if not isinstance(value, list):
            raise DecodeError(self.name, f"expected an array for {what}")
        return value

    def _number_text(self, value: object, what: str) -> str:
        """Render an upstream number without going through ``float``."""

        if isinstance(value, bool):
            raise DecodeError(self.name, f"unexpected boolean for {what}")
        if isinstance(value, int):
            return str(value)
        if isinstance(value, Decimal):
            return format(value, "f")
        if isinstance(value, str) and value.strip():
            return value.strip()
        raise DecodeError(self.name, f"unexpected value for {what}: {value!r}")


__all__ = ["RateSource", "BankSource", "Quote"]
