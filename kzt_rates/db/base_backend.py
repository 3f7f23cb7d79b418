"""Store interface consumed by the exchange rate service."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from kzt_rates.ingestion.models import RateObservation


class RateRepository(ABC):
    """Append-only log of observations with latest-per-key reads.

    Every read raises :class:`~kzt_rates.errors.NotFoundError` when it matches
    zero rows and returns rows carrying ``buy_delta_prev``/``sell_delta_prev``.
    Unset ``start``/``end`` bounds mean the epoch and "now" respectively.
    """

    @abstractmethod
    def insert(self, observation: RateObservation) -> RateObservation:
        """Append ``observation``, stamping ``observed_at`` when unset."""

    @abstractmethod
    def latest(self, currency_code: str, source: str) -> RateObservation:
        """Return the newest observation for the pair."""

    @abstractmethod
    def fetch_all(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[RateObservation]:
        """Latest row per (currency, source) within the range."""

    @abstractmethod
    def fetch_by_currency(
        self, currency_code: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[RateObservation]:
        """Latest row per source for one currency within the range."""

    @abstractmethod
    def fetch_by_source(
        self, source: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[RateObservation]:
        """Latest row per currency for one source within the range."""

    @abstractmethod
    def fetch_by_currency_and_source(
        self,
        currency_code: str,
        source: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[RateObservation]:
        """Full history of one (currency, source) pair within the range."""

    def close(self) -> None:  # pragma: no cover - optional cleanup hook
        """Stores may override to release connections/resources."""


__all__ = ["RateRepository"]
