"""Public interface for the kzt_rates package."""

from __future__ import annotations

from datetime import datetime
from importlib import metadata as importlib_metadata
from typing import Mapping

import requests

from kzt_rates.config import Settings
from kzt_rates.db.base_backend import RateRepository
from kzt_rates.db.rate_store import RateStore
from kzt_rates.errors import NotFoundError
from kzt_rates.http import LoggingSession
from kzt_rates.ingestion import build_default_sources
from kzt_rates.ingestion.base import RateSource
from kzt_rates.ingestion.models import RateObservation
from kzt_rates.scheduler import PeriodicRefresher
from kzt_rates.service import ExchangeRateService, RateFilter, RefreshResult
from kzt_rates.utils.deadline import FetchContext
from kzt_rates.view import BankSnapshot, build_bank_snapshots

__all__ = [
    "__version__",
    "KztRates",
    "Settings",
    "RateStore",
    "RateObservation",
    "RateFilter",
    "RefreshResult",
    "ExchangeRateService",
    "BankSnapshot",
    "FetchContext",
    "PeriodicRefresher",
]

try:
    __version__ = importlib_metadata.version("kzt-rates")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"


class KztRates:
    """Package facade wiring the store, the HTTP session and the sources."""

    __slots__ = ("settings", "session", "store", "sources", "service")

    __version__ = __version__

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        store: RateRepository | None = None,
        sources: Mapping[str, RateSource] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        """Build every collaborator from ``settings`` unless one is supplied.

        Settings default to :meth:`Settings.from_env`, so a bare ``KztRates()``
        honours ``KZT_RATES_*`` variables and otherwise uses ``exr.db`` in the
        working directory and the production bank endpoints.
        """

        self.settings = settings or Settings.from_env()
        self.session = session or LoggingSession()
        self.store = store or RateStore(self.settings.db_url)
        if sources is None:
            sources = build_default_sources(self.settings, session=self.session)
        self.sources = dict(sources)
        self.service = ExchangeRateService(self.store, self.sources)

    def refresh(self, deadline: float | None = None) -> RefreshResult:
        """Run one refresh cycle bounded by ``deadline`` seconds."""

        if deadline is None:
            deadline = self.settings.refresh_deadline
        return self.service.refresh(FetchContext(deadline))

    def rates(
        self,
        currency: str | None = None,
        source: str | None = None,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[RateObservation]:
        return self.service.query(
            RateFilter(currency_code=currency, source=source, start=start, end=end)
        )

    def banks(
        self,
        currency: str = "USD",
        *,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[BankSnapshot]:
        """Dashboard snapshot for ``currency``; empty when nothing is stored."""

        try:
            observations = self.service.query(RateFilter(start=start, end=end))
        except NotFoundError:
            return []
        return build_bank_snapshots(observations, currency)

    def refresher(self) -> PeriodicRefresher:
        return PeriodicRefresher(
            self.service,
            interval=self.settings.refresh_interval,
            deadline=self.settings.refresh_deadline,
        )

    def close(self) -> None:
        self.store.close()
        self.session.close()

    def __enter__(self) -> "KztRates":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()
