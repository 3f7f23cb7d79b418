"""Exchange rate usecase: concurrent refresh and filtered reads."""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from datetime import datetime
from typing import Mapping

from kzt_rates.db.base_backend import RateRepository
from kzt_rates.errors import DeadlineExceededError, NotFoundError, ValidationError
from kzt_rates.ingestion.base import RateSource
from kzt_rates.ingestion.models import RateObservation
from kzt_rates.utils.deadline import FetchContext
from kzt_rates.utils.logger import get_logger
from kzt_rates.utils.time_range import ensure_utc

LOGGER = get_logger(__name__)


@dataclass(slots=True)
class RateFilter:
    """Read filter; blank strings and ``None`` both mean "not filtered"."""

    currency_code: str | None = None
    source: str | None = None
    start: datetime | None = None
    end: datetime | None = None

    def __post_init__(self) -> None:
        code = (self.currency_code or "").strip().upper()
        if code and (len(code) != 3 or not code.isalpha()):
            raise ValidationError(f"currency code must be three letters, got {self.currency_code!r}")
        self.currency_code = code or None
        self.source = (self.source or "").strip() or None
        if self.start is not None and self.end is not None:
            if ensure_utc(self.start) > ensure_utc(self.end):
                raise ValidationError("start must not be after end")


@dataclass(slots=True)
class RefreshResult:
    """How many fetched observations were stored or skipped as unchanged."""

    inserted: int = 0
    skipped: int = 0

    @property
    def total(self) -> int:
        return self.inserted + self.skipped


class ExchangeRateService:
    """Fans out fetches across sources and reads back through the repository."""

    def __init__(self, repository: RateRepository, sources: Mapping[str, RateSource]) -> None:
        self.repository = repository
        self.sources = dict(sources)

    def refresh(self, context: FetchContext | None = None) -> RefreshResult:
        """Fetch every source concurrently and store the quotes that changed.

        All workers are joined before returning. The first failure cancels the
        shared context and is re-raised; rows already written by other sources
        stay committed.
        """

        context = context or FetchContext()
        summary = RefreshResult()
        if not self.sources:
            return summary

        first_error: BaseException | None = None
        with ThreadPoolExecutor(
            max_workers=len(self.sources), thread_name_prefix="kzt-rates-refresh"
        ) as executor:
            futures = {
                executor.submit(self._refresh_source, name, source, context): name
                for name, source in self.sources.items()
            }
            try:
                for future in as_completed(futures, timeout=context.remaining()):
                    error = future.exception()
                    if error is None:
                        result = future.result()
                        summary.inserted += result.inserted
                        summary.skipped += result.skipped
                        continue
                    LOGGER.warning("Refresh of %s failed: %s", futures[future], error)
                    if first_error is None:
                        first_error = error
                        context.cancel()
            except FuturesTimeoutError:
                context.cancel()
                if first_error is None:
                    first_error = DeadlineExceededError("refresh", "refresh deadline exceeded")

        if first_error is not None:
            raise first_error
        LOGGER.info(
            "Refresh completed: inserted=%s skipped=%s", summary.inserted, summary.skipped
        )
        return summary

    def _refresh_source(
        self, name: str, source: RateSource, context: FetchContext
    ) -> RefreshResult:
        result = RefreshResult()
        for observation in source.fetch(context):
            try:
                latest = self.repository.latest(observation.currency_code, observation.source)
            except NotFoundError:
                LOGGER.debug(
                    "First observation for %s/%s", observation.currency_code, observation.source
                )
            else:
                if latest.same_quote(observation):
                    result.skipped += 1
                    continue
            self.repository.insert(observation)
            result.inserted += 1
        LOGGER.info(
            "Refreshed %s: inserted=%s skipped=%s", name, result.inserted, result.skipped
        )
        return result

    def query(self, rate_filter: RateFilter | None = None) -> list[RateObservation]:
        """Dispatch to the repository read matching the populated filter fields."""

        f = rate_filter or RateFilter()
        if f.currency_code and f.source:
            return self.repository.fetch_by_currency_and_source(
                f.currency_code, f.source, f.start, f.end
            )
        if f.currency_code:
            return self.repository.fetch_by_currency(f.currency_code, f.start, f.end)
        if f.source:
            return self.repository.fetch_by_source(f.source, f.start, f.end)
        return self.repository.fetch_all(f.start, f.end)


__all__ = ["ExchangeRateService", "RateFilter", "RefreshResult"]
