"""SQLAlchemy-backed change-detection store for rate observations."""

from __future__ import annotations

import threading
from contextlib import AbstractContextManager, contextmanager, nullcontext
from datetime import datetime
from typing import Any, Iterator

from sqlalchemy import Column, DateTime, Index, Integer, String, create_engine, func, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import DeclarativeBase, Session, aliased, sessionmaker
from sqlalchemy.pool import StaticPool

from kzt_rates.db import DEFAULT_DB_URL
from kzt_rates.db.base_backend import RateRepository
from kzt_rates.errors import NotFoundError
from kzt_rates.ingestion.models import RateObservation
from kzt_rates.utils.logger import get_logger
from kzt_rates.utils.time_range import ensure_utc, normalise_range, to_storage, utcnow

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class ExchangeRateRow(Base):
    __tablename__ = "exchange_rates"
    __table_args__ = (
        Index("idx_exchange_rates_created_at", "created_at"),
        Index("idx_exchange_rates_currency_code", "currency_code"),
        Index("idx_exchange_rates_source", "source"),
        Index(
            "idx_exchange_rates_currency_source_created",
            "currency_code",
            "source",
            "created_at",
        ),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    currency_code = Column(String, nullable=False)
    buy = Column(String, nullable=False)
    sell = Column(String, nullable=False)
    source = Column(String, nullable=False)
    # Naive UTC; converted back to aware datetimes on read.
    created_at = Column(DateTime, nullable=False)


def _delta(current: str, previous: str | None) -> float:
    if previous is None:
        return 0.0
    try:
        return float(current) - float(previous)
    except ValueError:
        return 0.0


class RateStore(RateRepository):
    """Append-only ``exchange_rates`` table with latest-per-key reads.

    Reads without both filters collapse to the newest row per
    ``(currency_code, source)`` inside the range; a read filtered by both
    returns the full history of that pair. Every returned row carries the
    difference to the row immediately preceding it for the same pair, looked up
    with a correlated subquery.
    """

    def __init__(self, db_url: str | None = None, *, echo: bool = False) -> None:
        db_url = db_url or DEFAULT_DB_URL
        self.db_url = db_url
        url = make_url(db_url)
        engine_options: dict[str, Any] = {}
        if url.get_backend_name() == "sqlite":
            # Refresh workers write from their own threads.
            engine_options["connect_args"] = {"check_same_thread": False}
            if url.database in (None, "", ":memory:"):
                # One shared connection, otherwise each thread sees its own empty database.
                engine_options["poolclass"] = StaticPool
        self._lock: AbstractContextManager[Any] = (
            threading.Lock() if engine_options.get("poolclass") is StaticPool else nullcontext()
        )
        self.engine: Engine = create_engine(db_url, echo=echo, **engine_options)
        LOGGER.info("Ensuring exchange_rates schema exists")
        Base.metadata.create_all(self.engine)
        self._SessionFactory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False
        )

    @contextmanager
    def _session(self) -> Iterator[Session]:
        # The shared in-memory connection must not interleave transactions.
        with self._lock, self._SessionFactory() as session:
            yield session

    def insert(self, observation: RateObservation) -> RateObservation:
        if observation.observed_at is None:
            observation.observed_at = utcnow()
        with self._session() as session:
            session.add(
                ExchangeRateRow(
                    currency_code=observation.currency_code,
                    buy=observation.buy,
                    sell=observation.sell,
                    source=observation.source,
                    created_at=to_storage(observation.observed_at),
                )
            )
            session.commit()
        return observation

    def latest(self, currency_code: str, source: str) -> RateObservation:
        stmt = (
            select(ExchangeRateRow)
            .where(
                ExchangeRateRow.currency_code == currency_code,
                ExchangeRateRow.source == source,
            )
            .order_by(ExchangeRateRow.created_at.desc(), ExchangeRateRow.id.desc())
            .limit(1)
        )
        with self._session() as session:
            row = session.scalars(stmt).first()
        if row is None:
            raise NotFoundError(f"no rates stored for {currency_code}/{source}")
        return RateObservation(
            currency_code=row.currency_code,
            buy=row.buy,
            sell=row.sell,
            source=row.source,
            observed_at=ensure_utc(row.created_at),
        )

    def fetch_all(
        self, start: datetime | None = None, end: datetime | None = None
    ) -> list[RateObservation]:
        return self._fetch(start=start, end=end, collapse=True)

    def fetch_by_currency(
        self, currency_code: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[RateObservation]:
        return self._fetch(currency_code=currency_code, start=start, end=end, collapse=True)

    def fetch_by_source(
        self, source: str, start: datetime | None = None, end: datetime | None = None
    ) -> list[RateObservation]:
        return self._fetch(source=source, start=start, end=end, collapse=True)

    def fetch_by_currency_and_source(
        self,
        currency_code: str,
        source: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[RateObservation]:
        return self._fetch(
            currency_code=currency_code, source=source, start=start, end=end, collapse=False
        )

    def _fetch(
        self,
        *,
        currency_code: str | None = None,
        source: str | None = None,
        start: datetime | None,
        end: datetime | None,
        collapse: bool,
    ) -> list[RateObservation]:
        window = normalise_range(start, end)
        rate = ExchangeRateRow
        conditions = [rate.created_at.between(to_storage(window.start), to_storage(window.end))]
        if currency_code is not None:
            conditions.append(rate.currency_code == currency_code)
        if source is not None:
            conditions.append(rate.source == source)

        columns: list[Any] = [
            rate.id,
            rate.currency_code,
            rate.buy,
            rate.sell,
            rate.source,
            rate.created_at,
        ]
        if collapse:
            columns.append(
                func.row_number()
                .over(
                    partition_by=(rate.currency_code, rate.source),
                    order_by=(rate.created_at.desc(), rate.id.desc()),
                )
                .label("rn")
            )
        rows = select(*columns).where(*conditions).subquery("latest")

        prev = aliased(ExchangeRateRow, name="prev")

        def _previous(column: Any) -> Any:
            return (
                select(column)
                .where(
                    prev.currency_code == rows.c.currency_code,
                    prev.source == rows.c.source,
                    prev.created_at < rows.c.created_at,
                )
                .order_by(prev.created_at.desc(), prev.id.desc())
                .limit(1)
                .scalar_subquery()
            )

        stmt = select(
            rows.c.currency_code,
            rows.c.buy,
            rows.c.sell,
            rows.c.source,
            rows.c.created_at,
            _previous(prev.buy).label("prev_buy"),
            _previous(prev.sell).label("prev_sell"),
        )
        if collapse:
            stmt = stmt.where(rows.c.rn == 1)
        stmt = stmt.order_by(rows.c.created_at.desc(), rows.c.id.desc())

        with self._session() as session:
            result = session.execute(stmt)
            records = [
                RateObservation(
                    currency_code=mapping["currency_code"],
                    buy=mapping["buy"],
                    sell=mapping["sell"],
                    source=mapping["source"],
                    observed_at=ensure_utc(mapping["created_at"]),
                    buy_delta_prev=_delta(mapping["buy"], mapping["prev_buy"]),
                    sell_delta_prev=_delta(mapping["sell"], mapping["prev_sell"]),
                )
                for mapping in result.mappings()
            ]
        if not records:
            raise NotFoundError("no rates matched the query")
        return records

    def close(self) -> None:  # pragma: no cover - trivial
        self.engine.dispose()

    def __enter__(self) -> "RateStore":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


__all__ = ["RateStore", "ExchangeRateRow"]
