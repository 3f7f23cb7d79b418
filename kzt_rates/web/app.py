"""FastAPI application serving the dashboard and the JSON read API."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import asdict
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import HTMLResponse

from kzt_rates.errors import NotFoundError, ValidationError
from kzt_rates.scheduler import PeriodicRefresher
from kzt_rates.service import RateFilter
from kzt_rates.utils.logger import get_logger
from kzt_rates.utils.time_range import parse_timestamp
from kzt_rates.web.render import DEFAULT_CURRENCY, render_index_page, render_tab_content

if TYPE_CHECKING:  # pragma: no cover
    from datetime import datetime

    from kzt_rates import KztRates

LOGGER = get_logger(__name__)


def _query_timestamp(name: str, raw: str | None) -> "datetime | None":
    if raw is None or not raw.strip():
        return None
    try:
        return parse_timestamp(raw)
    except ValueError as exc:
        raise ValidationError(f"{name} must be an ISO-8601 timestamp, got {raw!r}") from exc


def create_app(rates: "KztRates", *, refresher: PeriodicRefresher | None = None) -> FastAPI:
    """Build the application around a :class:`KztRates` facade.

    When ``refresher`` is given it is started on application startup and
    stopped on shutdown.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if refresher is not None:
            refresher.start()
        try:
            yield
        finally:
            if refresher is not None:
                refresher.stop()

    app = FastAPI(title="kzt-rates", lifespan=lifespan)
    app.state.rates = rates

    @app.get("/", response_class=HTMLResponse)
    def index() -> str:
        return render_index_page(DEFAULT_CURRENCY)

    @app.get("/c/{currency}", response_class=HTMLResponse)
    def currency_page(currency: str, hx_request: str | None = Header(default=None)) -> str:
        # Direct navigation gets the whole page; HTMX swaps in the table only.
        if hx_request != "true":
            return render_index_page(currency)
        return render_tab_content(rates.banks(currency), currency)

    @app.get("/api/rates")
    def api_rates(
        currency: str | None = None,
        source: str | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> list[dict[str, Any]]:
        try:
            rate_filter = RateFilter(
                currency_code=currency,
                source=source,
                start=_query_timestamp("start", start),
                end=_query_timestamp("end", end),
            )
            observations = rates.service.query(rate_filter)
        except ValidationError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except NotFoundError as exc:
            raise HTTPException(status_code=404, detail=str(exc)) from exc
        return [observation.as_dict() for observation in observations]

    @app.get("/api/banks/{currency}")
    def api_banks(currency: str) -> list[dict[str, Any]]:
        return [asdict(bank) for bank in rates.banks(currency)]

    LOGGER.debug("dashboard application created")
    return app


__all__ = ["create_app"]
