"""Command line entry point: refresh rates, query the store or serve the dashboard."""

from __future__ import annotations

import argparse
import dataclasses
import sys
from typing import Iterable, Sequence

from kzt_rates.config import Settings, parse_listen_address
from kzt_rates.db import sqlite_url
from kzt_rates.errors import NotFoundError, RatesError
from kzt_rates.ingestion.models import RateObservation
from kzt_rates.utils.logger import get_logger, set_level
from kzt_rates.utils.time_range import parse_timestamp

LOGGER = get_logger(__name__)

__all__ = ["build_parser", "format_table", "resolve_db_url", "main"]


def resolve_db_url(value: str) -> str:
    """Accept either a SQLAlchemy URL or a plain SQLite file path."""

    return value if "://" in value else sqlite_url(value)


TABLE_COLUMNS = ("created_at", "source", "currency", "buy", "sell", "buy_delta", "sell_delta")


def format_table(observations: Iterable[RateObservation]) -> str:
    """Render observations as a left-aligned plain-text table."""

    rows = [TABLE_COLUMNS]
    for observation in observations:
        rows.append(
            (
                observation.observed_at.isoformat(timespec="seconds") if observation.observed_at else "",
                observation.source,
                observation.currency_code,
                observation.buy,
                observation.sell,
                f"{observation.buy_delta_prev:+.2f}",
                f"{observation.sell_delta_prev:+.2f}",
            )
        )
    widths = [max(len(row[index]) for row in rows) for index in range(len(TABLE_COLUMNS))]
    return "\n".join(
        "  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip() for row in rows
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="kzt-rates", description=__doc__)
    parser.add_argument(
        "--db",
        dest="db",
        help="SQLite path or SQLAlchemy URL (default: KZT_RATES_DB_URL or exr.db)",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        help="Logging level such as DEBUG or WARNING",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    refresh = commands.add_parser("refresh", help="Fetch every source once and store changes")
    refresh.add_argument(
        "--deadline",
        type=float,
        help="Seconds allowed for the whole refresh (default: KZT_RATES_REFRESH_DEADLINE)",
    )

    rates = commands.add_parser("rates", help="Print stored observations as a table")
    rates.add_argument("--currency", help="Three-letter currency code, e.g. USD")
    rates.add_argument("--source", help="Source name, e.g. Kaspi")
    rates.add_argument("--from", dest="start", help="Start timestamp (ISO-8601)")
    rates.add_argument("--to", dest="end", help="End timestamp (ISO-8601)")

    serve = commands.add_parser("serve", help="Run the dashboard with background refresh")
    serve.add_argument("--addr", help="Listen address host:port (default: KZT_RATES_HTTP_ADDR)")
    return parser


def _settings(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    overrides = {}
    if args.db:
        overrides["db_url"] = resolve_db_url(args.db)
    if args.log_level:
        overrides["log_level"] = args.log_level.upper()
    if getattr(args, "addr", None):
        overrides["listen_addr"] = args.addr
    return dataclasses.replace(settings, **overrides)


def _run_refresh(rates, args: argparse.Namespace) -> int:
    result = rates.refresh(deadline=args.deadline)
    print(f"inserted={result.inserted} skipped={result.skipped}")
    return 0


def _run_rates(rates, args: argparse.Namespace) -> int:
    start = parse_timestamp(args.start) if args.start else None
    end = parse_timestamp(args.end) if args.end else None
    try:
        observations = rates.rates(args.currency, args.source, start=start, end=end)
    except NotFoundError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(format_table(observations))
    return 0


def _run_serve(rates, settings: Settings) -> int:
    import uvicorn

    from kzt_rates.web import create_app

    host, port = parse_listen_address(settings.listen_addr)
    app = create_app(rates, refresher=rates.refresher())
    LOGGER.info("serving dashboard on %s:%s", host, port)
    uvicorn.run(app, host=host, port=port, log_level=settings.log_level.lower())
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = _settings(args)
        set_level(settings.log_level)
    except ValueError as exc:
        print(f"kzt-rates: {exc}", file=sys.stderr)
        return 1

    from kzt_rates import KztRates

    rates = KztRates(settings)
    try:
        if args.command == "refresh":
            return _run_refresh(rates, args)
        if args.command == "rates":
            return _run_rates(rates, args)
        return _run_serve(rates, settings)
    except (RatesError, ValueError) as exc:
        LOGGER.error("%s failed: %s", args.command, exc)
        return 1
    finally:
        rates.close()


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    sys.exit(main())
