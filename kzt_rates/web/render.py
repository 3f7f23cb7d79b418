"""HTML fragments for the dashboard. Every interpolated value is escaped."""

from __future__ import annotations

from html import escape
from typing import Sequence

from kzt_rates.ingestion.models import SUPPORTED_CURRENCIES
from kzt_rates.view import BankSnapshot, CurrencyRate

HTMX_SRC = "https://unpkg.com/htmx.org@1.9.12"
DEFAULT_CURRENCY = "USD"

_PAGE_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="utf-8">
<title>KZT exchange rates</title>
<script src="{htmx}"></script>
<style>
body {{ font-family: sans-serif; margin: 2rem; }}
nav a {{ margin-right: 1rem; }}
nav a.active {{ font-weight: bold; }}
table {{ border-collapse: collapse; }}
td, th {{ padding: 0.25rem 0.75rem; text-align: right; }}
td:first-child, th:first-child {{ text-align: left; }}
.up {{ color: #2a7d2a; }}
.down {{ color: #b02a2a; }}
</style>
</head>
<body>
<h1>KZT exchange rates</h1>
<nav>{tabs}</nav>
<div id="tab-content" hx-get="/c/{current}" hx-trigger="load"></div>
</body>
</html>
"""


def _tab(code: str, current: str) -> str:
    slug = escape(code.lower())
    css = ' class="active"' if code == current else ""
    return (
        f'<a href="/c/{slug}"{css} hx-get="/c/{slug}" hx-target="#tab-content" '
        f'hx-push-url="true">{escape(code)}</a>'
    )


def render_index_page(currency: str = DEFAULT_CURRENCY) -> str:
    """Full page shell; the rates table is loaded into it by HTMX."""

    current = currency.upper()
    tabs = "".join(_tab(code, current) for code in SUPPORTED_CURRENCIES)
    return _PAGE_TEMPLATE.format(
        htmx=escape(HTMX_SRC),
        tabs=tabs,
        current=escape(current.lower()),
    )


def format_change(pct: float) -> str:
    if pct == 0:
        return ""
    css = "up" if pct > 0 else "down"
    return f'<span class="{css}">{pct:+.2f}%</span>'


def _format_rate(value: float) -> str:
    return f"{value:.2f}" if value else "-"


def render_tab_content(banks: Sequence[BankSnapshot], currency: str) -> str:
    """Rates table for one currency, or a "no data" notice when empty."""

    code = currency.upper()
    if not banks:
        return f'<p class="no-data">No data for {escape(code)}.</p>'

    rows = []
    for bank in banks:
        rate = bank.rate(code) or CurrencyRate()
        rows.append(
            "<tr>"
            f"<td>{escape(bank.name)}</td>"
            f"<td>{escape(bank.location)}</td>"
            f"<td>{_format_rate(rate.buy)} {format_change(rate.buy_change_pct)}</td>"
            f"<td>{_format_rate(rate.sell)} {format_change(rate.sell_change_pct)}</td>"
            "</tr>"
        )
    return (
        f'<table class="rates" data-currency="{escape(code)}">'
        "<thead><tr><th>Bank</th><th>Location</th><th>Buy</th><th>Sell</th></tr></thead>"
        f"<tbody>{''.join(rows)}</tbody>"
        "</table>"
    )


__all__ = ["render_index_page", "render_tab_content", "format_change", "DEFAULT_CURRENCY"]
