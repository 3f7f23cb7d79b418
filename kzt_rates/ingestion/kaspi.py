"""Kaspi Bank aggregate rate API."""

from __future__ import annotations

import json
from typing import Any, Iterator

from kzt_rates.errors import ApiError, DecodeError
from kzt_rates.ingestion.base import BankSource, Quote
from kzt_rates.ingestion.models import is_supported

KASPI_URL = "https://guide.kaspi.kz/client/api/v2/intgr/currency/rate/aggregate"
KASPI_REQUEST_BODY = {
    "use_type": "32",
    "currency_codes": ["USD", "EUR"],
    "rate_types": ["SALE", "BUY"],
}
# Kaspi expects these header names verbatim.
KASPI_HEADERS = {
    "Content-Type": "application/json",
    "gLanguage": "ru",
    "gSystem": "kkz",
}


class KaspiSource(BankSource):
    """POSTs a fixed query and reads whole-unit integer rates from ``body``.

    The endpoint only answers requests originating from Kazakhstan.
    """

    name = "Kaspi"
    method = "POST"

    def request_options(self) -> dict[str, Any]:
        return {
            "data": json.dumps(KASPI_REQUEST_BODY, separators=(",", ":")),
            "headers": dict(KASPI_HEADERS),
        }

    def parse(self, payload: Any) -> Iterator[Quote]:
        data = self._mapping(payload, "response")
        if data.get("status") != "OK" or data.get("message") != "OK":
            raise ApiError(self.name, f"Kaspi API returned error: {data.get('message')}")
        for item in self._list(data.get("body"), "body"):
            item = self._mapping(item, "body item")
            code = item.get("currency")
            if not isinstance(code, str) or not is_supported(code):
                continue
            yield Quote(
                currency_code=code,
                buy=self._integer_text(item.get("buy"), "buy"),
                sell=self._integer_text(item.get("sale"), "sale"),
            )

    def _integer_text(self, value: object, what: str) -> str:
        if isinstance(value, bool) or not isinstance(value, int):
            raise DecodeError(self.name, f"expected an integer for {what}: {value!r}")
        return str(value)


__all__ = ["KaspiSource", "KASPI_URL", "KASPI_REQUEST_BODY"]
