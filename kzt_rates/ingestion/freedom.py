"""Freedom Bank exchange rate API."""

from __future__ import annotations

from typing import Any, Iterator

from kzt_rates.errors import ApiError
from kzt_rates.ingestion.base import BankSource, Quote
from kzt_rates.ingestion.models import LOCAL_CURRENCY, is_supported

FREEDOM_URL = "https://bankffin.kz/api/exchange-rates/getRates"


class FreedomSource(BankSource):
    """Uses the ``cash`` bucket only; ``mobile`` and ``non_cash`` are ignored."""

    name = "Freedom"

    def parse(self, payload: Any) -> Iterator[Quote]:
        data = self._mapping(payload, "response")
        if data.get("success") is not True:
            raise ApiError(self.name, f"freedom api success false: {data.get('message')}")
        # Some responses omit ``status`` entirely.
        status = data.get("status") or 0
        if status not in (0, 200):
            raise ApiError(self.name, f"freedom api status {status}")
        buckets = self._mapping(data.get("data"), "data")
        for item in self._list(buckets.get("cash"), "cash"):
            item = self._mapping(item, "cash item")
            if item.get("sellCode") != LOCAL_CURRENCY:
                continue
            code = item.get("buyCode")
            if not isinstance(code, str) or not is_supported(code):
                continue
            yield Quote(
                currency_code=code,
                buy=self._number_text(item.get("buyRate"), "buyRate"),
                sell=self._number_text(item.get("sellRate"), "sellRate"),
            )


__all__ = ["FreedomSource", "FREEDOM_URL"]
