"""Bank RBK exchange rate module API."""

from __future__ import annotations

from typing import Any, Iterator

from kzt_rates.errors import ApiError
from kzt_rates.ingestion.base import BankSource, Quote
from kzt_rates.ingestion.models import LOCAL_CURRENCY, SUPPORTED_CURRENCIES, is_supported

RBK_URL = "https://backend.bankrbk.kz/api/v1/modules/exchange_rates/data"


class RBKSource(BankSource):
    """Reads the ``online`` section, where buy and sell are separate lists.

    Items quoted against anything but KZT (cross rates, metals) are skipped and
    a currency is reported only when both sides are present.
    """

    name = "RBK"

    def parse(self, payload: Any) -> Iterator[Quote]:
        data = self._mapping(payload, "response")
        error_code = data.get("error")
        if error_code != 0:
            raise ApiError(self.name, f"rbk api error code: {error_code}")
        body = self._mapping(data.get("data"), "data")
        online = self._mapping(body.get("online") or {}, "online")
        buy = self._side(online.get("buy"), "buy")
        sell = self._side(online.get("sell"), "sell")
        for code in SUPPORTED_CURRENCIES:
            if code in buy and code in sell:
                yield Quote(currency_code=code, buy=buy[code], sell=sell[code])

    def _side(self, items: object, what: str) -> dict[str, str]:
        amounts: dict[str, str] = {}
        for item in self._list(items, f"online.{what}"):
            item = self._mapping(item, f"online.{what} item")
            if item.get("dst") != LOCAL_CURRENCY:
                continue
            code = item.get("src")
            if not isinstance(code, str) or not is_supported(code):
                continue
            amounts[code] = self._number_text(item.get("amount"), f"{code} {what}")
        return amounts


__all__ = ["RBKSource", "RBK_URL"]
