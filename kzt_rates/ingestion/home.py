"""Home Credit Bank (home.kz) public currency API."""

from __future__ import annotations

from typing import Any, Final, Iterator

from kzt_rates.ingestion.base import BankSource, Quote

HOME_URL = "https://home.kz/api/public/getCurrency"

# ``p_curr_id`` -> currency code
HOME_CURRENCY_IDS: Final[dict[str, str]] = {
    "1": "USD",
    "17": "EUR",
    "16": "RUB",
}


class HomeSource(BankSource):
    name = "HomeKZ"

    def parse(self, payload: Any) -> Iterator[Quote]:
        data = self._mapping(payload, "response")
        for item in self._list(data.get("currency"), "currency"):
            item = self._mapping(item, "currency item")
            code = HOME_CURRENCY_IDS.get(str(item.get("p_curr_id")))
            if code is None:
                continue
            yield Quote(
                currency_code=code,
                buy=self._number_text(item.get("p_rate_buy"), "p_rate_buy"),
                sell=self._number_text(item.get("p_rate_sell"), "p_rate_sell"),
            )


__all__ = ["HomeSource", "HOME_URL", "HOME_CURRENCY_IDS"]
