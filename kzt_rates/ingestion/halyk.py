"""Halyk Bank currency history API."""

from __future__ import annotations

from typing import Any, Iterator

from kzt_rates.errors import ApiError, DecodeError, EmptyResultError
from kzt_rates.ingestion.base import BankSource, Quote
from kzt_rates.ingestion.models import LOCAL_CURRENCY, is_supported

HALYK_URL = "https://back.halykbank.kz/common/currency-history"
PAIR_SEPARATOR = "/"


class HalykSource(BankSource):
    """Reads the ``privatePersons`` section of the latest history entry.

    ``data.currencyHistory`` arrives either as an object keyed by string
    indices (``"0"``, ``"1"``...) or as an array; entry ``"0"`` / the first
    element is the most recent one. Pairs are keyed like ``"USD/KZT"``.
    """

    name = "Halyk"

    def parse(self, payload: Any) -> Iterator[Quote]:
        data = self._mapping(payload, "response")
        if data.get("result") is not True:
            raise ApiError(self.name, "result flag false")
        body = self._mapping(data.get("data"), "data")
        latest = self._latest_entry(body.get("currencyHistory"))
        pairs = self._mapping(latest.get("privatePersons") or {}, "privatePersons")
        for pair, values in pairs.items():
            base, _, counter = pair.partition(PAIR_SEPARATOR)
            if not is_supported(base):
                continue
            if counter and counter != LOCAL_CURRENCY:
                continue
            values = self._mapping(values, pair)
            yield Quote(
                currency_code=base,
                buy=self._number_text(values.get("buy"), f"{pair} buy"),
                sell=self._number_text(values.get("sell"), f"{pair} sell"),
            )

    def _latest_entry(self, history: object) -> dict[str, Any]:
        if isinstance(history, dict):
            entry = history.get("0")
        elif isinstance(history, list):
            entry = history[0] if history else None
        elif history is None:
            entry = None
        else:
            raise DecodeError(self.name, "unexpected currencyHistory JSON")
        if entry is None:
            raise EmptyResultError(self.name, "empty currency history")
        return self._mapping(entry, "currencyHistory entry")


__all__ = ["HalykSource", "HALYK_URL"]
