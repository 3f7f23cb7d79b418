"""Turn flat observations into per-bank dashboard snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from kzt_rates.ingestion.models import SUPPORTED_CURRENCIES, RateObservation

DEFAULT_LOCATION = "KZ"


@dataclass(slots=True)
class CurrencyRate:
    buy: float = 0.0
    sell: float = 0.0
    buy_change_pct: float = 0.0
    sell_change_pct: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.buy == 0 and self.sell == 0

    @property
    def sort_value(self) -> float:
        # Banks quoting only the sell side still sort by something meaningful.
        return self.buy if self.buy != 0 else self.sell


@dataclass(slots=True)
class BankSnapshot:
    name: str
    location: str = DEFAULT_LOCATION
    rates: dict[str, CurrencyRate] = field(
        default_factory=lambda: {code: CurrencyRate() for code in SUPPORTED_CURRENCIES}
    )

    def rate(self, currency_code: str) -> CurrencyRate | None:
        return self.rates.get(currency_code.upper())


def _parse_float(value: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _change_pct(delta: float, current: float) -> float:
    """Percentage of the current value, not of the previous one."""

    if current > 0:
        return delta / current * 100
    return 0.0


def build_bank_snapshots(
    observations: Iterable[RateObservation], requested_currency: str
) -> list[BankSnapshot]:
    """Group by source, drop banks without the requested currency, sort by it.

    Banks are ordered by ascending buy rate of ``requested_currency`` (sell rate
    when buy is zero). A currency outside the supported set has no slot, so no
    bank is dropped and the first-seen order is kept.
    """

    currency = requested_currency.upper()
    banks: dict[str, BankSnapshot] = {}
    for observation in observations:
        bank = banks.get(observation.source)
        if bank is None:
            bank = banks[observation.source] = BankSnapshot(name=observation.source)
        slot = bank.rate(observation.currency_code)
        if slot is None:
            continue
        buy = _parse_float(observation.buy)
        sell = _parse_float(observation.sell)
        if buy > 0:
            slot.buy = buy
            slot.buy_change_pct = _change_pct(observation.buy_delta_prev, buy)
        if sell > 0:
            slot.sell = sell
            slot.sell_change_pct = _change_pct(observation.sell_delta_prev, sell)

    if currency not in SUPPORTED_CURRENCIES:
        # No slot to filter or compare on: banks keep their first-seen order.
        return list(banks.values())
    selected = [bank for bank in banks.values() if not bank.rates[currency].is_empty]
    return sorted(selected, key=lambda bank: bank.rates[currency].sort_value)


__all__ = ["BankSnapshot", "CurrencyRate", "build_bank_snapshots", "DEFAULT_LOCATION"]
