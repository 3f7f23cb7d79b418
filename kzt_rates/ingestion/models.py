"""Data models shared across ingestion modules."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Final

SUPPORTED_CURRENCIES: Final[tuple[str, ...]] = ("USD", "EUR", "RUB")
LOCAL_CURRENCY: Final[str] = "KZT"


@dataclass(slots=True)
class RateObservation:
    """One normalised buy/sell quote from one source at one instant.

    ``buy`` and ``sell`` keep the upstream digits as strings. The ``*_delta_prev``
    fields are filled by the store on read and are never persisted.
    """

    currency_code: str
    buy: str
    sell: str
    source: str
    observed_at: datetime | None = None
    buy_delta_prev: float = 0.0
    sell_delta_prev: float = 0.0

    def same_quote(self, other: "RateObservation") -> bool:
        """Return True when buy and sell strings are byte-identical."""

        return self.buy == other.buy and self.sell == other.sell

    def as_dict(self) -> dict[str, object]:
        """JSON-ready mapping; ``observed_at`` is rendered as ISO-8601."""

        return {
            "currency_code": self.currency_code,
            "buy": self.buy,
            "sell": self.sell,
            "source": self.source,
            "created_at": self.observed_at.isoformat() if self.observed_at else None,
            "buy_delta_prev": self.buy_delta_prev,
            "sell_delta_prev": self.sell_delta_prev,
        }


def is_supported(currency_code: str) -> bool:
    return currency_code in SUPPORTED_CURRENCIES
