"""National Bank of Kazakhstan RSS feed."""

from __future__ import annotations

from typing import Any, Iterator

import requests
from bs4 import BeautifulSoup

from kzt_rates.errors import DecodeError
from kzt_rates.ingestion.base import BankSource, Quote
from kzt_rates.ingestion.models import is_supported

NBRK_URL = "https://nationalbank.kz/rss/rates_all.xml"


class NBRKSource(BankSource):
    """Official rates: ``<title>`` is the code and ``<description>`` the rate.

    The feed publishes a single official rate, so it is used for both buy and
    sell.
    """

    name = "NBRK"

    def decode(self, response: requests.Response) -> Any:
        # html.parser keeps lxml out of the dependencies. The feed only needs
        # <item>, <title> and <description>; <link> is read as a void tag and ignored.
        soup = BeautifulSoup(response.content, "html.parser")
        channel = soup.find("channel") if soup.find("rss") else None
        if channel is None:
            raise DecodeError(self.name, "decode response: missing rss channel")
        return channel

    def parse(self, payload: Any) -> Iterator[Quote]:
        for item in payload.find_all("item"):
            title = item.find("title")
            description = item.find("description")
            if title is None or description is None:
                continue
            code = title.get_text(strip=True)
            if not is_supported(code):
                continue
            rate = self._number_text(description.get_text(strip=True), f"{code} description")
            yield Quote(currency_code=code, buy=rate, sell=rate)


__all__ = ["NBRKSource", "NBRK_URL"]
