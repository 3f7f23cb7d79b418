"""Bank source adapters and the default source registry."""

from __future__ import annotations

from typing import TYPE_CHECKING, Mapping

import requests

from kzt_rates.http import DEFAULT_TIMEOUT
from kzt_rates.ingestion.base import BankSource, Quote, RateSource
from kzt_rates.ingestion.freedom import FreedomSource
from kzt_rates.ingestion.halyk import HalykSource
from kzt_rates.ingestion.home import HomeSource
from kzt_rates.ingestion.kaspi import KaspiSource
from kzt_rates.ingestion.models import LOCAL_CURRENCY, SUPPORTED_CURRENCIES, RateObservation
from kzt_rates.ingestion.nbrk import NBRKSource
from kzt_rates.ingestion.rbk import RBKSource

if TYPE_CHECKING:  # pragma: no cover - import only for static analyzers
    from kzt_rates.config import Settings

SOURCE_TYPES: dict[str, type[BankSource]] = {
    source.name: source
    for source in (KaspiSource, HalykSource, FreedomSource, RBKSource, HomeSource, NBRKSource)
}


def build_sources(
    urls: Mapping[str, str],
    *,
    session: requests.Session | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> dict[str, BankSource]:
    """Instantiate one adapter per ``name -> url`` entry, sharing ``session``."""

    sources: dict[str, BankSource] = {}
    for name, url in urls.items():
        try:
            source_type = SOURCE_TYPES[name]
        except KeyError as exc:
            raise ValueError(f"Unknown rate source: {name}") from exc
        sources[name] = source_type(url, session=session, timeout=timeout)
    return sources


def build_default_sources(
    settings: "Settings", *, session: requests.Session | None = None
) -> dict[str, BankSource]:
    return build_sources(settings.source_urls, session=session, timeout=settings.http_timeout)


__all__ = [
    "BankSource",
    "Quote",
    "RateSource",
    "RateObservation",
    "SUPPORTED_CURRENCIES",
    "LOCAL_CURRENCY",
    "SOURCE_TYPES",
    "KaspiSource",
    "HalykSource",
    "FreedomSource",
    "RBKSource",
    "HomeSource",
    "NBRKSource",
    "build_sources",
    "build_default_sources",
]
