"""Environment-driven configuration for kzt_rates."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final, Mapping

from kzt_rates.db import DEFAULT_DB_URL
from kzt_rates.http import DEFAULT_TIMEOUT
from kzt_rates.ingestion.freedom import FREEDOM_URL
from kzt_rates.ingestion.halyk import HALYK_URL
from kzt_rates.ingestion.home import HOME_URL
from kzt_rates.ingestion.kaspi import KASPI_URL
from kzt_rates.ingestion.nbrk import NBRK_URL
from kzt_rates.ingestion.rbk import RBK_URL

ENV_PREFIX: Final[str] = "KZT_RATES_"

DEFAULT_SOURCE_URLS: Final[dict[str, str]] = {
    "Kaspi": KASPI_URL,
    "Halyk": HALYK_URL,
    "Freedom": FREEDOM_URL,
    "RBK": RBK_URL,
    "HomeKZ": HOME_URL,
    "NBRK": NBRK_URL,
}

DEFAULT_LISTEN_ADDR: Final[str] = ":8080"
DEFAULT_REFRESH_INTERVAL: Final[float] = 30 * 60.0
DEFAULT_REFRESH_DEADLINE: Final[float] = 25.0


@dataclass(slots=True)
class Settings:
    """Runtime settings; every field has a default suitable for local use."""

    db_url: str = DEFAULT_DB_URL
    listen_addr: str = DEFAULT_LISTEN_ADDR
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    refresh_deadline: float = DEFAULT_REFRESH_DEADLINE
    http_timeout: float = DEFAULT_TIMEOUT
    log_level: str = "INFO"
    source_urls: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_SOURCE_URLS))

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from ``KZT_RATES_*`` variables; blanks mean "default"."""

        env = os.environ if environ is None else environ

        def _get(key: str) -> str | None:
            value = env.get(ENV_PREFIX + key, "").strip()
            return value or None

        def _seconds(key: str, default: float) -> float:
            raw = _get(key)
            if raw is None:
                return default
            try:
                value = float(raw)
            except ValueError as exc:
                raise ValueError(f"{ENV_PREFIX}{key} must be a number, got {raw!r}") from exc
            if value <= 0:
                raise ValueError(f"{ENV_PREFIX}{key} must be positive")
            return value

        source_urls = {
            name: _get(f"{name.upper()}_URL") or url for name, url in DEFAULT_SOURCE_URLS.items()
        }
        return cls(
            db_url=_get("DB_URL") or DEFAULT_DB_URL,
            listen_addr=_get("HTTP_ADDR") or DEFAULT_LISTEN_ADDR,
            refresh_interval=_seconds("REFRESH_INTERVAL", DEFAULT_REFRESH_INTERVAL),
            refresh_deadline=_seconds("REFRESH_DEADLINE", DEFAULT_REFRESH_DEADLINE),
            http_timeout=_seconds("HTTP_TIMEOUT", DEFAULT_TIMEOUT),
            log_level=(_get("LOG_LEVEL") or "INFO").upper(),
            source_urls=source_urls,
        )


def parse_listen_address(addr: str) -> tuple[str, int]:
    """Split ``host:port``; an empty host (``":8080"``) binds every interface."""

    host, sep, port = addr.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"listen address must look like 'host:port', got {addr!r}")
    return host or "0.0.0.0", int(port)


__all__ = [
    "Settings",
    "DEFAULT_SOURCE_URLS",
    "DEFAULT_LISTEN_ADDR",
    "DEFAULT_REFRESH_INTERVAL",
    "DEFAULT_REFRESH_DEADLINE",
    "parse_listen_address",
]
