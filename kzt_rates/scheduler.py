"""Periodic trigger that keeps the observation log fresh."""

from __future__ import annotations

import threading

from kzt_rates.config import DEFAULT_REFRESH_DEADLINE, DEFAULT_REFRESH_INTERVAL
from kzt_rates.errors import RatesError
from kzt_rates.service import ExchangeRateService, RefreshResult
from kzt_rates.utils.deadline import FetchContext
from kzt_rates.utils.logger import get_logger

LOGGER = get_logger(__name__)


class PeriodicRefresher:
    """Runs :meth:`ExchangeRateService.refresh` now and then every ``interval``.

    A failed cycle is logged and otherwise ignored; the next tick retries.
    """

    def __init__(
        self,
        service: ExchangeRateService,
        *,
        interval: float = DEFAULT_REFRESH_INTERVAL,
        deadline: float = DEFAULT_REFRESH_DEADLINE,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.service = service
        self.interval = interval
        self.deadline = deadline
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> RefreshResult | None:
        try:
            return self.service.refresh(FetchContext(self.deadline))
        except RatesError as exc:
            LOGGER.warning("background refresh failed: %s", exc)
        except Exception:
            LOGGER.exception("background refresh crashed")
        return None

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="kzt-rates-refresher", daemon=True)
        self._thread.start()
        LOGGER.info("Periodic refresh started (every %ss)", self.interval)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self) -> None:
        self.run_once()
        while not self._stop.wait(self.interval):
            self.run_once()


__all__ = ["PeriodicRefresher"]
