"""HTTP session that logs every outbound request."""

from __future__ import annotations

import time

import requests

from kzt_rates.utils.logger import get_logger

LOGGER = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0
USER_AGENT = "kzt-rates/0.1"


class LoggingSession(requests.Session):
    """``requests.Session`` that records method, URL, status and duration."""

    def __init__(self) -> None:
        super().__init__()
        self.headers["User-Agent"] = USER_AGENT

    def send(self, request: requests.PreparedRequest, **kwargs) -> requests.Response:
        start = time.perf_counter()
        try:
            response = super().send(request, **kwargs)
        except requests.RequestException as exc:
            LOGGER.error(
                "http request failed method=%s url=%s error=%s duration=%.3fs",
                request.method,
                request.url,
                exc,
                time.perf_counter() - start,
            )
            raise
        LOGGER.info(
            "http request completed method=%s url=%s status=%s duration=%.3fs",
            request.method,
            request.url,
            response.status_code,
            time.perf_counter() - start,
        )
        return response


__all__ = ["LoggingSession", "DEFAULT_TIMEOUT", "USER_AGENT"]
