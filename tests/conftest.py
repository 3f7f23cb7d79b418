from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable

import pytest
import requests

from kzt_rates.db.rate_store import RateStore


def make_response(body: Any, status: int = 200, url: str = "https://bank.test/rates") -> requests.Response:
    """Build a real ``requests.Response`` around ``body`` (JSON unless bytes/str)."""

    response = requests.Response()
    response.status_code = status
    response.url = url
    response.encoding = "utf-8"
    if isinstance(body, bytes):
        response._content = body
    elif isinstance(body, str):
        response._content = body.encode("utf-8")
    else:
        response._content = json.dumps(body).encode("utf-8")
    return response


class FakeSession:
    """Stands in for ``requests.Session``; records every call it receives."""

    def __init__(self, response: requests.Response | None = None, error: Exception | None = None):
        self.response = response
        self.error = error
        self.calls: list[tuple[str, str, dict[str, Any]]] = []
        self.closed = False

    def request(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        self.calls.append((method, url, kwargs))
        if self.error is not None:
            raise self.error
        assert self.response is not None
        return self.response

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_session() -> Callable[..., FakeSession]:
    def _factory(body: Any = None, *, status: int = 200, error: Exception | None = None) -> FakeSession:
        response = None if error is not None else make_response(body, status)
        return FakeSession(response=response, error=error)

    return _factory


@pytest.fixture
def rate_store(tmp_path) -> RateStore:
    store = RateStore(f"sqlite:///{tmp_path / 'rates.db'}")
    yield store
    store.close()


def at(day: int, hour: int = 12, minute: int = 0) -> datetime:
    return datetime(2024, 3, day, hour, minute, tzinfo=timezone.utc)


@pytest.fixture
def ts() -> Callable[..., datetime]:
    """Fixed UTC timestamps in March 2024: ``ts(day, hour=12, minute=0)``."""

    return at
