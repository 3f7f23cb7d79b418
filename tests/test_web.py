from __future__ import annotations

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from kzt_rates import KztRates
from kzt_rates.config import Settings
from kzt_rates.ingestion.models import RateObservation
from kzt_rates.web import create_app
from kzt_rates.web.render import format_change

HX = {"HX-Request": "true"}


def _at(day: int) -> datetime:
    return datetime(2024, 3, day, 12, tzinfo=timezone.utc)


@pytest.fixture
def rates(tmp_path):
    facade = KztRates(Settings(db_url=f"sqlite:///{tmp_path / 'web.db'}"), sources={})
    yield facade
    facade.close()


@pytest.fixture
def client(rates):
    return TestClient(create_app(rates))


def _seed(rates: KztRates) -> None:
    for observation in (
        RateObservation("USD", "470.00", "475.00", "Kaspi", _at(1)),
        RateObservation("USD", "471.50", "475.00", "Kaspi", _at(2)),
        RateObservation("USD", "469.00", "474.00", "Halyk", _at(2)),
        RateObservation("EUR", "510.00", "520.00", "Kaspi", _at(2)),
    ):
        rates.store.insert(observation)


def test_index_renders_usd_tab(client) -> None:
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "<!DOCTYPE html>" in response.text
    assert 'hx-get="/c/usd" hx-trigger="load"' in response.text


def test_currency_page_without_htmx_is_full_page(client, rates) -> None:
    _seed(rates)

    response = client.get("/c/eur")

    assert "<!DOCTYPE html>" in response.text
    assert 'hx-get="/c/eur" hx-trigger="load"' in response.text


def test_currency_tab_with_htmx_is_table_only(client, rates) -> None:
    _seed(rates)

    response = client.get("/c/usd", headers=HX)

    assert response.status_code == 200
    assert "<!DOCTYPE html>" not in response.text
    assert response.text.index("Halyk") < response.text.index("Kaspi")
    assert "471.50" in response.text
    assert "+0.32%" in response.text


def test_empty_store_renders_no_data(client) -> None:
    response = client.get("/c/usd", headers=HX)

    assert response.status_code == 200
    assert "No data for USD" in response.text


def test_rendered_values_are_escaped(client, rates) -> None:
    rates.store.insert(RateObservation("USD", "470", "475", "<script>alert(1)</script>", _at(1)))

    response = client.get("/c/usd", headers=HX)

    assert "<script>" not in response.text
    assert "&lt;script&gt;alert(1)&lt;/script&gt;" in response.text


def test_api_rates_returns_collapsed_observations(client, rates) -> None:
    _seed(rates)

    response = client.get("/api/rates", params={"currency": "usd"})

    assert response.status_code == 200
    by_source = {row["source"]: row for row in response.json()}
    assert {source: row["buy"] for source, row in by_source.items()} == {
        "Kaspi": "471.50",
        "Halyk": "469.00",
    }
    assert by_source["Kaspi"]["created_at"] == "2024-03-02T12:00:00+00:00"
    assert by_source["Kaspi"]["buy_delta_prev"] == pytest.approx(1.5)
    assert by_source["Halyk"]["buy_delta_prev"] == 0.0


def test_api_rates_history_for_currency_and_source(client, rates) -> None:
    _seed(rates)

    response = client.get(
        "/api/rates",
        params={"currency": "USD", "source": "Kaspi", "start": "2024-03-01T00:00:00Z"},
    )

    assert [row["buy"] for row in response.json()] == ["471.50", "470.00"]


@pytest.mark.parametrize(
    "params",
    [
        {"currency": "US"},
        {"start": "yesterday"},
        {"start": "2024-03-05", "end": "2024-03-01"},
    ],
)
def test_api_rates_rejects_invalid_filters(client, params) -> None:
    assert client.get("/api/rates", params=params).status_code == 400


def test_api_rates_not_found(client) -> None:
    response = client.get("/api/rates")

    assert response.status_code == 404


def test_api_banks_returns_snapshots(client, rates) -> None:
    _seed(rates)

    payload = client.get("/api/banks/USD").json()

    assert [bank["name"] for bank in payload] == ["Halyk", "Kaspi"]
    assert payload[1]["location"] == "KZ"
    assert payload[1]["rates"]["EUR"]["buy"] == 510.0


def test_lifespan_starts_and_stops_refresher(rates) -> None:
    class _Refresher:
        started = stopped = 0

        def start(self):
            self.started += 1

        def stop(self):
            self.stopped += 1

    refresher = _Refresher()

    with TestClient(create_app(rates, refresher=refresher)) as client:
        assert client.get("/").status_code == 200
        assert refresher.started == 1
        assert refresher.stopped == 0

    assert refresher.stopped == 1


@pytest.mark.parametrize("pct, expected", [(0.0, ""), (0.3058, "+0.31%"), (-1.25, "-1.25%")])
def test_format_change(pct, expected) -> None:
    assert expected in format_change(pct)


def test_unsupported_currency_tab_lists_banks_without_rates(client, rates) -> None:
    _seed(rates)

    response = client.get("/c/gbp", headers=HX)

    assert response.status_code == 200
    assert 'data-currency="GBP"' in response.text
    assert response.text.index("Kaspi") < response.text.index("Halyk")
    assert "<td>- </td>" in response.text
