from __future__ import annotations

import runpy

import pytest
import uvicorn

import kzt_rates
from kzt_rates import cli
from kzt_rates.db.rate_store import RateStore
from kzt_rates.errors import ApiError
from kzt_rates.ingestion.models import RateObservation
from kzt_rates.utils.time_range import utcnow


class _Source:
    def __init__(self, name, quotes, error=None):
        self.name = name
        self.quotes = quotes
        self.error = error

    def fetch(self, context=None):
        if self.error is not None:
            raise self.error
        now = utcnow()
        return [RateObservation(code, buy, sell, self.name, now) for code, buy, sell in self.quotes]


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch):
    for key in ("KZT_RATES_DB_URL", "KZT_RATES_HTTP_ADDR", "KZT_RATES_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "cli.db"


def _use_sources(monkeypatch, sources):
    monkeypatch.setattr(kzt_rates, "build_default_sources", lambda settings, session=None: sources)


def test_refresh_prints_summary(monkeypatch, capsys, db_path) -> None:
    _use_sources(monkeypatch, {"Kaspi": _Source("Kaspi", [("USD", "470", "475")])})

    assert cli.main(["--db", str(db_path), "refresh", "--deadline", "5"]) == 0

    assert "inserted=1 skipped=0" in capsys.readouterr().out
    assert RateStore(cli.resolve_db_url(str(db_path))).latest("USD", "Kaspi").buy == "470"


def test_refresh_failure_exits_non_zero(monkeypatch, db_path) -> None:
    _use_sources(monkeypatch, {"Halyk": _Source("Halyk", [], error=ApiError("Halyk", "result flag false"))})

    assert cli.main(["--db", str(db_path), "refresh"]) == 1


def test_rates_prints_table(capsys, db_path) -> None:
    store = RateStore(cli.resolve_db_url(str(db_path)))
    store.insert(RateObservation("USD", "470.00", "475.00", "Kaspi"))
    store.close()

    assert cli.main(["--db", str(db_path), "rates", "--currency", "usd"]) == 0

    lines = capsys.readouterr().out.splitlines()
    assert lines[0].split() == list(cli.TABLE_COLUMNS)
    assert lines[1].split()[1:5] == ["Kaspi", "USD", "470.00", "475.00"]


def test_rates_without_data_exits_non_zero(capsys, db_path) -> None:
    assert cli.main(["--db", str(db_path), "rates"]) == 1
    assert "no rates" in capsys.readouterr().err


@pytest.mark.parametrize(
    "extra",
    [["--currency", "US"], ["--from", "not-a-date"], ["--from", "2024-03-05", "--to", "2024-03-01"]],
)
def test_rates_rejects_invalid_filters(db_path, extra) -> None:
    assert cli.main(["--db", str(db_path), "rates", *extra]) == 1


def test_invalid_log_level_exits_non_zero(db_path) -> None:
    assert cli.main(["--db", str(db_path), "--log-level", "chatty", "rates"]) == 1


def test_serve_runs_uvicorn_on_listen_address(monkeypatch, db_path) -> None:
    captured = {}

    def _fake_run(app, host, port, log_level):
        captured.update(app=app, host=host, port=port, log_level=log_level)

    monkeypatch.setattr(uvicorn, "run", _fake_run)
    _use_sources(monkeypatch, {})

    assert cli.main(["--db", str(db_path), "serve", "--addr", ":9000"]) == 0

    assert (captured["host"], captured["port"], captured["log_level"]) == ("0.0.0.0", 9000, "info")
    assert captured["app"].state.rates is not None


def test_resolve_db_url_accepts_paths_and_urls() -> None:
    assert cli.resolve_db_url("rates.db") == "sqlite:///rates.db"
    assert cli.resolve_db_url("postgresql://db/rates") == "postgresql://db/rates"


def test_format_table_aligns_columns() -> None:
    table = cli.format_table([RateObservation("EUR", "510", "520", "Halyk", utcnow(), 1.5, -2.0)])

    header, row = table.splitlines()
    assert header.index("source") == row.index("Halyk")
    assert "+1.50" in row
    assert "-2.00" in row


def test_module_entry_point_invokes_main(monkeypatch) -> None:
    monkeypatch.setattr(cli, "main", lambda argv=None: 0)

    with pytest.raises(SystemExit) as excinfo:
        runpy.run_module("kzt_rates", run_name="__main__")

    assert excinfo.value.code == 0
