from __future__ import annotations

import pytest

from kzt_rates.config import DEFAULT_SOURCE_URLS, Settings, parse_listen_address
from kzt_rates.ingestion import SOURCE_TYPES


def test_defaults_without_environment() -> None:
    settings = Settings.from_env({})

    assert settings.db_url == "sqlite:///exr.db"
    assert settings.listen_addr == ":8080"
    assert settings.refresh_interval == 1800
    assert settings.refresh_deadline == 25
    assert settings.http_timeout == 30
    assert settings.log_level == "INFO"
    assert settings.source_urls == DEFAULT_SOURCE_URLS


def test_default_sources_cover_every_adapter() -> None:
    assert set(DEFAULT_SOURCE_URLS) == set(SOURCE_TYPES)


def test_environment_overrides() -> None:
    settings = Settings.from_env(
        {
            "KZT_RATES_DB_URL": "sqlite:////var/lib/kzt/rates.db",
            "KZT_RATES_HTTP_ADDR": "127.0.0.1:9000",
            "KZT_RATES_REFRESH_INTERVAL": "600",
            "KZT_RATES_REFRESH_DEADLINE": "12.5",
            "KZT_RATES_HTTP_TIMEOUT": "10",
            "KZT_RATES_LOG_LEVEL": "debug",
            "KZT_RATES_HOMEKZ_URL": "http://localhost:8000/home",
        }
    )

    assert settings.db_url == "sqlite:////var/lib/kzt/rates.db"
    assert settings.listen_addr == "127.0.0.1:9000"
    assert settings.refresh_interval == 600
    assert settings.refresh_deadline == 12.5
    assert settings.http_timeout == 10
    assert settings.log_level == "DEBUG"
    assert settings.source_urls["HomeKZ"] == "http://localhost:8000/home"
    assert settings.source_urls["Kaspi"] == DEFAULT_SOURCE_URLS["Kaspi"]


def test_blank_values_fall_back_to_defaults() -> None:
    settings = Settings.from_env({"KZT_RATES_DB_URL": "  ", "KZT_RATES_REFRESH_INTERVAL": ""})

    assert settings.db_url == "sqlite:///exr.db"
    assert settings.refresh_interval == 1800


@pytest.mark.parametrize("value", ["soon", "0", "-5"])
def test_invalid_durations_are_rejected(value) -> None:
    with pytest.raises(ValueError, match="KZT_RATES_REFRESH_DEADLINE"):
        Settings.from_env({"KZT_RATES_REFRESH_DEADLINE": value})


@pytest.mark.parametrize(
    "addr, expected",
    [
        (":8080", ("0.0.0.0", 8080)),
        ("127.0.0.1:9000", ("127.0.0.1", 9000)),
        ("localhost:80", ("localhost", 80)),
    ],
)
def test_parse_listen_address(addr, expected) -> None:
    assert parse_listen_address(addr) == expected


@pytest.mark.parametrize("addr", ["8080", "host:", "host:http"])
def test_parse_listen_address_rejects_garbage(addr) -> None:
    with pytest.raises(ValueError):
        parse_listen_address(addr)
