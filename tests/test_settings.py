"""
Pytest tests for environment-driven settings.
"""

from __future__ import annotations

import pytest

from gravity_pulse.config import get_settings
from gravity_pulse.config.env import mask_url

ENV_VARS = (
    "CHAIN_RPC_URL", "CHAINS_RPC_URL", "CHAINSCAN_API_URL", "CHAINS_CAN_API_URL",
    "EXPLORER_API_STYLE", "TOKEN_DISCOVERY", "DATABASE_URL", "WALLET_CACHE_DB_PATH",
    "CACHE_TTL_SEC", "CHAIN_NAME", "PORT", "API_PORT", "TOKEN_PROBE_CONCURRENCY",
    "LOG_LEVEL", "LOG_FORMAT",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults():
    s = get_settings()
    assert s.rpc_url == ""
    assert s.rpc_configured is False
    assert s.explorer_url == "https://chainscan-galileo.0g.ai"
    assert s.explorer_style == "etherscan"
    assert s.token_discovery == "auto"
    assert s.database_url == "sqlite:///gravity_pulse.db"
    assert s.cache_ttl_sec == 60
    assert s.api_port == 8080
    assert s.log_level == "info"
    assert s.log_format == "json"


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("CHAIN_RPC_URL", "https://rpc.example")
    monkeypatch.setenv("CHAINSCAN_API_URL", "https://scan.example/")
    monkeypatch.setenv("EXPLORER_API_STYLE", "V1")
    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/pulse")
    monkeypatch.setenv("CACHE_TTL_SEC", "120")
    monkeypatch.setenv("PORT", "9000")
    s = get_settings()
    assert s.rpc_configured is True
    assert s.explorer_url == "https://scan.example"
    assert s.explorer_style == "v1"
    assert s.database_url == "postgresql://u:p@db/pulse"
    assert s.cache_ttl_sec == 120
    assert s.api_port == 9000


def test_bad_values_fall_back(monkeypatch):
    monkeypatch.setenv("EXPLORER_API_STYLE", "graphql")
    monkeypatch.setenv("TOKEN_DISCOVERY", "everything")
    monkeypatch.setenv("CACHE_TTL_SEC", "soon")
    monkeypatch.setenv("WALLET_CACHE_DB_PATH", "/tmp/pulse.db")
    s = get_settings()
    assert s.explorer_style == "etherscan"
    assert s.token_discovery == "auto"
    assert s.cache_ttl_sec == 60
    assert s.database_url == "sqlite:////tmp/pulse.db"


def test_settings_cached():
    assert get_settings() is get_settings()


def test_mask_url():
    assert mask_url("https://scan.example/api?apikey=SECRET") == "https://scan.example/api?apikey=***"
    assert mask_url("https://rpc.example/?api-key=abc") == "https://rpc.example/?api-key=***"
    assert mask_url("https://rpc.example") == "https://rpc.example"
