"""
Pytest fixtures for GravityPulse tests. Uses a temporary SQLite cache and
MagicMock RPC/explorer collaborators so nothing touches the network.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

VALID_WALLET = "0x" + "ab" * 20
VALID_WALLET_2 = "0x" + "cd" * 20
VALID_WALLET_3 = "0x" + "ef" * 20
TOKEN_CONTRACT = "0x" + "11" * 20

NOW = 1_700_000_000.0


class FakeClock:
    """Settable clock shared by fetcher and service."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def make_txs(count: int, start_ts: int = 1_600_000_000) -> list[dict]:
    """Explorer-style records, newest first."""
    return [
        {
            "hash": f"0x{i:064x}",
            "from": VALID_WALLET,
            "to": VALID_WALLET_2,
            "value": str(i),
            "timeStamp": str(start_ts + i),
        }
        for i in reversed(range(count))
    ]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def wallet_cache(tmp_path):
    """WalletCache on a fresh SQLite file with the schema created."""
    from gravity_pulse.database.wallet_cache import WalletCache

    cache = WalletCache(f"sqlite:///{tmp_path / 'cache.db'}", ttl_seconds=60)
    cache.init_schema()
    yield cache
    cache.engine.dispose()


@pytest.fixture
def fake_rpc():
    rpc = MagicMock(name="RpcClient")
    rpc.get_balance.return_value = 12.5
    rpc.get_chain_id.return_value = 16601
    return rpc


@pytest.fixture
def fake_explorer():
    from gravity_pulse.chain.models import TokenHolding

    explorer = MagicMock(name="ExplorerClient")
    explorer.supports_token_list = True
    explorer.get_transactions.return_value = (make_txs(3), 3)
    explorer.get_token_list.return_value = [
        TokenHolding(name="Pulse", symbol="PLS", balance=42.0, contract_address=TOKEN_CONTRACT, decimals=18)
    ]
    return explorer


@pytest.fixture
def fetcher(fake_rpc, fake_explorer, clock):
    from gravity_pulse.analytics.wallet_fetcher import WalletFetcher

    return WalletFetcher(fake_rpc, fake_explorer, chain_name="Gravity Network Testnet", clock=clock)


@pytest.fixture
def service(wallet_cache, fetcher, clock):
    from gravity_pulse.api_server.wallet_service import WalletService

    return WalletService(wallet_cache, fetcher, ttl_seconds=60, clock=clock)


@pytest.fixture
def client(service):
    """FastAPI TestClient with the wallet service dependency overridden."""
    from fastapi.testclient import TestClient

    from gravity_pulse.api_server.server import app, get_wallet_service

    app.dependency_overrides[get_wallet_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()
