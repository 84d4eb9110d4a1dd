"""
Pytest tests for the wallet snapshot cache (freshness policy, upsert, purge, leaderboard).

Uses a temporary SQLite DB via the wallet_cache fixture. Store failures are
simulated by dropping the wallets table.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import pytest

from gravity_pulse.chain.models import TokenHolding, WalletSnapshot
from gravity_pulse.core.exceptions import StoreUnavailableError
from gravity_pulse.database.wallet_cache import Base, CachedWallet, is_fresh, upsert_statement

from .conftest import NOW, VALID_WALLET, VALID_WALLET_2, VALID_WALLET_3, make_txs


def _snapshot(address: str = VALID_WALLET, **kwargs) -> WalletSnapshot:
    defaults = {
        "native_balance": 3.25,
        "tokens": [TokenHolding(name="Pulse", symbol="PLS", balance=1.5)],
        "transactions": make_txs(5),
        "total_transactions": 250,
        "last_updated": NOW,
    }
    defaults.update(kwargs)
    return WalletSnapshot(address=address, **defaults)


# --- Freshness ---


def test_is_fresh_boundary():
    """Fresh strictly below the TTL; exactly 60 seconds old is stale."""
    snap = _snapshot(last_updated=NOW)
    assert is_fresh(snap, now=NOW, ttl_seconds=60) is True
    assert is_fresh(snap, now=NOW + 59, ttl_seconds=60) is True
    assert is_fresh(snap, now=NOW + 59.9, ttl_seconds=60) is True
    assert is_fresh(snap, now=NOW + 60, ttl_seconds=60) is False
    assert is_fresh(snap, now=NOW + 3600, ttl_seconds=60) is False


def test_cache_is_fresh_uses_configured_ttl(wallet_cache):
    snap = _snapshot(last_updated=NOW)
    wallet_cache.ttl_seconds = 10
    assert wallet_cache.is_fresh(snap, now=NOW + 9) is True
    assert wallet_cache.is_fresh(snap, now=NOW + 10) is False


# --- Read / write ---


def test_read_missing_returns_none(wallet_cache):
    assert wallet_cache.read(VALID_WALLET) is None


def test_write_then_read_round_trip(wallet_cache):
    snap = _snapshot()
    assert wallet_cache.write(VALID_WALLET, snap) is True
    got = wallet_cache.read(VALID_WALLET)
    assert got is not None
    assert got.address == VALID_WALLET
    assert got.native_balance == snap.native_balance
    assert got.transactions == snap.transactions
    assert got.total_transactions == 250
    assert got.tokens[0].symbol == "PLS"
    assert got.last_updated == NOW


def test_address_normalized_on_write_and_read(wallet_cache):
    upper = VALID_WALLET.upper().replace("0X", "0x")
    wallet_cache.write(upper, _snapshot(address=upper))
    got = wallet_cache.read(VALID_WALLET)
    assert got is not None
    assert got.address == VALID_WALLET
    assert wallet_cache.read(upper) is not None


def test_upsert_last_writer_wins(wallet_cache):
    wallet_cache.write(VALID_WALLET, _snapshot(native_balance=1.0))
    wallet_cache.write(VALID_WALLET, _snapshot(native_balance=2.0, transactions=[]))
    got = wallet_cache.read(VALID_WALLET)
    assert got.native_balance == 2.0
    assert got.transactions == []
    with wallet_cache._session_scope() as session:
        assert session.query(CachedWallet).count() == 1


def test_achievements_not_persisted(wallet_cache):
    from gravity_pulse.analytics.achievements import evaluate

    snap = _snapshot()
    snap.achievements = evaluate(snap)
    wallet_cache.write(VALID_WALLET, snap)
    with wallet_cache._session_scope() as session:
        payload = session.get(CachedWallet, VALID_WALLET).payload
    assert "achievements" not in payload
    assert wallet_cache.read(VALID_WALLET).achievements == []


def test_corrupt_payload_is_a_miss(wallet_cache):
    with wallet_cache._session_scope() as session:
        session.add(CachedWallet(address=VALID_WALLET, payload="{not json", native_balance=0.0,
                                 total_transactions=0, updated_at=int(NOW)))
    assert wallet_cache.read(VALID_WALLET) is None


def test_read_store_error_is_a_miss(wallet_cache):
    wallet_cache.write(VALID_WALLET, _snapshot())
    Base.metadata.drop_all(bind=wallet_cache.engine)
    assert wallet_cache.read(VALID_WALLET) is None


def test_write_store_error_is_swallowed(wallet_cache):
    Base.metadata.drop_all(bind=wallet_cache.engine)
    assert wallet_cache.write(VALID_WALLET, _snapshot()) is False


# --- Purge ---


def test_purge_removes_row(wallet_cache):
    wallet_cache.write(VALID_WALLET, _snapshot())
    assert wallet_cache.purge(VALID_WALLET.upper().replace("0X", "0x")) is True
    assert wallet_cache.read(VALID_WALLET) is None
    assert wallet_cache.purge(VALID_WALLET) is False


def test_purge_store_error_raises(wallet_cache):
    Base.metadata.drop_all(bind=wallet_cache.engine)
    with pytest.raises(StoreUnavailableError):
        wallet_cache.purge(VALID_WALLET)


# --- Leaderboard ---


def test_leaderboard_sorted_by_balance_desc(wallet_cache):
    wallet_cache.write(VALID_WALLET, _snapshot(VALID_WALLET, native_balance=5.0, total_transactions=1))
    wallet_cache.write(VALID_WALLET_2, _snapshot(VALID_WALLET_2, native_balance=500.0, total_transactions=2))
    wallet_cache.write(VALID_WALLET_3, _snapshot(VALID_WALLET_3, native_balance=50.0, total_transactions=3))
    board = wallet_cache.leaderboard(10)
    assert [e["address"] for e in board] == [VALID_WALLET_2, VALID_WALLET_3, VALID_WALLET]
    assert board[0] == {"address": VALID_WALLET_2, "nativeBalance": 500.0, "totalTransactions": 2}
    assert len(wallet_cache.leaderboard(2)) == 2


def test_leaderboard_ties_ordered_by_address(wallet_cache):
    wallet_cache.write(VALID_WALLET_3, _snapshot(VALID_WALLET_3, native_balance=7.0))
    wallet_cache.write(VALID_WALLET, _snapshot(VALID_WALLET, native_balance=7.0))
    board = wallet_cache.leaderboard(10)
    assert [e["address"] for e in board] == [VALID_WALLET, VALID_WALLET_3]


def test_leaderboard_store_error_raises(wallet_cache):
    Base.metadata.drop_all(bind=wallet_cache.engine)
    with pytest.raises(StoreUnavailableError):
        wallet_cache.leaderboard()


def test_get_wallet_cache_returns_none_when_store_unusable(monkeypatch):
    """An unusable database URL yields None so the service can run stateless."""
    from gravity_pulse.database import wallet_cache as module

    module.reset_wallet_cache_for_test()
    try:
        assert module.get_wallet_cache("notadialect://nowhere") is None
    finally:
        module.reset_wallet_cache_for_test()


def test_get_wallet_cache_retries_after_backoff(tmp_path):
    """A store that fails at startup is tried again once the retry interval has passed."""
    from gravity_pulse.database import wallet_cache as module

    now = [1000.0]

    def clock() -> float:
        return now[0]

    good_url = f"sqlite:///{tmp_path / 'late.db'}"

    module.reset_wallet_cache_for_test()
    try:
        assert module.get_wallet_cache("notadialect://nowhere", clock=clock) is None
        assert module.get_wallet_cache(good_url, clock=clock) is None
        now[0] += module.STORE_RETRY_SEC
        cache = module.get_wallet_cache(good_url, clock=clock)
        assert cache is not None
        assert module.get_wallet_cache("notadialect://nowhere", clock=clock) is cache
    finally:
        module.reset_wallet_cache_for_test()


# --- Upsert ---


def test_upsert_is_single_on_conflict_statement():
    from sqlalchemy.dialects import postgresql, sqlite

    values = {
        "address": VALID_WALLET,
        "payload": "{}",
        "native_balance": 1.0,
        "total_transactions": 0,
        "updated_at": int(NOW),
    }
    for name, dialect in (("sqlite", sqlite.dialect()), ("postgresql", postgresql.dialect())):
        sql = str(upsert_statement(name, values).compile(dialect=dialect))
        assert "ON CONFLICT (address) DO UPDATE" in sql
        assert "native_balance" in sql.split("DO UPDATE")[1]
    assert upsert_statement("mssql", values) is None


def test_concurrent_writes_for_one_address_all_succeed(wallet_cache):
    balances = [float(i) for i in range(1, 9)]

    def write(balance: float) -> bool:
        return wallet_cache.write(VALID_WALLET, _snapshot(native_balance=balance))

    with ThreadPoolExecutor(max_workers=len(balances)) as executor:
        results = list(executor.map(write, balances))

    assert results == [True] * len(balances)
    assert wallet_cache.read(VALID_WALLET).native_balance in balances
    with wallet_cache._session_scope() as session:
        assert session.query(CachedWallet).count() == 1


def test_write_replaces_row_committed_by_another_writer(wallet_cache):
    with wallet_cache._session_scope() as session:
        session.add(CachedWallet(address=VALID_WALLET, payload="{}", native_balance=1.0,
                                 total_transactions=0, updated_at=int(NOW) - 5))
    assert wallet_cache.write(VALID_WALLET, _snapshot(native_balance=9.0)) is True
    got = wallet_cache.read(VALID_WALLET)
    assert got.native_balance == 9.0
    assert got.last_updated == NOW
