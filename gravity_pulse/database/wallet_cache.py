"""
Wallet snapshot cache - SQLAlchemy-backed `wallets` table keyed by address.

Uses DATABASE_URL (e.g. PostgreSQL) when set; otherwise SQLite
(WALLET_CACHE_DB_PATH or gravity_pulse.db).

The cache shields the API from slow upstreams; it is not a source of truth:
  read   -> None on no row, corrupt payload or store error (treated as a miss)
  write  -> upsert, last writer wins; failures are logged and swallowed
  purge  -> explicit admin action; failures raise StoreUnavailableError
"""

from __future__ import annotations

import json
import time
from contextlib import contextmanager
from typing import Any, Callable, Iterator

from sqlalchemy import Column, Float, Integer, String, Text, create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from gravity_pulse.chain.models import WalletSnapshot
from gravity_pulse.config.env import DEFAULT_CACHE_TTL_SEC, get_database_url
from gravity_pulse.core.exceptions import StoreUnavailableError
from gravity_pulse.pulse_logging import get_logger
from gravity_pulse.utils.wallet_utils import normalize_address

logger = get_logger(__name__)

Base = declarative_base()

DEFAULT_LEADERBOARD_LIMIT = 10
MAX_LEADERBOARD_LIMIT = 100


class CachedWallet(Base):
    """One cached snapshot per wallet. payload holds the snapshot JSON without achievements."""

    __tablename__ = "wallets"

    address = Column(String(42), primary_key=True)
    payload = Column(Text, nullable=False)
    native_balance = Column(Float, nullable=False, default=0.0, index=True)
    total_transactions = Column(Integer, nullable=False, default=0)
    updated_at = Column(Integer, nullable=False, index=True)  # Unix seconds

    def to_leaderboard_entry(self) -> dict[str, Any]:
        return {
            "address": self.address,
            "nativeBalance": self.native_balance,
            "totalTransactions": self.total_transactions,
        }


def _db_label(url: str) -> str:
    """URL without credentials or query string, for logs."""
    return url.split("?")[0].split("@")[-1].split("//")[-1]


def upsert_statement(dialect: str, values: dict[str, Any]) -> Any:
    """
    Single-statement INSERT ... ON CONFLICT (address) DO UPDATE for the wallets table.

    Concurrent writers for one address never collide: whichever statement runs
    last leaves its row. Returns None for dialects without ON CONFLICT support.
    """
    if dialect == "postgresql":
        from sqlalchemy.dialects.postgresql import insert
    elif dialect == "sqlite":
        from sqlalchemy.dialects.sqlite import insert
    else:
        return None
    stmt = insert(CachedWallet).values(**values)
    return stmt.on_conflict_do_update(
        index_elements=[CachedWallet.address],
        set_={name: stmt.excluded[name] for name in values if name != "address"},
    )


def is_fresh(
    snapshot: WalletSnapshot,
    now: float | None = None,
    ttl_seconds: int = DEFAULT_CACHE_TTL_SEC,
) -> bool:
    """True iff now - snapshot.last_updated < ttl_seconds (whole seconds, strict)."""
    now_ts = int(time.time() if now is None else now)
    return now_ts - int(snapshot.last_updated) < ttl_seconds


class WalletCache:
    """Freshness cache over a SQL store."""

    def __init__(
        self,
        database_url: str | None = None,
        *,
        ttl_seconds: int = DEFAULT_CACHE_TTL_SEC,
        engine: Engine | None = None,
    ) -> None:
        """
        Args:
            database_url: SQLAlchemy URL; defaults to get_database_url().
            ttl_seconds: Snapshot time-to-live used by is_fresh().
            engine: Pre-built engine (tests); built from database_url when None.
        """
        self.database_url = database_url or get_database_url()
        self.ttl_seconds = ttl_seconds
        if engine is None:
            connect_args: dict[str, Any] = {}
            if self.database_url.startswith("sqlite"):
                connect_args["check_same_thread"] = False
            engine = create_engine(self.database_url, connect_args=connect_args, pool_pre_ping=True)
        self._engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _session_scope(self) -> Iterator[Session]:
        """Single session. Commits on success, rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def init_schema(self) -> None:
        """Create the wallets table if it does not exist. Safe to call on every startup."""
        Base.metadata.create_all(bind=self._engine)
        logger.info("wallet_cache_init_schema", db=_db_label(self.database_url))

    def is_fresh(self, snapshot: WalletSnapshot, now: float | None = None) -> bool:
        return is_fresh(snapshot, now=now, ttl_seconds=self.ttl_seconds)

    def read(self, address: str) -> WalletSnapshot | None:
        """Return the stored snapshot for address, or None on miss or any store error."""
        key = normalize_address(address)
        try:
            with self._session_scope() as session:
                row = session.get(CachedWallet, key)
                if row is None:
                    return None
                payload_text, updated_at = row.payload, row.updated_at
        except Exception as e:
            logger.warning("wallet_cache_read_failed", wallet_id=key, error=str(e))
            return None
        try:
            payload = json.loads(payload_text)
            if not isinstance(payload, dict):
                raise ValueError("payload is not an object")
        except ValueError as e:
            logger.warning("wallet_cache_payload_corrupt", wallet_id=key, error=str(e))
            return None
        return WalletSnapshot.from_payload(payload, address=key, updated_at=updated_at)

    def write(self, address: str, snapshot: WalletSnapshot) -> bool:
        """
        Insert or replace the row for address. Returns False (after logging) on failure;
        never raises.
        """
        key = normalize_address(address)
        try:
            payload = snapshot.to_payload()
            payload["address"] = key
            values = {
                "address": key,
                "payload": json.dumps(payload, default=str),
                "native_balance": float(snapshot.native_balance),
                "total_transactions": int(snapshot.total_transactions),
                "updated_at": int(snapshot.last_updated),
            }
            stmt = upsert_statement(self._engine.dialect.name, values)
            with self._session_scope() as session:
                if stmt is None:
                    session.merge(CachedWallet(**values))
                else:
                    session.execute(stmt)
        except Exception as e:
            logger.warning("wallet_cache_write_failed", wallet_id=key, error=str(e))
            return False
        logger.debug("wallet_cache_written", wallet_id=key)
        return True

    def purge(self, address: str) -> bool:
        """
        Delete the row for address. Returns True if a row was removed.

        Raises:
            StoreUnavailableError: if the store operation fails.
        """
        key = normalize_address(address)
        try:
            with self._session_scope() as session:
                deleted = session.query(CachedWallet).filter(CachedWallet.address == key).delete()
        except Exception as e:
            logger.exception("wallet_cache_purge_failed", wallet_id=key, error=str(e))
            raise StoreUnavailableError("cache purge failed") from e
        logger.info("wallet_cache_purged", wallet_id=key, deleted=deleted)
        return deleted > 0

    def leaderboard(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[dict[str, Any]]:
        """
        Top wallets by native balance, descending; ties ordered by address.

        Raises:
            StoreUnavailableError: if the query fails.
        """
        limit = max(1, min(int(limit), MAX_LEADERBOARD_LIMIT))
        try:
            with self._session_scope() as session:
                rows = (
                    session.query(CachedWallet)
                    .order_by(CachedWallet.native_balance.desc(), CachedWallet.address.asc())
                    .limit(limit)
                    .all()
                )
                return [r.to_leaderboard_entry() for r in rows]
        except Exception as e:
            logger.exception("wallet_cache_leaderboard_failed", error=str(e))
            raise StoreUnavailableError("leaderboard query failed") from e


_cache: WalletCache | None = None
_last_failed_at: float | None = None

STORE_RETRY_SEC = 30.0


def get_wallet_cache(
    database_url: str | None = None,
    ttl_seconds: int = DEFAULT_CACHE_TTL_SEC,
    *,
    clock: Callable[[], float] = time.monotonic,
) -> WalletCache | None:
    """
    Return the process-wide WalletCache, creating the schema on first use.

    Returns None when the store cannot be initialised; callers run stateless
    meanwhile. After a failure the store is tried again once STORE_RETRY_SEC
    has passed, so a database that comes up late is picked up without a restart.
    """
    global _cache, _last_failed_at
    if _cache is not None:
        return _cache
    now = clock()
    if _last_failed_at is not None and now - _last_failed_at < STORE_RETRY_SEC:
        return None
    try:
        cache = WalletCache(database_url, ttl_seconds=ttl_seconds)
        cache.init_schema()
    except Exception as e:
        _last_failed_at = now
        logger.exception("wallet_cache_unavailable", error=str(e), retry_in_sec=STORE_RETRY_SEC)
        return None
    _cache = cache
    _last_failed_at = None
    return _cache


def reset_wallet_cache_for_test() -> None:
    """Forget the process-wide cache so the next get_wallet_cache() rebuilds it."""
    global _cache, _last_failed_at
    if _cache is not None:
        _cache.engine.dispose()
    _cache = None
    _last_failed_at = None
