"""
Persistence layer - wallet snapshot cache over SQLAlchemy (PostgreSQL or SQLite).
"""

from gravity_pulse.database.wallet_cache import (
    CachedWallet,
    WalletCache,
    get_wallet_cache,
    is_fresh,
)

__all__ = [
    "CachedWallet",
    "WalletCache",
    "get_wallet_cache",
    "is_fresh",
]
