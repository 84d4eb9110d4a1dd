"""
Achievement evaluator: derive the fixed badge catalog from wallet metrics.

The catalog always comes back complete and in order; only `earned` varies.
diamond_hands needs holdDays, which no fetcher populates, so it stays false
unless an upstream supplies it. sniper and gravity_king have no data source and
are always false.
"""

from __future__ import annotations

from typing import Any, Callable

from gravity_pulse.chain.models import Achievement, WalletSnapshot

FIRST_STEPS = "first_steps"
DIAMOND_HANDS = "diamond_hands"
ACTIVE_TRADER = "active_trader"
WHALE_STATUS = "whale_status"
SNIPER = "sniper"
GRAVITY_KING = "gravity_king"

MIN_TXS_FIRST_STEPS = 1
MIN_HOLD_DAYS_DIAMOND = 30
MIN_TXS_ACTIVE_TRADER = 100
MIN_BALANCE_WHALE = 10_000


def _num(metrics: dict[str, Any], key: str) -> float:
    try:
        return float(metrics.get(key) or 0)
    except (TypeError, ValueError):
        return 0.0


def _never(metrics: dict[str, Any]) -> bool:
    return False


# (id, title, desc, predicate) in display order
CATALOG: tuple[tuple[str, str, str, Callable[[dict[str, Any]], bool]], ...] = (
    (FIRST_STEPS, "First Steps", "Made first transaction",
     lambda m: _num(m, "totalTransactions") >= MIN_TXS_FIRST_STEPS),
    (DIAMOND_HANDS, "Diamond Hands", "Held tokens 30+ days",
     lambda m: _num(m, "holdDays") >= MIN_HOLD_DAYS_DIAMOND),
    (ACTIVE_TRADER, "Active Trader", "100+ transactions",
     lambda m: _num(m, "totalTransactions") >= MIN_TXS_ACTIVE_TRADER),
    (WHALE_STATUS, "Whale Status", "Hold 10,000+ native tokens",
     lambda m: _num(m, "nativeBalance") >= MIN_BALANCE_WHALE),
    (SNIPER, "Sniper", "Early token adopter", _never),
    (GRAVITY_KING, "Gravity King", "Top 100 holder", _never),
)

CATALOG_IDS = tuple(entry[0] for entry in CATALOG)


def evaluate(snapshot: WalletSnapshot | dict[str, Any]) -> list[Achievement]:
    """
    Return all six catalog entries with earned computed from the snapshot.

    Accepts a WalletSnapshot or a camelCase metrics dict
    (totalTransactions, nativeBalance, holdDays). Pure and deterministic.
    """
    metrics = snapshot.metrics() if isinstance(snapshot, WalletSnapshot) else snapshot
    return [
        Achievement(id=badge_id, title=title, desc=desc, earned=bool(predicate(metrics)))
        for badge_id, title, desc, predicate in CATALOG
    ]


def earned_ids(snapshot: WalletSnapshot | dict[str, Any]) -> list[str]:
    """Ids of the earned badges, in catalog order."""
    return [a.id for a in evaluate(snapshot) if a.earned]
