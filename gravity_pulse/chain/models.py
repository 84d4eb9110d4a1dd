"""
Data models for wallet snapshots.

WalletSnapshot is the cached unit of work: built by the wallet fetcher, stored
as JSON by the wallet cache, and served (camelCase) by the API. Achievements are
not part of the stored payload; they are derived every time a snapshot is served.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

MAX_STORED_TRANSACTIONS = 100
TX_PREVIEW_LIMIT = 20


def _to_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _to_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def iso_utc(ts: float) -> str:
    """Unix seconds to ISO 8601 UTC string."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def parse_timestamp(value: Any) -> int | None:
    """Accept Unix seconds (int/float/str digits) or ISO 8601; return Unix seconds."""
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)
    text = str(value).strip()
    if not text:
        return None
    if text.lstrip("-").isdigit():
        return int(text)
    try:
        dt = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(dt.timestamp())


@dataclass
class TokenHolding:
    """One token balance held by a wallet, in display units."""

    name: str
    symbol: str
    balance: float
    contract_address: str | None = None
    decimals: int | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"name": self.name, "symbol": self.symbol, "balance": self.balance}
        if self.contract_address is not None:
            out["contractAddress"] = self.contract_address
        if self.decimals is not None:
            out["decimals"] = self.decimals
        return out

    @classmethod
    def from_dict(cls, item: dict[str, Any]) -> "TokenHolding":
        decimals = item.get("decimals")
        return cls(
            name=str(item.get("name") or ""),
            symbol=str(item.get("symbol") or ""),
            balance=_to_float(item.get("balance")),
            contract_address=item.get("contractAddress"),
            decimals=_to_int(decimals) if decimals is not None else None,
        )


@dataclass(frozen=True)
class Achievement:
    """A badge from the fixed catalog with its computed earned flag."""

    id: str
    title: str
    desc: str
    earned: bool

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "title": self.title, "desc": self.desc, "earned": self.earned}


@dataclass
class WalletSnapshot:
    """Point-in-time bundle of a wallet's balance, tokens, transactions and badges."""

    address: str
    native_balance: float = 0.0
    tokens: list[TokenHolding] = field(default_factory=list)
    transactions: list[dict[str, Any]] = field(default_factory=list)
    total_transactions: int = 0
    usd_value: float = 0.0
    network: str | None = None
    hold_days: int | None = None
    achievements: list[Achievement] = field(default_factory=list)
    last_updated: float = field(default_factory=time.time)
    """Unix timestamp (seconds) when the snapshot was built."""

    @property
    def first_tx_date(self) -> str | None:
        """ISO time of the oldest stored transaction, or None when none carries a timestamp."""
        stamps = [
            ts
            for ts in (parse_timestamp(tx.get("timeStamp", tx.get("timestamp"))) for tx in self.transactions)
            if ts is not None
        ]
        return iso_utc(min(stamps)) if stamps else None

    def metrics(self) -> dict[str, Any]:
        """Numeric fields the achievement predicates read."""
        return {
            "totalTransactions": self.total_transactions,
            "nativeBalance": self.native_balance,
            "holdDays": self.hold_days,
        }

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe stored form. Achievements are omitted; they are derived on read."""
        payload: dict[str, Any] = {
            "address": self.address,
            "nativeBalance": self.native_balance,
            "tokens": [t.to_dict() for t in self.tokens],
            "transactions": list(self.transactions),
            "totalTransactions": self.total_transactions,
            "usdValue": self.usd_value,
            "network": self.network,
            "lastUpdated": iso_utc(self.last_updated),
        }
        if self.hold_days is not None:
            payload["holdDays"] = self.hold_days
        return payload

    def to_response(self, cached: bool) -> dict[str, Any]:
        """API shape: stored payload plus firstTxDate, achievements and the cached flag."""
        out = self.to_payload()
        out["firstTxDate"] = self.first_tx_date
        out["achievements"] = [a.to_dict() for a in self.achievements]
        out["cached"] = cached
        return out

    @classmethod
    def from_payload(
        cls,
        payload: dict[str, Any],
        *,
        address: str | None = None,
        updated_at: float | None = None,
    ) -> "WalletSnapshot":
        """
        Rebuild from a stored payload. The row's address and updated_at win over
        the payload copies so the freshness decision always uses the row timestamp.
        """
        last_updated = updated_at
        if last_updated is None:
            last_updated = parse_timestamp(payload.get("lastUpdated"))
        hold_days = payload.get("holdDays")
        return cls(
            address=address or str(payload.get("address") or ""),
            native_balance=_to_float(payload.get("nativeBalance")),
            tokens=[TokenHolding.from_dict(t) for t in payload.get("tokens") or [] if isinstance(t, dict)],
            transactions=[tx for tx in payload.get("transactions") or [] if isinstance(tx, dict)],
            total_transactions=_to_int(payload.get("totalTransactions")),
            usd_value=_to_float(payload.get("usdValue")),
            network=payload.get("network") or None,
            hold_days=_to_int(hold_days) if hold_days is not None else None,
            last_updated=float(last_updated) if last_updated is not None else 0.0,
        )
