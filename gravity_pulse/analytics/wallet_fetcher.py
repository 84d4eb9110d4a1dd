"""
Wallet fetcher: assemble a WalletSnapshot from the RPC node and the explorer.

Balance, transactions and tokens are three independent sub-fetches. Each returns
a FetchResult (value or FetchError) and fetch() unwraps every result to a
default, so one unavailable source only blanks its own fields:

    balance       RPC eth_getBalance            -> 0.0 on failure / no RPC
    transactions  explorer txlist (7 s timeout) -> ([], 0) on failure
    tokens        explorer tokenlist, or ERC-20 probes of contracts seen in
                  transactions                  -> [] on failure

Token probes run on a bounded thread pool; a probe that errors or finds a zero
balance is dropped without affecting the others.
"""

from __future__ import annotations

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from gravity_pulse.analytics.achievements import evaluate
from gravity_pulse.chain.explorer import ExplorerClient
from gravity_pulse.chain.models import MAX_STORED_TRANSACTIONS, TokenHolding, WalletSnapshot
from gravity_pulse.chain.rpc import RpcClient
from gravity_pulse.core.exceptions import UpstreamUnavailableError
from gravity_pulse.pulse_logging import get_logger
from gravity_pulse.utils.wallet_utils import is_valid_address, normalize_address

logger = get_logger(__name__)

T = TypeVar("T")

FetchError = UpstreamUnavailableError

DEFAULT_PROBE_CONCURRENCY = 8
MAX_TOKEN_CANDIDATES = 25

# transfer, approve, transferFrom
ERC20_SELECTORS = ("0xa9059cbb", "0x095ea7b3", "0x23b872dd")
TOKEN_ADDRESS_KEYS = ("contractAddress", "tokenAddress")


@dataclass(frozen=True)
class FetchResult(Generic[T]):
    """Outcome of one sub-fetch: either a value or the error that replaced it."""

    value: T | None = None
    error: FetchError | None = None

    @classmethod
    def success(cls, value: T) -> "FetchResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: FetchError) -> "FetchResult[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap_or(self, default: T) -> T:
        if self.error is not None or self.value is None:
            return default
        return self.value


def derive_token_candidates(transactions: list[dict[str, Any]], owner: str) -> list[str]:
    """
    Collect token contract addresses referenced by transaction metadata.

    Uses explicit contractAddress/tokenAddress fields and the `to` address of
    calls whose input starts with an ERC-20 selector. Order of first appearance,
    deduplicated, lower-cased, capped at MAX_TOKEN_CANDIDATES.
    """
    owner = normalize_address(owner)
    seen: dict[str, None] = {}
    for tx in transactions:
        found: list[Any] = [tx.get(key) for key in TOKEN_ADDRESS_KEYS]
        tx_input = str(tx.get("input") or "").lower()
        if tx_input.startswith(ERC20_SELECTORS):
            found.append(tx.get("to"))
        for candidate in found:
            if not is_valid_address(candidate):
                continue
            addr = normalize_address(candidate)
            if addr != owner and addr not in seen:
                seen[addr] = None
            if len(seen) >= MAX_TOKEN_CANDIDATES:
                return list(seen)
    return list(seen)


class WalletFetcher:
    """Builds WalletSnapshots from injected RPC and explorer clients."""

    def __init__(
        self,
        rpc: RpcClient | None,
        explorer: ExplorerClient | None,
        *,
        token_discovery: str = "auto",
        probe_concurrency: int = DEFAULT_PROBE_CONCURRENCY,
        max_transactions: int = MAX_STORED_TRANSACTIONS,
        chain_name: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """
        Args:
            rpc: RPC client, or None when CHAIN_RPC_URL is unset.
            explorer: Explorer client, or None to skip transaction/token lookups.
            token_discovery: auto | explorer | probe | off.
            probe_concurrency: Worker threads for per-token RPC probes.
            max_transactions: Transactions kept per snapshot (most recent).
            chain_name: Display name reported by chain_info().
            clock: Source of lastUpdated timestamps.
        """
        self._rpc = rpc
        self._explorer = explorer
        self._token_discovery = token_discovery
        self._probe_concurrency = max(1, probe_concurrency)
        self._max_transactions = max_transactions
        self._chain_name = chain_name
        self._clock = clock

    @property
    def rpc(self) -> RpcClient | None:
        return self._rpc

    @property
    def explorer(self) -> ExplorerClient | None:
        return self._explorer

    @property
    def chain_name(self) -> str | None:
        return self._chain_name

    # ------------------------------------------------------------------
    # Sub-fetches
    # ------------------------------------------------------------------

    def fetch_balance(self, address: str) -> FetchResult[float]:
        if self._rpc is None:
            return FetchResult.failure(FetchError("rpc", "not configured"))
        try:
            return FetchResult.success(float(self._rpc.get_balance(address)))
        except Exception as e:
            logger.warning("wallet_fetch_rpc_failed", wallet_id=address, error=str(e))
            return FetchResult.failure(FetchError("rpc", str(e)))

    def fetch_transactions(self, address: str) -> FetchResult[tuple[list[dict[str, Any]], int]]:
        if self._explorer is None:
            return FetchResult.failure(FetchError("explorer", "not configured"))
        try:
            txs, total = self._explorer.get_transactions(address, limit=self._max_transactions)
        except FetchError as e:
            logger.warning("wallet_fetch_txs_failed", wallet_id=address, error=str(e))
            return FetchResult.failure(e)
        except Exception as e:
            logger.warning("wallet_fetch_txs_failed", wallet_id=address, error=str(e))
            return FetchResult.failure(FetchError("explorer", str(e)))
        return FetchResult.success((txs[: self._max_transactions], int(total)))

    def _token_mode(self) -> str:
        if self._token_discovery != "auto":
            return self._token_discovery
        if self._explorer is not None and self._explorer.supports_token_list:
            return "explorer"
        return "probe"

    def fetch_tokens(
        self, address: str, transactions: list[dict[str, Any]] | None = None
    ) -> FetchResult[list[TokenHolding]]:
        mode = self._token_mode()
        if mode == "off":
            return FetchResult.success([])
        if mode == "explorer":
            if self._explorer is None:
                return FetchResult.failure(FetchError("explorer", "not configured"))
            try:
                return FetchResult.success(self._explorer.get_token_list(address))
            except Exception as e:
                logger.info("wallet_fetch_tokens_unavailable", wallet_id=address, error=str(e))
                return FetchResult.failure(
                    e if isinstance(e, FetchError) else FetchError("explorer", str(e))
                )
        return self.probe_tokens(address, transactions or [])

    def probe_tokens(
        self, address: str, transactions: list[dict[str, Any]]
    ) -> FetchResult[list[TokenHolding]]:
        """Probe each candidate contract concurrently; keep non-zero balances only."""
        if self._rpc is None:
            return FetchResult.failure(FetchError("rpc", "not configured"))
        candidates = derive_token_candidates(transactions, address)
        if not candidates:
            return FetchResult.success([])

        workers = min(self._probe_concurrency, len(candidates))
        with ThreadPoolExecutor(max_workers=workers) as executor:
            results = list(executor.map(lambda c: self._probe_token(c, address), candidates))
        tokens = [t for t in results if t is not None]
        logger.debug(
            "wallet_token_probe_done",
            wallet_id=address,
            candidates=len(candidates),
            held=len(tokens),
        )
        return FetchResult.success(tokens)

    def _probe_token(self, contract: str, owner: str) -> TokenHolding | None:
        try:
            info = self._rpc.get_token_info(contract, owner)  # type: ignore[union-attr]
            raw = int(info["raw_balance"])
            decimals = int(info["decimals"])
        except Exception as e:
            logger.debug("wallet_token_probe_failed", contract=contract, error=str(e))
            return None
        if raw <= 0:
            return None
        return TokenHolding(
            name=str(info.get("name") or ""),
            symbol=str(info.get("symbol") or ""),
            balance=raw / (10 ** decimals),
            contract_address=contract,
            decimals=decimals,
        )

    # ------------------------------------------------------------------
    # Aggregate
    # ------------------------------------------------------------------

    def fetch(self, address: str) -> WalletSnapshot:
        """
        Build the best snapshot obtainable for address from whichever sources respond.

        Never raises because of an upstream failure.
        """
        address = normalize_address(address)
        started = time.monotonic()

        balance = self.fetch_balance(address)
        txs = self.fetch_transactions(address)
        transactions, total = txs.unwrap_or(([], 0))
        tokens = self.fetch_tokens(address, transactions)

        snapshot = WalletSnapshot(
            address=address,
            native_balance=balance.unwrap_or(0.0),
            tokens=tokens.unwrap_or([]),
            transactions=transactions,
            total_transactions=total,
            usd_value=0.0,
            network=self._chain_name,
            last_updated=self._clock(),
        )
        snapshot.achievements = evaluate(snapshot)
        logger.info(
            "wallet_fetched",
            wallet_id=address,
            balance_ok=balance.ok,
            txs_ok=txs.ok,
            tokens_ok=tokens.ok,
            total_transactions=total,
            elapsed_ms=round((time.monotonic() - started) * 1000, 2),
        )
        return snapshot

    def chain_info(self) -> dict[str, Any]:
        """Best-effort {chainId, chainName} for the health endpoint."""
        info: dict[str, Any] = {}
        if self._chain_name:
            info["chainName"] = self._chain_name
        if self._rpc is not None:
            try:
                info["chainId"] = self._rpc.get_chain_id()
            except Exception as e:
                logger.debug("chain_id_unavailable", error=str(e))
        return info
