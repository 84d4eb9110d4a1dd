"""Client for explorer-style HTTP APIs - transaction and token lists for a wallet."""

from __future__ import annotations

from typing import Any

import httpx

from gravity_pulse.chain.models import TokenHolding, parse_timestamp
from gravity_pulse.core.exceptions import UpstreamUnavailableError
from gravity_pulse.pulse_logging import get_logger

logger = get_logger(__name__)

SOURCE = "explorer"
DEFAULT_TIMEOUT_SEC = 7.0
MAX_PAGE_SIZE = 100
ERC20_TYPES = frozenset({"ERC-20", "ERC20"})


def _timestamp_of(record: dict[str, Any]) -> int | None:
    return parse_timestamp(record.get("timeStamp", record.get("timestamp")))


def newest_first(records: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Reverse records that arrive oldest-first; leave newest-first (or undated) lists alone."""
    if len(records) < 2:
        return records
    first, last = _timestamp_of(records[0]), _timestamp_of(records[-1])
    if first is not None and last is not None and first < last:
        return list(reversed(records))
    return records


class ExplorerClient:
    """
    Client for an explorer HTTP API in one of two flavors.

    etherscan: GET {base}/api?module=account&action=txlist|tokenlist&address=...
    v1:        GET {base}/v1/transaction?accountAddress=...&limit=...&skip=0
               (no token list endpoint; tokens come from transaction metadata)
    """

    def __init__(
        self,
        base_url: str,
        *,
        style: str = "etherscan",
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        api_key: str | None = None,
        client: httpx.Client | None = None,
    ) -> None:
        if style not in ("etherscan", "v1"):
            raise ValueError(f"unknown explorer style: {style}")
        self.base_url = base_url.rstrip("/")
        self.style = style
        self._api_key = api_key
        self._client = client or httpx.Client(timeout=httpx.Timeout(timeout_sec))

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()

    @property
    def supports_token_list(self) -> bool:
        return self.style == "etherscan"

    def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        if self._api_key:
            params = {**params, "apikey": self._api_key}
        try:
            response = self._client.get(f"{self.base_url}{path}", params=params)
            response.raise_for_status()
            return response.json()
        except httpx.TimeoutException as e:
            raise UpstreamUnavailableError(SOURCE, f"timeout: {e}") from e
        except httpx.HTTPStatusError as e:
            raise UpstreamUnavailableError(SOURCE, f"http {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise UpstreamUnavailableError(SOURCE, f"network: {e}") from e
        except ValueError as e:
            raise UpstreamUnavailableError(SOURCE, f"malformed json: {e}") from e

    def get_transactions(
        self, address: str, limit: int = MAX_PAGE_SIZE
    ) -> tuple[list[dict[str, Any]], int]:
        """
        Fetch the transaction list for address.

        Args:
            address: Wallet address (0x-prefixed).
            limit: Maximum number of records kept (max 100).

        Returns:
            (transactions most-recent-first, total transaction count reported upstream)

        Raises:
            UpstreamUnavailableError: on network failure, non-2xx, bad JSON or missing list.
        """
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        if self.style == "etherscan":
            data = self._get_json(
                "/api",
                {"module": "account", "action": "txlist", "address": address, "sort": "asc"},
            )
            result = data.get("result") if isinstance(data, dict) else None
            if not isinstance(result, list):
                raise UpstreamUnavailableError(SOURCE, "txlist result is not a list")
            # sort=asc: keep the newest `limit` entries, then flip to newest-first
            return list(reversed(result[-limit:])), len(result)

        data = self._get_json(
            "/v1/transaction",
            {"accountAddress": address, "limit": limit, "skip": 0},
        )
        result = data.get("result") if isinstance(data, dict) else None
        tx_list = result.get("list") if isinstance(result, dict) else None
        if not isinstance(tx_list, list):
            raise UpstreamUnavailableError(SOURCE, "transaction result.list is not a list")
        records = newest_first([tx for tx in tx_list if isinstance(tx, dict)])[:limit]
        total = result.get("total")
        try:
            total_count = int(total) if total else len(tx_list)
        except (TypeError, ValueError):
            total_count = len(tx_list)
        return records, total_count

    def get_token_list(self, address: str) -> list[TokenHolding]:
        """
        Fetch ERC-20 holdings for address (etherscan flavor only).

        Raises:
            UpstreamUnavailableError: on any failure or unsupported response shape.
        """
        if not self.supports_token_list:
            raise UpstreamUnavailableError(SOURCE, "token list not supported by this explorer")
        data = self._get_json(
            "/api",
            {"module": "account", "action": "tokenlist", "address": address},
        )
        result = data.get("result") if isinstance(data, dict) else None
        if not isinstance(result, list):
            raise UpstreamUnavailableError(SOURCE, "tokenlist result is not a list")

        tokens: list[TokenHolding] = []
        for item in result:
            if not isinstance(item, dict):
                continue
            token_type = item.get("type")
            if token_type and token_type not in ERC20_TYPES:
                continue
            try:
                decimals = int(item.get("decimals") or 0)
                raw = int(item.get("balance") or 0)
            except (TypeError, ValueError):
                logger.debug("explorer_token_item_skipped", contract=item.get("contractAddress"))
                continue
            tokens.append(
                TokenHolding(
                    name=str(item.get("name") or ""),
                    symbol=str(item.get("symbol") or ""),
                    balance=raw / (10 ** decimals),
                    contract_address=item.get("contractAddress"),
                    decimals=decimals,
                )
            )
        return tokens
