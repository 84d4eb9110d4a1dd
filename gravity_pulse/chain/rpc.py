"""
EVM JSON-RPC client (web3.py).

One RpcClient is constructed per process from CHAIN_RPC_URL and handed to the
wallet fetcher. Every call carries the HTTP timeout passed to the provider.
Methods raise on failure; the fetcher decides what a failure means.
"""

from __future__ import annotations

from typing import Any

from web3 import Web3

from gravity_pulse.config.env import mask_url
from gravity_pulse.pulse_logging import get_logger

logger = get_logger(__name__)

ERC20_ABI: list[dict[str, Any]] = [
    {
        "constant": True,
        "inputs": [],
        "name": "name",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "symbol",
        "outputs": [{"name": "", "type": "string"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [],
        "name": "decimals",
        "outputs": [{"name": "", "type": "uint8"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "constant": True,
        "inputs": [{"name": "owner", "type": "address"}],
        "name": "balanceOf",
        "outputs": [{"name": "", "type": "uint256"}],
        "stateMutability": "view",
        "type": "function",
    },
]


class RpcClient:
    """Thin wrapper over a web3 HTTP provider for balance and ERC-20 reads."""

    def __init__(self, rpc_url: str, *, timeout_sec: float = 10.0, w3: Web3 | None = None) -> None:
        """
        Args:
            rpc_url: EVM JSON-RPC HTTP endpoint.
            timeout_sec: Per-request HTTP timeout.
            w3: Pre-built Web3 instance (tests); built from rpc_url when None.
        """
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.strip()
        self._w3 = w3 or Web3(
            Web3.HTTPProvider(self._rpc_url, request_kwargs={"timeout": timeout_sec})
        )
        logger.info("rpc_client_created", rpc_url=mask_url(self._rpc_url), timeout_sec=timeout_sec)

    @property
    def w3(self) -> Web3:
        return self._w3

    def get_balance(self, address: str) -> float:
        """Native balance of address in display units (wei / 1e18)."""
        wei = self._w3.eth.get_balance(Web3.to_checksum_address(address))
        return float(Web3.from_wei(int(wei), "ether"))

    def get_chain_id(self) -> int:
        return int(self._w3.eth.chain_id)

    def get_token_info(self, contract_address: str, owner: str) -> dict[str, Any]:
        """
        Read name, symbol, decimals and balanceOf(owner) from an ERC-20 contract.

        Returns raw values: {"name", "symbol", "decimals", "raw_balance"}.
        """
        contract = self._w3.eth.contract(
            address=Web3.to_checksum_address(contract_address),
            abi=ERC20_ABI,
        )
        raw_balance = contract.functions.balanceOf(Web3.to_checksum_address(owner)).call()
        decimals = contract.functions.decimals().call()
        name = contract.functions.name().call()
        symbol = contract.functions.symbol().call()
        return {
            "name": str(name),
            "symbol": str(symbol),
            "decimals": int(decimals),
            "raw_balance": int(raw_balance),
        }
