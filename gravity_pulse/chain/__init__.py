"""
Chain access: snapshot models, EVM JSON-RPC client and explorer HTTP client.
"""

from gravity_pulse.chain.explorer import ExplorerClient
from gravity_pulse.chain.models import (
    MAX_STORED_TRANSACTIONS,
    TX_PREVIEW_LIMIT,
    Achievement,
    TokenHolding,
    WalletSnapshot,
)
from gravity_pulse.chain.rpc import RpcClient

__all__ = [
    "MAX_STORED_TRANSACTIONS",
    "TX_PREVIEW_LIMIT",
    "Achievement",
    "ExplorerClient",
    "RpcClient",
    "TokenHolding",
    "WalletSnapshot",
]
