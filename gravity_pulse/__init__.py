"""
GravityPulse - read-through caching gateway for wallet-centric chain data.

Components: address validation (utils), RPC/explorer clients (chain), wallet
fetcher and achievements (analytics), snapshot cache (database), HTTP API
(api_server).
"""

__version__ = "0.1.0"
