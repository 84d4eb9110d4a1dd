"""
GravityPulse analytics: wallet snapshot assembly and achievement badges.

Modules: wallet_fetcher (RPC + explorer with per-source fallback), achievements.
"""

from gravity_pulse.analytics.achievements import evaluate
from gravity_pulse.analytics.wallet_fetcher import FetchResult, WalletFetcher

__all__ = [
    "evaluate",
    "FetchResult",
    "WalletFetcher",
]
