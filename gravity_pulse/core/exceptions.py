"""
Application-level exceptions.

InvalidAddressError and StoreUnavailableError reach the HTTP layer (400 / 500).
UpstreamUnavailableError never leaves the wallet fetcher; it is carried inside a
FetchResult and replaced by a default value.
"""

from __future__ import annotations


class GravityPulseError(Exception):
    """Base class for all GravityPulse errors."""


class InvalidAddressError(GravityPulseError, ValueError):
    """Malformed account address supplied by the client."""

    def __init__(self, address: object = None) -> None:
        self.address = address
        super().__init__("Invalid address")


class UpstreamUnavailableError(GravityPulseError):
    """RPC or explorer call failed, timed out, or returned an unusable payload."""

    def __init__(self, source: str, reason: str) -> None:
        self.source = source
        self.reason = reason
        super().__init__(f"{source}: {reason}")


class StoreUnavailableError(GravityPulseError):
    """Cache store is missing or a store operation failed."""
