"""
Core cross-cutting pieces: domain exceptions shared by the fetcher, cache and API.
"""

from gravity_pulse.core.exceptions import (
    GravityPulseError,
    InvalidAddressError,
    StoreUnavailableError,
    UpstreamUnavailableError,
)

__all__ = [
    "GravityPulseError",
    "InvalidAddressError",
    "StoreUnavailableError",
    "UpstreamUnavailableError",
]
