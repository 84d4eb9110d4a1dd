"""Wallet address validation utilities."""

import re

from gravity_pulse.core.exceptions import InvalidAddressError

_ADDRESS_RE = re.compile(r"^0x[a-fA-F0-9]{40}$")


def is_valid_address(value: object) -> bool:
    """Return True if value is 0x followed by exactly 40 hex characters (any case)."""
    if not isinstance(value, str):
        return False
    return _ADDRESS_RE.fullmatch(value) is not None


def normalize_address(value: str) -> str:
    """Strip and lower-case an address; cache keys are always stored in this form."""
    return value.strip().lower()


def require_address(value: object) -> str:
    """Validate and normalize, raising InvalidAddressError for malformed input."""
    if not is_valid_address(value):
        raise InvalidAddressError(value)
    return normalize_address(value)  # type: ignore[arg-type]
