"""
Pytest tests for address validation and normalization.
"""

from __future__ import annotations

import pytest

from gravity_pulse.core.exceptions import InvalidAddressError
from gravity_pulse.utils.wallet_utils import is_valid_address, normalize_address, require_address


@pytest.mark.parametrize(
    "address",
    [
        "0x" + "a" * 40,
        "0x" + "A" * 40,
        "0x" + "0123456789abcdefABCDEF0123456789abcdefAB",
        "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045",
    ],
)
def test_valid_addresses(address):
    assert is_valid_address(address) is True


@pytest.mark.parametrize(
    "address",
    [
        "",
        "0x",
        "0x" + "a" * 39,
        "0x" + "a" * 41,
        "0X" + "a" * 40,
        "a" * 42,
        "0x" + "g" * 40,
        " 0x" + "a" * 40,
        "0x" + "a" * 40 + "\n",
        None,
        12345,
    ],
)
def test_invalid_addresses(address):
    assert is_valid_address(address) is False


def test_normalize_lowercases_and_strips():
    assert normalize_address("  0xABCDEF" + "0" * 34 + "  ") == "0xabcdef" + "0" * 34


def test_require_address():
    """require_address returns the normalized form or raises InvalidAddressError."""
    assert require_address("0x" + "AB" * 20) == "0x" + "ab" * 20
    with pytest.raises(InvalidAddressError):
        require_address("not-an-address")
