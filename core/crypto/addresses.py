"""
EVM Addresses
EIP-55 checksum handling on top of eth_utils.

Addresses are compared only after normalization to their checksummed form.
A mixed-case input whose checksum does not verify is rejected; all-lowercase
and all-uppercase inputs carry no checksum and are accepted.
"""
from __future__ import annotations

import re
from typing import Any

from eth_utils import is_checksum_address, to_canonical_address
from eth_utils import to_checksum_address as _eth_checksum

from core.schemas.errors import FormatError


ADDRESS_LENGTH: int = 20

_ADDRESS_RE = re.compile(r"0x[0-9a-fA-F]{40}")


def is_address(value: Any) -> bool:
    """Shape check only: ``0x`` followed by 40 hex digits."""
    return isinstance(value, str) and _ADDRESS_RE.fullmatch(value) is not None


def to_checksum_address(address: str | bytes) -> str:
    """
    EIP-55 checksum encoding of an address.

    Accepts 20 raw bytes or a 0x-prefixed hex string of any case. No
    checksum validation is performed on the input.

    Example:
        >>> to_checksum_address("0x5aaeb6053f3e94c9b9a09f33669435e7ef1beaed")
        '0x5aAeb6053F3E94C9b9A09f33669435E7Ef1BeAed'
    """
    if isinstance(address, (bytes, bytearray)):
        if len(address) != ADDRESS_LENGTH:
            raise FormatError(f"address must be {ADDRESS_LENGTH} bytes, got {len(address)}")
        return _eth_checksum(bytes(address))
    if not is_address(address):
        raise FormatError("address is not 0x + 40 hex characters", value=address)
    return _eth_checksum(address.lower())


def normalize_address(value: Any, name: str = "address") -> str:
    """
    Validate an address and return its EIP-55 checksummed form.

    Raises:
        FormatError: On a malformed address or an invalid mixed-case checksum.
    """
    if not is_address(value):
        raise FormatError(f"{name} is not a valid address", field_path=name, value=value)

    body = value[2:]
    is_single_case = body == body.lower() or body == body.upper()
    if not is_single_case and not is_checksum_address(value):
        raise FormatError(f"{name} has an invalid EIP-55 checksum", field_path=name, value=value)
    return to_checksum_address(value)


def addresses_equal(a: str, b: str) -> bool:
    """Compare two addresses after normalization."""
    return normalize_address(a) == normalize_address(b)


def address_to_bytes(value: str, name: str = "address") -> bytes:
    """The 20 raw bytes of a validated address."""
    return bytes(to_canonical_address(normalize_address(value, name)))


__all__ = [
    "ADDRESS_LENGTH",
    "is_address",
    "to_checksum_address",
    "normalize_address",
    "addresses_equal",
    "address_to_bytes",
]
