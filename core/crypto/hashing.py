"""
Hashing Utilities
Keccak-256 hashing, hex codecs and the domain-separated PoR hash rules.

This module provides:
- Keccak-256 (the EVM hash, not NIST SHA3-256) over raw bytes
- Hex encoding/decoding with 0x prefix and bytes32 shape checks
- Leaf hashing: keccak256(0x00 || canonical_leaf_bytes)
- Node hashing: keccak256(0x01 || left || right)
- Report id mapping to bytes32
- Whole-file hashing for the bar list commitment

Security/Determinism Notes:
- Always hash raw bytes exactly as given; file bytes are never re-serialized
- Leaf and node preimages are tagged so one can never pass for the other
"""
from __future__ import annotations

import re
from typing import Any

from Crypto.Hash import keccak

from core.schemas.canonical import encode_leaf
from core.schemas.errors import FormatError


LEAF_PREFIX: bytes = b"\x00"
NODE_PREFIX: bytes = b"\x01"

HASH_LENGTH: int = 32

# All-zero sentinel root for an empty tree
ZERO_HASH: bytes = b"\x00" * HASH_LENGTH

_HEX_RE = re.compile(r"0x[0-9a-fA-F]*")
_BYTES32_RE = re.compile(r"0x[0-9a-fA-F]{64}")


def keccak256(data: bytes) -> bytes:
    """
    Compute Keccak-256 of raw bytes.

    Example:
        >>> keccak256(b"").hex()
        'c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470'
    """
    return keccak.new(digest_bits=256, data=data).digest()


def to_hex(data: bytes) -> str:
    """
    Convert bytes to a lowercase hex string with 0x prefix.

    Example:
        >>> to_hex(bytes.fromhex("deadbeef"))
        '0xdeadbeef'
    """
    return "0x" + data.hex()


def is_hex_string(value: Any) -> bool:
    """Check for ``0x`` followed by any number of hex digits."""
    return isinstance(value, str) and _HEX_RE.fullmatch(value) is not None


def is_bytes32_hex(value: Any) -> bool:
    """Check for ``0x`` followed by exactly 64 hex digits."""
    return isinstance(value, str) and _BYTES32_RE.fullmatch(value) is not None


def from_hex(hex_string: str, name: str = "value") -> bytes:
    """
    Convert a 0x-prefixed hexadecimal string to bytes.

    Raises:
        FormatError: If the string lacks the 0x prefix, has odd length,
            or contains non-hex characters.
    """
    if not is_hex_string(hex_string):
        raise FormatError(f"{name} is not a 0x-prefixed hex string", field_path=name, value=hex_string)

    hex_content = hex_string[2:]
    if len(hex_content) % 2 != 0:
        raise FormatError(
            f"{name} must have even length after 0x prefix, got length {len(hex_content)}",
            field_path=name,
            value=hex_string,
        )
    return bytes.fromhex(hex_content)


def require_bytes32(value: bytes | str, name: str = "value") -> bytes:
    """
    Accept a 32-byte value as raw bytes or bytes32 hex and return the bytes.

    Raises:
        FormatError: For any other shape or length.
    """
    if isinstance(value, (bytes, bytearray)):
        if len(value) != HASH_LENGTH:
            raise FormatError(
                f"{name} must be exactly {HASH_LENGTH} bytes, got {len(value)}",
                field_path=name,
            )
        return bytes(value)
    if not is_bytes32_hex(value):
        raise FormatError(f"{name} is not bytes32 hex", field_path=name, value=value)
    return bytes.fromhex(value[2:])


def hash_leaf(unit: Any, as_of_timestamp: Any) -> bytes:
    """
    Leaf hash of a reserve unit: keccak256(0x00 || canonical_json_utf8).

    Args:
        unit: ReserveUnit model or mapping with the six leaf fields
        as_of_timestamp: Report-level timestamp reused for every unit

    Raises:
        EncodingError: If the unit cannot be canonically encoded.
    """
    return keccak256(LEAF_PREFIX + encode_leaf(unit, as_of_timestamp))


def hash_node(left: bytes | str, right: bytes | str) -> bytes:
    """
    Internal node hash: keccak256(0x01 || left || right).

    Raises:
        FormatError: If either operand is not exactly 32 bytes.
    """
    left_bytes = require_bytes32(left, "left")
    right_bytes = require_bytes32(right, "right")
    return keccak256(NODE_PREFIX + left_bytes + right_bytes)


def report_id_to_bytes32(report_id: str) -> bytes:
    """
    Map a report identifier into the bytes32 ``reportId``.

    A report id that already is bytes32 hex passes through unchanged;
    anything else becomes keccak256(utf8(report_id)).
    """
    if is_bytes32_hex(report_id):
        return bytes.fromhex(report_id[2:])
    if not isinstance(report_id, str):
        raise FormatError("report_id must be a string", field_path="report_id", value=report_id)
    return keccak256(report_id.encode("utf-8"))


def hash_file_bytes(data: bytes) -> bytes:
    """Keccak-256 of a file's exact bytes (the bar list commitment)."""
    return keccak256(data)


__all__ = [
    "LEAF_PREFIX",
    "NODE_PREFIX",
    "HASH_LENGTH",
    "ZERO_HASH",
    "keccak256",
    "to_hex",
    "from_hex",
    "is_hex_string",
    "is_bytes32_hex",
    "require_bytes32",
    "hash_leaf",
    "hash_node",
    "report_id_to_bytes32",
    "hash_file_bytes",
]
