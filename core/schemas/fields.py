"""
Schemas & Canonicalization
File: fields.py

Purpose: Reusable annotated field types shared by the document models.
"""

import math
from typing import Annotated, Any

from pydantic import BeforeValidator, Field

UINT64_MAX: int = 2**64 - 1
UINT256_MAX: int = 2**256 - 1

BYTES32_PATTERN = r"^0x[0-9a-fA-F]{64}$"
ADDRESS_PATTERN = r"^0x[0-9a-fA-F]{40}$"
SIGNATURE_PATTERN = r"^0x[0-9a-fA-F]{130}$"


def _json_integer(value: Any) -> Any:
    """
    Accept JSON integers and integral floats; reject booleans and strings.

    pydantic's lax int mode would otherwise let ``True`` and ``"12"`` through.
    """
    if isinstance(value, bool):
        raise ValueError("must be an integer, got boolean")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return int(value)
        raise ValueError(f"must be an integer, got {value!r}")
    raise ValueError(f"must be an integer, got {type(value).__name__}")


JsonInt = Annotated[int, BeforeValidator(_json_integer)]

Bytes32Hex = Annotated[str, Field(pattern=BYTES32_PATTERN)]
AddressHex = Annotated[str, Field(pattern=ADDRESS_PATTERN)]
SignatureHex = Annotated[str, Field(pattern=SIGNATURE_PATTERN)]
