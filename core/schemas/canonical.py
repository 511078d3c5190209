"""
Schemas & Canonicalization
File: canonical.py

Purpose: Deterministic serialization of a reserve unit into its canonical
leaf form, the preimage of every Merkle leaf hash.

CRITICAL: All outputs from this module MUST be byte-identical across runs
and across independent implementations. The key order is fixed and is NOT
alphabetical ("fineness" precedes "fine_weight_g").
"""

import json
import math
import re
from collections.abc import Mapping
from typing import Any

from .errors import EncodingError

# Canonical JSON separators - no whitespace
CANONICAL_JSON_SEPARATORS: tuple[str, str] = (",", ":")

# Leaf key order (hard contract)
LEAF_FIELDS: tuple[str, ...] = (
    "as_of_timestamp",
    "fineness",
    "fine_weight_g",
    "refiner",
    "serial_no",
    "vault_id",
)

_FINENESS_RE = re.compile(r"[0-9]{3}\.[0-9]")


def is_valid_fineness(value: Any) -> bool:
    """Check the ``NNN.N`` fineness format (e.g. ``"999.9"``)."""
    return isinstance(value, str) and _FINENESS_RE.fullmatch(value) is not None


def _require_integer(value: Any, field: str, *, minimum: int) -> int:
    """
    Coerce a JSON number into an int, rejecting anything non-integral.

    Integral floats (``1000.0``) are accepted and emitted as plain decimals.
    Booleans are never integers here.
    """
    if isinstance(value, bool):
        raise EncodingError(f"{field} must be an integer, got boolean", field_path=field, value=value)

    if isinstance(value, int):
        number = value
    elif isinstance(value, float):
        if not math.isfinite(value) or not value.is_integer():
            raise EncodingError(
                f"{field} must be a finite integer, got {value!r}",
                field_path=field,
                value=str(value),
            )
        number = int(value)
    else:
        raise EncodingError(
            f"{field} must be an integer, got {type(value).__name__}",
            field_path=field,
            value=value,
        )

    if number < minimum:
        raise EncodingError(
            f"{field} must be >= {minimum}, got {number}",
            field_path=field,
            value=number,
        )
    return number


def _require_string(value: Any, field: str) -> str:
    if not isinstance(value, str):
        raise EncodingError(
            f"{field} must be a string, got {type(value).__name__}",
            field_path=field,
            value=value,
        )
    return value


def _field(unit: Any, name: str) -> Any:
    if isinstance(unit, Mapping):
        if name not in unit:
            raise EncodingError(f"Missing leaf field: {name}", field_path=name)
        return unit[name]
    try:
        return getattr(unit, name)
    except AttributeError:
        raise EncodingError(f"Missing leaf field: {name}", field_path=name) from None


def canonical_leaf_dict(unit: Any, as_of_timestamp: Any) -> dict[str, Any]:
    """
    Validate and order the six hashed fields of a reserve unit.

    Args:
        unit: A ReserveUnit model or any mapping carrying the unit fields.
            Extra fields are ignored.
        as_of_timestamp: The report-level timestamp (unix seconds).

    Returns:
        A dict whose insertion order is the canonical leaf key order.

    Raises:
        EncodingError: If a field is missing or fails its format check.
    """
    timestamp = _require_integer(as_of_timestamp, "as_of_timestamp", minimum=0)

    fineness = _field(unit, "fineness")
    if not is_valid_fineness(fineness):
        raise EncodingError(
            f"fineness must match NNN.N (e.g. 999.9), got {fineness!r}",
            field_path="fineness",
            value=fineness,
        )

    return {
        "as_of_timestamp": timestamp,
        "fineness": fineness,
        "fine_weight_g": _require_integer(_field(unit, "fine_weight_g"), "fine_weight_g", minimum=1),
        "refiner": _require_string(_field(unit, "refiner"), "refiner"),
        "serial_no": _require_string(_field(unit, "serial_no"), "serial_no"),
        "vault_id": _require_string(_field(unit, "vault_id"), "vault_id"),
    }


def canonical_leaf_json(unit: Any, as_of_timestamp: Any) -> str:
    """
    Serialize a reserve unit to its canonical leaf JSON string.

    Example:
        >>> canonical_leaf_json(
        ...     {"serial_no": "ABCD-1234", "refiner": "ACME", "fineness": "999.9",
        ...      "fine_weight_g": 1000, "vault_id": "IST-VAULT-01"},
        ...     1700000000,
        ... )
        '{"as_of_timestamp":1700000000,"fineness":"999.9","fine_weight_g":1000,"refiner":"ACME","serial_no":"ABCD-1234","vault_id":"IST-VAULT-01"}'
    """
    ordered = canonical_leaf_dict(unit, as_of_timestamp)
    # sort_keys must stay off: the leaf order is positional, not alphabetical
    return json.dumps(
        ordered,
        separators=CANONICAL_JSON_SEPARATORS,
        ensure_ascii=False,
        allow_nan=False,
    )


def encode_leaf(unit: Any, as_of_timestamp: Any) -> bytes:
    """
    Canonical UTF-8 bytes of a reserve unit (the leaf hash preimage body).

    Raises:
        EncodingError: On invalid fields or strings that are not valid
            Unicode scalar sequences (lone surrogates).
    """
    text = canonical_leaf_json(unit, as_of_timestamp)
    try:
        return text.encode("utf-8")
    except UnicodeEncodeError as e:
        raise EncodingError(
            f"Leaf contains characters that cannot be UTF-8 encoded: {e.reason}",
            details={"position": e.start},
        ) from e
