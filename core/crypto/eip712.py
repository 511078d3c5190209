"""
EIP-712 Typed Structured Data

Thin layer over eth_account's typed-data encoder. A typed message compiles
down to an EIP-191 SignableMessage:

    version = 0x01
    header  = domainSeparator = hashStruct(EIP712Domain, domain)
    body    = hashStruct(primaryType, message)
    digest  = keccak256(0x19 || version || header || body)

Encoder failures (missing members, values that do not fit their type) are
reported as FormatError.
"""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from eth_abi.exceptions import EncodingError
from eth_account.messages import SignableMessage, encode_typed_data
from eth_utils import ValidationError as EthValidationError

from core.crypto.hashing import keccak256
from core.schemas.errors import FormatError


TypeDefinitions = Mapping[str, Sequence[Mapping[str, str]]]

EIP191_PREFIX: bytes = b"\x19"

# Canonical order of the optional EIP712Domain members
DOMAIN_FIELDS: tuple[tuple[str, str], ...] = (
    ("name", "string"),
    ("version", "string"),
    ("chainId", "uint256"),
    ("verifyingContract", "address"),
    ("salt", "bytes32"),
)


def domain_type(domain: Mapping[str, Any]) -> list[dict[str, str]]:
    """EIP712Domain members actually present in ``domain``, in canonical order."""
    return [{"name": name, "type": kind} for name, kind in DOMAIN_FIELDS if name in domain]


def typed_data(
    domain: Mapping[str, Any],
    primary_type: str,
    message: Mapping[str, Any],
    types: TypeDefinitions,
) -> dict[str, Any]:
    """The full ``eth_signTypedData_v4`` document for a message."""
    return {
        "types": {
            "EIP712Domain": domain_type(domain),
            **{name: [dict(member) for member in members] for name, members in types.items()},
        },
        "primaryType": primary_type,
        "domain": dict(domain),
        "message": dict(message),
    }


def encode_message(
    domain: Mapping[str, Any],
    primary_type: str,
    message: Mapping[str, Any],
    types: TypeDefinitions,
) -> SignableMessage:
    """
    Encode a typed message, ready for Account.sign_message / recover_message.

    Raises:
        FormatError: If the types are inconsistent or a value does not
            encode under its declared type.
    """
    if primary_type not in types:
        raise FormatError(f"Unknown EIP-712 type: {primary_type}", field_path="primaryType", value=primary_type)
    try:
        return encode_typed_data(full_message=typed_data(domain, primary_type, message, types))
    except (EncodingError, EthValidationError, ValueError, TypeError) as e:
        raise FormatError(f"Cannot encode EIP-712 {primary_type}: {e}", field_path="message") from e


def message_digest(message: SignableMessage) -> bytes:
    """The 32-byte hash a signature over ``message`` commits to."""
    return keccak256(EIP191_PREFIX + bytes(message.version) + bytes(message.header) + bytes(message.body))


def typed_data_digest(
    domain: Mapping[str, Any],
    primary_type: str,
    message: Mapping[str, Any],
    types: TypeDefinitions,
) -> bytes:
    """
    Final 32-byte EIP-712 signing digest.

    Args:
        domain: Domain values (name, version, chainId, verifyingContract, ...)
        primary_type: Name of the message struct
        message: Message values keyed by member name
        types: Struct definitions, excluding EIP712Domain
    """
    return message_digest(encode_message(domain, primary_type, message, types))


__all__ = [
    "TypeDefinitions",
    "DOMAIN_FIELDS",
    "domain_type",
    "typed_data",
    "encode_message",
    "message_digest",
    "typed_data_digest",
]
