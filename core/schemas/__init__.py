"""
Schemas & Canonicalization
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import document models,
the canonical leaf encoder and the error taxonomy.
"""

# Version constants
from .versioning import EIP712_TYPES_VERSION, SCHEMA_VERSION

# Error models and exceptions
from .errors import (
    EncodingError,
    ErrorCodes,
    FormatError,
    IntegrityWarning,
    PorError,
    PorException,
    RegistryException,
    SignatureMismatchError,
    ValidationError,
    from_pydantic_error,
)

# Canonical leaf encoding
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    LEAF_FIELDS,
    canonical_leaf_dict,
    canonical_leaf_json,
    encode_leaf,
    is_valid_fineness,
)

# Field types
from .fields import (
    UINT64_MAX,
    UINT256_MAX,
    AddressHex,
    Bytes32Hex,
    JsonInt,
    SignatureHex,
)

# Documents
from .reserves import (
    Auditor,
    Custodian,
    PorOutput,
    ReserveList,
    ReserveUnit,
    Totals,
    Vault,
)
from .attestation import (
    ATTESTATION_DOMAIN_NAME,
    ATTESTATION_DOMAIN_VERSION,
    Attestation,
    Eip712DomainModel,
)
from .proof import Position, ProofDocument

# Verification results
from .verification import (
    ChallengeKind,
    ChallengeRef,
    CheckResult,
    CheckStatus,
    VerificationResult,
)


__all__ = [
    # Versioning
    "EIP712_TYPES_VERSION",
    "SCHEMA_VERSION",
    # Errors
    "EncodingError",
    "ErrorCodes",
    "FormatError",
    "IntegrityWarning",
    "PorError",
    "PorException",
    "RegistryException",
    "SignatureMismatchError",
    "ValidationError",
    "from_pydantic_error",
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "LEAF_FIELDS",
    "canonical_leaf_dict",
    "canonical_leaf_json",
    "encode_leaf",
    "is_valid_fineness",
    # Field types
    "UINT64_MAX",
    "UINT256_MAX",
    "AddressHex",
    "Bytes32Hex",
    "JsonInt",
    "SignatureHex",
    # Documents
    "Auditor",
    "Custodian",
    "PorOutput",
    "ReserveList",
    "ReserveUnit",
    "Totals",
    "Vault",
    "ATTESTATION_DOMAIN_NAME",
    "ATTESTATION_DOMAIN_VERSION",
    "Attestation",
    "Eip712DomainModel",
    "Position",
    "ProofDocument",
    # Verification
    "ChallengeKind",
    "ChallengeRef",
    "CheckResult",
    "CheckStatus",
    "VerificationResult",
]
