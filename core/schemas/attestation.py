"""
Schemas & Canonicalization
File: attestation.py

Purpose: Signed attestation document (schema 0.1, EIP-712 scheme).
The schema is closed: unknown fields are rejected.
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .errors import from_pydantic_error
from .fields import UINT64_MAX, UINT256_MAX, AddressHex, Bytes32Hex, JsonInt, SignatureHex

# Fixed EIP-712 domain identity
ATTESTATION_DOMAIN_NAME = "GRUSH Reserve Attestation"
ATTESTATION_DOMAIN_VERSION = "1"


class Eip712DomainModel(BaseModel):
    """The EIP-712 domain embedded in an attestation."""

    model_config = ConfigDict(extra="forbid")

    name: Literal["GRUSH Reserve Attestation"]
    version: Literal["1"]
    chainId: JsonInt = Field(..., ge=1)
    verifyingContract: AddressHex


class Attestation(BaseModel):
    """
    A signed reserve attestation.

    Immutable once produced; verifying it never mutates it.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: Literal["0.1"]
    report_id: str = Field(..., min_length=1)
    as_of_timestamp: JsonInt = Field(..., ge=0, le=UINT64_MAX)
    attested_fine_gold_grams: JsonInt = Field(..., ge=0, le=UINT256_MAX)
    merkle_root: Bytes32Hex
    bar_list_hash: Bytes32Hex
    chain_id: JsonInt = Field(..., ge=1)
    reserve_registry_address: AddressHex
    signer_address: AddressHex
    signature_scheme: Literal["eip712"]
    eip712_domain: Eip712DomainModel
    eip712_types_version: Literal["0.1"]
    signature: SignatureHex

    @classmethod
    def from_json_dict(cls, data: Any) -> "Attestation":
        """Validate a decoded JSON document, raising the core error types."""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic_error(e, "Attestation") from e

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json")
