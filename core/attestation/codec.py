"""
Attestation Codec
Assembles the ReserveAttestation EIP-712 message and its signing digest.

Domain:  {name: "GRUSH Reserve Attestation", version: "1", chainId, verifyingContract}
Type:    ReserveAttestation(bytes32 reportId,uint64 asOfTimestamp,
                            uint256 attestedFineGoldGrams,bytes32 merkleRoot,
                            bytes32 barListHash)

The digest must match the on-chain registry's verifier bit-for-bit.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from eth_account.messages import SignableMessage

from core.crypto.addresses import normalize_address
from core.crypto.eip712 import encode_message, message_digest
from core.crypto.hashing import report_id_to_bytes32, require_bytes32
from core.schemas.attestation import ATTESTATION_DOMAIN_NAME, ATTESTATION_DOMAIN_VERSION
from core.schemas.errors import ErrorCodes, ValidationError
from core.schemas.fields import UINT64_MAX, UINT256_MAX
from core.schemas.reserves import PorOutput


PRIMARY_TYPE = "ReserveAttestation"

ATTESTATION_TYPES: dict[str, list[dict[str, str]]] = {
    PRIMARY_TYPE: [
        {"name": "reportId", "type": "bytes32"},
        {"name": "asOfTimestamp", "type": "uint64"},
        {"name": "attestedFineGoldGrams", "type": "uint256"},
        {"name": "merkleRoot", "type": "bytes32"},
        {"name": "barListHash", "type": "bytes32"},
    ],
}


def _require_uint(value: Any, name: str, maximum: int) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{name} must be an integer", field_path=name, value=value)
    if not 0 <= value <= maximum:
        raise ValidationError(f"{name} out of range", field_path=name, value=str(value))
    return value


@dataclass(frozen=True)
class AttestationDomain:
    """EIP-712 domain bound to one chain and one registry contract."""
    chain_id: int
    verifying_contract: str

    @classmethod
    def create(cls, chain_id: Any, registry_address: Any) -> AttestationDomain:
        """
        Validate and normalize the domain inputs.

        Raises:
            ValidationError: If chain_id is not a positive integer.
            FormatError: If the registry address is malformed.
        """
        if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id < 1:
            raise ValidationError("chain_id must be a positive integer", field_path="chain_id", value=chain_id)
        return cls(
            chain_id=chain_id,
            verifying_contract=normalize_address(registry_address, "reserve_registry_address"),
        )

    def to_eip712(self) -> dict[str, Any]:
        return {
            "name": ATTESTATION_DOMAIN_NAME,
            "version": ATTESTATION_DOMAIN_VERSION,
            "chainId": self.chain_id,
            "verifyingContract": self.verifying_contract,
        }


@dataclass(frozen=True)
class AttestationPayload:
    """The unsigned attestation: what the signature commits to."""
    report_id: str
    as_of_timestamp: int
    attested_fine_gold_grams: int
    merkle_root: str
    bar_list_hash: str

    @classmethod
    def from_por_output(cls, output: PorOutput) -> AttestationPayload:
        return cls(
            report_id=output.report_id,
            as_of_timestamp=output.as_of_timestamp,
            attested_fine_gold_grams=output.attested_fine_gold_grams,
            merkle_root=output.merkle_root,
            bar_list_hash=output.bar_list_hash,
        )

    @property
    def report_id_bytes32(self) -> bytes:
        return report_id_to_bytes32(self.report_id)

    def to_message(self) -> dict[str, Any]:
        """
        EIP-712 message values.

        Raises:
            ValidationError: On out-of-range integers.
            FormatError: On malformed bytes32 values.
        """
        return {
            "reportId": self.report_id_bytes32,
            "asOfTimestamp": _require_uint(self.as_of_timestamp, "as_of_timestamp", UINT64_MAX),
            "attestedFineGoldGrams": _require_uint(
                self.attested_fine_gold_grams, "attested_fine_gold_grams", UINT256_MAX
            ),
            "merkleRoot": require_bytes32(self.merkle_root, "merkle_root"),
            "barListHash": require_bytes32(self.bar_list_hash, "bar_list_hash"),
        }


def check_domain_bindings(domain: Mapping[str, Any], chain_id: int, registry_address: str) -> None:
    """
    Enforce domain.chainId == chain_id and domain.verifyingContract == registry.

    Raises:
        ValidationError: With code DOMAIN_MISMATCH on any difference.
        FormatError: If an address is malformed.
    """
    if domain.get("name") != ATTESTATION_DOMAIN_NAME:
        raise ValidationError(
            "eip712_domain.name mismatch",
            field_path="eip712_domain.name",
            value=domain.get("name"),
            code=ErrorCodes.DOMAIN_MISMATCH,
        )
    if domain.get("version") != ATTESTATION_DOMAIN_VERSION:
        raise ValidationError(
            "eip712_domain.version mismatch",
            field_path="eip712_domain.version",
            value=domain.get("version"),
            code=ErrorCodes.DOMAIN_MISMATCH,
        )
    if domain.get("chainId") != chain_id:
        raise ValidationError(
            f"chain_id ({chain_id}) != eip712_domain.chainId ({domain.get('chainId')})",
            field_path="eip712_domain.chainId",
            value=domain.get("chainId"),
            code=ErrorCodes.DOMAIN_MISMATCH,
        )
    contract = normalize_address(domain.get("verifyingContract"), "eip712_domain.verifyingContract")
    registry = normalize_address(registry_address, "reserve_registry_address")
    if contract != registry:
        raise ValidationError(
            "eip712_domain.verifyingContract does not match reserve_registry_address",
            field_path="eip712_domain.verifyingContract",
            value=contract,
            details={"reserve_registry_address": registry},
            code=ErrorCodes.DOMAIN_MISMATCH,
        )


def attestation_message(payload: AttestationPayload, domain: AttestationDomain) -> SignableMessage:
    """The signable ReserveAttestation message: header is the domain separator, body the struct hash."""
    return encode_message(domain.to_eip712(), PRIMARY_TYPE, payload.to_message(), ATTESTATION_TYPES)


def attestation_digest(payload: AttestationPayload, domain: AttestationDomain) -> bytes:
    """The 32-byte EIP-712 digest the signer signs and the registry recovers from."""
    return message_digest(attestation_message(payload, domain))


__all__ = [
    "PRIMARY_TYPE",
    "ATTESTATION_TYPES",
    "AttestationDomain",
    "AttestationPayload",
    "check_domain_bindings",
    "attestation_message",
    "attestation_digest",
]
