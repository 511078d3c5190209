"""
Reserve Attestations

EIP-712 codec, signer and verifier for ReserveAttestation messages.

Usage:
    from core.attestation import build_signed_attestation, verify_attestation

    attestation = build_signed_attestation(por_output, chain_id, registry, private_key)
    verified = verify_attestation(attestation.to_json_dict())
"""
from .codec import (
    ATTESTATION_TYPES,
    PRIMARY_TYPE,
    AttestationDomain,
    AttestationPayload,
    attestation_digest,
    attestation_message,
    check_domain_bindings,
)
from .signer import build_signed_attestation, sign_attestation
from .verifier import VerifiedAttestation, check_attestation, verify_attestation

__all__ = [
    "ATTESTATION_TYPES",
    "PRIMARY_TYPE",
    "AttestationDomain",
    "AttestationPayload",
    "attestation_digest",
    "attestation_message",
    "check_domain_bindings",
    "build_signed_attestation",
    "sign_attestation",
    "VerifiedAttestation",
    "check_attestation",
    "verify_attestation",
]
