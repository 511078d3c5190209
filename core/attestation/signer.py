"""
Attestation Signer

Produces the 65-byte recoverable signature over the attestation digest and
assembles the signed Attestation document. Key material is only ever held
in the eth_account LocalAccount; it is never logged or written out.
"""
from __future__ import annotations

import logging

from eth_account.signers.local import LocalAccount

from core.attestation.codec import AttestationDomain, AttestationPayload, attestation_message
from core.crypto.signatures import RecoverableSignature, load_signing_key, sign_message, signer_address
from core.schemas.attestation import Attestation, Eip712DomainModel
from core.schemas.reserves import PorOutput
from core.schemas.versioning import EIP712_TYPES_VERSION, SCHEMA_VERSION

logger = logging.getLogger(__name__)


def sign_attestation(
    payload: AttestationPayload,
    domain: AttestationDomain,
    account: LocalAccount,
) -> RecoverableSignature:
    """
    Sign the EIP-712 digest of a payload under a domain.

    Pure: same inputs always give the same signature (RFC 6979).
    """
    return sign_message(attestation_message(payload, domain), account)


def build_signed_attestation(
    output: PorOutput,
    chain_id: int,
    registry_address: str,
    private_key: str | bytes | LocalAccount,
) -> Attestation:
    """
    Sign a PorOutput and return the complete Attestation document.

    Args:
        output: Commitment produced by the reserve list builder
        chain_id: Target chain id (>= 1)
        registry_address: ReserveRegistry contract (the verifyingContract)
        private_key: Hex/bytes private key or a loaded LocalAccount

    Raises:
        ValidationError: On a bad chain id or out-of-range payload values
        FormatError: On a malformed address, hash or key
    """
    domain = AttestationDomain.create(chain_id, registry_address)
    payload = AttestationPayload.from_por_output(output)
    key = private_key if isinstance(private_key, LocalAccount) else load_signing_key(private_key)

    signature = sign_attestation(payload, domain, key)
    signer = signer_address(key)
    logger.info("Signed attestation for report %s as %s", payload.report_id, signer)

    return Attestation(
        schema_version=SCHEMA_VERSION,
        report_id=payload.report_id,
        as_of_timestamp=payload.as_of_timestamp,
        attested_fine_gold_grams=payload.attested_fine_gold_grams,
        merkle_root=payload.merkle_root,
        bar_list_hash=payload.bar_list_hash,
        chain_id=domain.chain_id,
        reserve_registry_address=domain.verifying_contract,
        signer_address=signer,
        signature_scheme="eip712",
        eip712_domain=Eip712DomainModel(**domain.to_eip712()),
        eip712_types_version=EIP712_TYPES_VERSION,
        signature=signature.to_hex(),
    )


__all__ = ["sign_attestation", "build_signed_attestation"]
