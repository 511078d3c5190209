"""
Attestation Verifier

Recovers the signer of an attestation and cross-checks every binding.
Checks run in order and each is fatal:

1. Structural validation (closed schema, bytes32/signature shapes, addresses)
2. Domain bindings (chainId and verifyingContract)
3. Digest recomputation and signer recovery
4. Recovered signer == declared signer_address
5. Recovered signer == expected signer, when one is supplied

The declared signer_address is never trusted on its own.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from core.attestation.codec import (
    AttestationDomain,
    AttestationPayload,
    attestation_message,
    check_domain_bindings,
)
from core.crypto.addresses import normalize_address
from core.crypto.hashing import to_hex
from core.crypto.eip712 import message_digest
from core.crypto.signatures import recover_signer
from core.schemas.attestation import Attestation
from core.schemas.errors import PorException, SignatureMismatchError
from core.schemas.verification import ChallengeRef, CheckResult, VerificationResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerifiedAttestation:
    """Outcome of a successful verification."""
    attestation: Attestation
    recovered_signer: str
    registry: str
    report_id_bytes32: str
    digest: str
    checks: list[CheckResult] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        att = self.attestation
        return {
            "ok": True,
            "recovered_signer": self.recovered_signer,
            "registry": self.registry,
            "chain_id": att.chain_id,
            "report_id": att.report_id,
            "report_id_bytes32": self.report_id_bytes32,
            "as_of_timestamp": att.as_of_timestamp,
            "attested_fine_gold_grams": att.attested_fine_gold_grams,
            "merkle_root": att.merkle_root,
            "bar_list_hash": att.bar_list_hash,
            "digest": self.digest,
        }


def verify_attestation(
    data: Mapping[str, Any] | Attestation,
    expected_signer: str | None = None,
) -> VerifiedAttestation:
    """
    Verify an attestation document.

    Args:
        data: Decoded attestation JSON, or an Attestation model
        expected_signer: Optional address the signer must also equal

    Returns:
        VerifiedAttestation with the recovered signer

    Raises:
        FormatError: Malformed hex, address or signature
        ValidationError: Schema violation or domain mismatch
        SignatureMismatchError: Recovered signer differs from declared/expected
    """
    checks: list[CheckResult] = []

    # 1. Structure
    attestation = data if isinstance(data, Attestation) else Attestation.from_json_dict(data)
    registry = normalize_address(attestation.reserve_registry_address, "reserve_registry_address")
    declared = normalize_address(attestation.signer_address, "signer_address")
    checks.append(CheckResult.passed("structure", "Attestation schema is valid"))

    # 2. Domain bindings
    check_domain_bindings(attestation.eip712_domain.model_dump(), attestation.chain_id, registry)
    checks.append(CheckResult.passed("domain", "EIP-712 domain matches chain_id and registry"))

    # 3. Digest + recovery
    domain = AttestationDomain.create(attestation.chain_id, registry)
    payload = AttestationPayload(
        report_id=attestation.report_id,
        as_of_timestamp=attestation.as_of_timestamp,
        attested_fine_gold_grams=attestation.attested_fine_gold_grams,
        merkle_root=attestation.merkle_root,
        bar_list_hash=attestation.bar_list_hash,
    )
    message = attestation_message(payload, domain)
    recovered = recover_signer(message, attestation.signature)
    checks.append(CheckResult.passed("recovery", "Signer recovered from signature", {"recovered": recovered}))

    # 4. Declared signer
    if recovered != declared:
        raise SignatureMismatchError(
            f"Recovered signer mismatch. recovered={recovered}, attestation.signer_address={declared}",
            recovered=recovered,
            declared=declared,
        )
    checks.append(CheckResult.passed("signer", "Recovered signer matches signer_address"))

    # 5. Expected signer
    if expected_signer:
        expected = normalize_address(expected_signer, "expected_signer")
        if recovered != expected:
            raise SignatureMismatchError(
                f"Expected signer mismatch. recovered={recovered}, expected={expected}",
                recovered=recovered,
                declared=expected,
            )
        checks.append(CheckResult.passed("expected_signer", "Recovered signer matches expected signer"))

    logger.debug("Verified attestation %s signed by %s", attestation.report_id, recovered)
    return VerifiedAttestation(
        attestation=attestation,
        recovered_signer=recovered,
        registry=registry,
        report_id_bytes32=to_hex(payload.report_id_bytes32),
        digest=to_hex(message_digest(message)),
        checks=checks,
    )


def check_attestation(
    data: Mapping[str, Any] | Attestation,
    expected_signer: str | None = None,
) -> VerificationResult:
    """
    Non-raising variant of verify_attestation.

    Core errors are folded into a failed VerificationResult carrying the
    structured error; anything else propagates.
    """
    try:
        verified = verify_attestation(data, expected_signer)
    except PorException as e:
        kind = "signature" if isinstance(e, SignatureMismatchError) else "domain"
        return VerificationResult.failure(
            checks=[CheckResult.failed("attestation", e.message, e.details)],
            challenge=ChallengeRef(kind=kind, reason=e.message),
            error=e.to_error_model(),
        )
    return VerificationResult.success(checks=list(verified.checks))


__all__ = ["VerifiedAttestation", "verify_attestation", "check_attestation"]
