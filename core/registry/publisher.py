"""
Attestation Publisher

Pre-flight checks and publication of a signed attestation to a registry.

Pre-flight, in order:
1. The attestation verifies locally (schema, domain, signer recovery)
2. The registry's chain matches attestation.chain_id
3. The registry address matches attestation.reserve_registry_address
4. The recovered signer is allowlisted (best effort: a failing lookup warns)
5. Publisher and signer are different accounts (warning only)
"""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from core.attestation.verifier import VerifiedAttestation, verify_attestation
from core.crypto.addresses import normalize_address
from core.crypto.hashing import from_hex
from core.registry.base import ReserveRegistry
from core.schemas.attestation import Attestation
from core.schemas.errors import ErrorCodes, PorException, RegistryException
from core.schemas.verification import ChallengeRef, CheckResult, VerificationResult

logger = logging.getLogger(__name__)


def _registry_checks(
    verified: VerifiedAttestation,
    registry: ReserveRegistry,
    publisher_address: Optional[str],
) -> VerificationResult:
    """Checks 2-5 against an attestation that already verified locally."""
    checks = [CheckResult.passed("attestation", "Attestation verifies locally")]
    att = verified.attestation
    signer = verified.recovered_signer

    provider_chain_id = registry.chain_id()
    if provider_chain_id != att.chain_id:
        error = RegistryException(
            f"ChainId mismatch. provider={provider_chain_id}, attestation.chain_id={att.chain_id}",
            code=ErrorCodes.CHAIN_ID_MISMATCH,
            details={"provider_chain_id": provider_chain_id, "attestation_chain_id": att.chain_id},
        )
        checks.append(CheckResult.failed("chain_id", error.message, error.details))
        return VerificationResult.failure(
            checks=checks,
            challenge=ChallengeRef(kind="domain", reason=error.message),
            error=error.to_error_model(),
        )
    checks.append(CheckResult.passed("chain_id", f"Registry chain is {provider_chain_id}"))

    if registry.address != verified.registry:
        error = RegistryException(
            f"Registry mismatch. registry={registry.address}, "
            f"attestation.reserve_registry_address={verified.registry}",
            code=ErrorCodes.DOMAIN_MISMATCH,
            details={"registry": registry.address, "attestation_registry": verified.registry},
        )
        checks.append(CheckResult.failed("registry", error.message, error.details))
        return VerificationResult.failure(
            checks=checks,
            challenge=ChallengeRef(kind="domain", reason=error.message),
            error=error.to_error_model(),
        )
    checks.append(CheckResult.passed("registry", "Registry matches the attestation domain"))

    try:
        allowed: Optional[bool] = registry.is_allowed_signer(signer)
    except RegistryException as e:
        allowed = None
        logger.warning("Could not check signer allowlist: %s", e.message)
        checks.append(CheckResult.warning("signer_allowed", f"Could not check allowlist: {e.message}"))
    if allowed is False:
        error = RegistryException(
            f"Signer not allowed by registry: {signer}",
            code=ErrorCodes.SIGNER_NOT_ALLOWED,
            details={"signer": signer},
        )
        checks.append(CheckResult.failed("signer_allowed", error.message, error.details))
        return VerificationResult.failure(
            checks=checks,
            challenge=ChallengeRef(kind="signature", reason=error.message),
            error=error.to_error_model(),
        )
    if allowed:
        checks.append(CheckResult.passed("signer_allowed", f"Signer {signer} is allowlisted"))

    if publisher_address and normalize_address(publisher_address, "publisher_address") == signer:
        logger.warning("Publisher and signer are the same account (%s)", signer)
        checks.append(CheckResult.warning(
            "publisher_separation",
            "Publisher equals signer; use separate accounts in production",
        ))

    return VerificationResult.success(checks=checks)


def preflight(
    attestation: Mapping[str, Any] | Attestation,
    registry: ReserveRegistry,
    *,
    publisher_address: Optional[str] = None,
    expected_signer: Optional[str] = None,
) -> VerificationResult:
    """
    Run every pre-flight check without publishing.

    Local verification failures, chain or registry mismatches and a
    rejected signer are failures; an unreachable allowlist and a publisher
    equal to the signer are warnings.
    """
    try:
        verified = verify_attestation(attestation, expected_signer)
    except PorException as e:
        return VerificationResult.failure(
            checks=[CheckResult.failed("attestation", e.message, e.details)],
            challenge=ChallengeRef(kind="signature", reason=e.message),
            error=e.to_error_model(),
        )
    return _registry_checks(verified, registry, publisher_address)


def publish_attestation(
    attestation: Mapping[str, Any] | Attestation,
    registry: ReserveRegistry,
    *,
    publisher_address: Optional[str] = None,
    expected_signer: Optional[str] = None,
) -> dict[str, Any]:
    """
    Pre-flight and publish an attestation.

    The attestation is verified once; local verification errors propagate
    with their own type.

    Returns:
        {ok, publisher, chain_id, reserve_registry, report_id,
         report_id_bytes32, signer, tx_hash}

    Raises:
        PorException: The first failed pre-flight check, or the registry's
            rejection
    """
    publisher = publisher_address or getattr(registry, "publisher_address", None)

    verified = verify_attestation(attestation, expected_signer)
    result = _registry_checks(verified, registry, publisher)
    if not result.ok:
        raise result.error.to_exception()

    att = verified.attestation
    signer = registry.publish_attestation(
        from_hex(verified.report_id_bytes32, "report_id"),
        att.as_of_timestamp,
        att.attested_fine_gold_grams,
        from_hex(att.merkle_root, "merkle_root"),
        from_hex(att.bar_list_hash, "bar_list_hash"),
        from_hex(att.signature, "signature"),
    )
    tx_hash = getattr(registry, "last_transaction_hash", None)
    logger.info("Published %s to %s (tx=%s)", att.report_id, registry.address, tx_hash)

    return {
        "ok": True,
        "publisher": publisher,
        "chain_id": att.chain_id,
        "reserve_registry": registry.address,
        "report_id": att.report_id,
        "report_id_bytes32": verified.report_id_bytes32,
        "signer": signer,
        "tx_hash": tx_hash,
    }


__all__ = ["preflight", "publish_attestation"]
