"""
Verify Routes

- POST /verify/attestation: recover and cross-check an attestation signer
- POST /verify/proof: check a Merkle inclusion proof
"""

from __future__ import annotations

import logging

from fastapi import APIRouter

from api.errors import InvalidRequestError
from api.models.requests import VerifyAttestationRequest, VerifyProofRequest
from api.models.responses import VerifyAttestationResponse, VerifyProofResponse
from core.attestation import verify_attestation
from core.crypto import hash_leaf, require_bytes32, to_hex
from core.merkle import verify_proof
from core.schemas.errors import FormatError


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/verify", tags=["verification"])


@router.post("/attestation", response_model=VerifyAttestationResponse)
async def verify_attestation_document(body: VerifyAttestationRequest) -> VerifyAttestationResponse:
    """
    Verify a signed attestation.

    Failures are reported as error bodies: 400 for malformed fields, 422 for
    schema/domain violations and signer mismatches.
    """
    verified = verify_attestation(body.attestation, body.expected_signer)
    data = verified.to_dict()
    return VerifyAttestationResponse(
        ok=True,
        recovered_signer=data["recovered_signer"],
        registry=data["registry"],
        chain_id=data["chain_id"],
        report_id=data["report_id"],
        report_id_bytes32=data["report_id_bytes32"],
        digest=data["digest"],
        checks=[c.model_dump() for c in verified.checks],
    )


@router.post("/proof", response_model=VerifyProofResponse)
async def verify_proof_document(body: VerifyProofRequest) -> VerifyProofResponse:
    """
    Verify an inclusion proof.

    A proof that does not reconstruct the root is answered with ok=false;
    a structurally malformed proof is a 400.
    """
    if (body.leaf_hash is None) == (body.leaf is None):
        raise InvalidRequestError("Provide exactly one of leaf_hash or leaf")

    if body.leaf is not None:
        if "as_of_timestamp" not in body.leaf:
            raise FormatError("leaf must carry as_of_timestamp", field_path="leaf.as_of_timestamp")
        leaf_hash = hash_leaf(body.leaf, body.leaf["as_of_timestamp"])
    else:
        leaf_hash = require_bytes32(body.leaf_hash, "leaf_hash")

    ok = verify_proof(leaf_hash, body.siblings, body.positions, body.merkle_root)
    logger.debug("Proof for %s: %s", to_hex(leaf_hash), "valid" if ok else "invalid")
    return VerifyProofResponse(ok=ok, leaf_hash=to_hex(leaf_hash), merkle_root=body.merkle_root)
