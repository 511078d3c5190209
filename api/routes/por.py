"""
Reserve Commitment Routes

- POST /por/build: reserve list bytes -> PorOutput
- POST /por/prove: reserve list bytes + serial_no -> Proof document
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request

from api.errors import InvalidRequestError
from api.models.responses import BuildResponse, ProveResponse
from core.config import get_default_config
from core.por import build_commitment


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/por", tags=["por"])


async def _read_body(request: Request) -> bytes:
    body = await request.body()
    if not body:
        raise InvalidRequestError("Request body must contain the reserve list JSON")
    return body


@router.post("/build", response_model=BuildResponse)
async def build_por_output(
    request: Request,
    strict_totals: Optional[bool] = Query(default=None, description="Reject advisory totals mismatches (default: GRUSH_STRICT_TOTALS)"),
) -> BuildResponse:
    """
    Build the PorOutput for a reserve list.

    The request body is hashed verbatim for bar_list_hash, so send the file
    exactly as it will be published.
    """
    body = await _read_body(request)
    if strict_totals is None:
        strict_totals = get_default_config().por.strict_totals
    commitment = build_commitment(body, strict_totals=strict_totals)
    return BuildResponse(
        ok=True,
        output=commitment.to_por_output().to_json_dict(),
        warnings=list(commitment.totals_mismatches),
    )


@router.post("/prove", response_model=ProveResponse)
async def prove_unit(
    request: Request,
    serial_no: str = Query(..., min_length=1, description="Serial number to prove"),
) -> ProveResponse:
    """Inclusion proof for one unit of the reserve list in the request body."""
    body = await _read_body(request)
    commitment = build_commitment(body)
    logger.info("Proving %s in %s", serial_no, commitment.reserve_list.report_id)
    return ProveResponse(ok=True, proof=commitment.proof_document(serial_no).to_json_dict())
