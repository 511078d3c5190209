"""
API Response Models

Pydantic models for API response serialization.
"""

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    """Response for GET /health endpoint."""

    ok: bool = True
    service: str = "grush-por-api"
    version: str = "v1"


class BuildResponse(BaseModel):
    """Response for POST /por/build."""

    ok: bool = True
    output: dict[str, Any] = Field(..., description="PorOutput document")
    warnings: list[str] = Field(default_factory=list, description="Advisory totals mismatches")


class ProveResponse(BaseModel):
    """Response for POST /por/prove."""

    ok: bool = True
    proof: dict[str, Any] = Field(..., description="Proof document")


class VerifyAttestationResponse(BaseModel):
    """Response for POST /verify/attestation."""

    ok: bool = True
    recovered_signer: str
    registry: str
    chain_id: int
    report_id: str
    report_id_bytes32: str
    digest: str
    checks: list[dict[str, Any]] = Field(default_factory=list)


class VerifyProofResponse(BaseModel):
    """Response for POST /verify/proof."""

    ok: bool = Field(..., description="Whether the proof reconstructs merkle_root")
    leaf_hash: str
    merkle_root: str


class ErrorDetail(BaseModel):
    """Error detail."""

    code: str
    message: str
    details: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response."""

    ok: bool = False
    error: ErrorDetail
