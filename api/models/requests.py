"""
API Request Models

Pydantic models for API request validation. /por/build and /por/prove take
the reserve list as the raw request body, since bar_list_hash commits to
its exact bytes.
"""

from typing import Any

from pydantic import BaseModel, Field


class VerifyAttestationRequest(BaseModel):
    """Request body for POST /verify/attestation."""

    attestation: dict[str, Any] = Field(
        ...,
        description="Signed attestation document",
    )
    expected_signer: str | None = Field(
        default=None,
        description="Address the recovered signer must also equal",
    )


class VerifyProofRequest(BaseModel):
    """
    Request body for POST /verify/proof.

    Exactly one of leaf_hash or leaf must be supplied.
    """

    leaf_hash: str | None = Field(
        default=None,
        description="bytes32 leaf hash",
    )
    leaf: dict[str, Any] | None = Field(
        default=None,
        description="Leaf JSON object (as_of_timestamp plus unit fields); hashed server-side",
    )
    siblings: list[str] = Field(default_factory=list)
    positions: list[Any] | None = Field(
        default=None,
        description='"left"/"right" strings, or booleans with true meaning left',
    )
    merkle_root: str = Field(..., description="Expected bytes32 root")
