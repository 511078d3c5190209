"""API request and response models."""

from api.models.requests import VerifyAttestationRequest, VerifyProofRequest
from api.models.responses import (
    BuildResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
    ProveResponse,
    VerifyAttestationResponse,
    VerifyProofResponse,
)

__all__ = [
    "VerifyAttestationRequest",
    "VerifyProofRequest",
    "HealthResponse",
    "BuildResponse",
    "ProveResponse",
    "VerifyAttestationResponse",
    "VerifyProofResponse",
    "ErrorDetail",
    "ErrorResponse",
]
