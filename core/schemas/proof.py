"""
Schemas & Canonicalization
File: proof.py

Purpose: Merkle inclusion proof document.

positions[i] says where siblings[i] sits relative to the running hash:
"left" => parent = H(sibling, running), "right" => parent = H(running, sibling).
The boolean form is also accepted on input (true = left).
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, StrictBool
from pydantic import ValidationError as PydanticValidationError

from .errors import from_pydantic_error
from .fields import Bytes32Hex

Position = Literal["left", "right"]


class ProofDocument(BaseModel):
    """
    Inclusion proof for one leaf.

    Only siblings and positions are needed to verify. The remaining fields
    are emitted by the prover for convenience and ignored by the verifier.
    """

    model_config = ConfigDict(extra="ignore")

    siblings: list[Bytes32Hex] = Field(default_factory=list)
    positions: list[Position] | list[StrictBool] = Field(default_factory=list)

    serial_no: str | None = None
    index: int | None = Field(default=None, ge=0)
    leaf_hash: Bytes32Hex | None = None
    merkle_root: Bytes32Hex | None = None

    @classmethod
    def from_json_dict(cls, data: Any) -> ProofDocument:
        """Validate a decoded JSON document, raising the core error types."""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic_error(e, "Proof") from e

    def to_json_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
