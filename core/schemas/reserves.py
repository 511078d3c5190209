"""
Schemas & Canonicalization
File: reserves.py

Purpose: Reserve list input documents and the commitment output (PorOutput).
A ReserveList is authored by the custodian; PorOutput is what the core
derives from it (root, aggregate grams, file hash).
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .canonical import is_valid_fineness
from .errors import from_pydantic_error
from .fields import UINT64_MAX, UINT256_MAX, Bytes32Hex, JsonInt


class ReserveUnit(BaseModel):
    """
    One allocated physical reserve unit (a gold bar).

    Only serial_no, refiner, fineness, fine_weight_g and vault_id are hashed.
    The remaining fields are descriptive metadata.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    serial_no: str = Field(..., min_length=1, description="Bar serial, unique within a report")
    refiner: str = Field(..., min_length=1)
    fineness: str = Field(..., description="Purity as NNN.N, e.g. 999.9")
    fine_weight_g: JsonInt = Field(..., gt=0, description="Fine gold content in integer grams")
    vault_id: str = Field(..., min_length=1)

    # Descriptive metadata (never hashed)
    bar_id: str | None = None
    gross_weight_g: JsonInt | None = Field(default=None, gt=0)
    location_code: str | None = None
    allocation_status: Literal["allocated"] | None = None
    assay_reference: str | None = None
    notes: str | None = None

    @field_validator("fineness")
    @classmethod
    def validate_fineness(cls, v: str) -> str:
        if not is_valid_fineness(v):
            raise ValueError(f"fineness must match NNN.N (e.g. 999.9), got {v!r}")
        return v

    @property
    def sort_key(self) -> tuple[str, str, str]:
        """Canonical order: serial_no, then refiner, then vault_id."""
        return (self.serial_no, self.refiner, self.vault_id)


class Custodian(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    location: str


class Auditor(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    report_ref: str | None = None


class Vault(BaseModel):
    model_config = ConfigDict(extra="ignore")

    vault_id: str
    description: str = ""


class Totals(BaseModel):
    """Advisory totals; cross-checked but never trusted."""

    model_config = ConfigDict(extra="ignore")

    fine_gold_grams: JsonInt | None = Field(default=None, ge=0)
    bars_count: JsonInt | None = Field(default=None, ge=0)


class ReserveList(BaseModel):
    """
    Custodian reserve list document (schema 0.1).

    Serial uniqueness is enforced by the commitment builder, not here, so
    that the duplicate can be reported with its own error code.
    """

    model_config = ConfigDict(extra="ignore")

    schema_version: Literal["0.1"]
    report_id: str = Field(..., min_length=1)
    as_of_timestamp: JsonInt = Field(..., ge=0, le=UINT64_MAX, description="Unix seconds")
    custodian: Custodian
    auditor: Auditor | None = None
    vaults: list[Vault] | None = None
    bars: list[ReserveUnit] = Field(..., min_length=1)
    totals: Totals | None = None

    @classmethod
    def from_json_dict(cls, data: Any) -> "ReserveList":
        """Validate a decoded JSON document, raising the core error types."""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic_error(e, "ReserveList") from e


class PorOutput(BaseModel):
    """
    Commitment derived from a reserve list.

    This is the unsigned attestation payload plus bars_count.
    """

    model_config = ConfigDict(extra="ignore")

    schema_version: Literal["0.1"]
    report_id: str = Field(..., min_length=1)
    as_of_timestamp: JsonInt = Field(..., ge=0, le=UINT64_MAX)
    bars_count: JsonInt | None = Field(default=None, ge=0)
    attested_fine_gold_grams: JsonInt = Field(..., ge=0, le=UINT256_MAX)
    bar_list_hash: Bytes32Hex
    merkle_root: Bytes32Hex

    @classmethod
    def from_json_dict(cls, data: Any) -> "PorOutput":
        """Validate a decoded JSON document, raising the core error types."""
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic_error(e, "PorOutput") from e

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize with the document's field order, dropping unset bars_count."""
        return self.model_dump(mode="json", exclude_none=True)
