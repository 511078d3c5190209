"""
Test Vector Checker

Recomputes a reserve list commitment and compares it against a published
test vector: bar_list_hash, merkle_root, per-serial leaf hashes and proofs.

Vector document:
    {
      "schema_version": "0.1",
      "report_id": "...",              (optional cross-check)
      "as_of_timestamp": 1700000000,   (optional cross-check)
      "bar_list_path": "bar_list.json",
      "expected": {
        "bar_list_hash": "0x..",
        "merkle_root": "0x..",
        "leaf_hashes": {"<serial_no>": "0x.."},
        "proofs": {"<serial_no>": {"siblings": [...], "positions": [...]}}
      }
    }

A relative bar_list_path is resolved against the vector file's directory
first, then the working directory.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from core.crypto.hashing import to_hex
from core.merkle.merkle_proofs import verify_proof
from core.por.reserve_commitment import ReserveCommitment, build_commitment
from core.schemas.errors import FormatError, PorException, from_pydantic_error
from core.schemas.fields import Bytes32Hex
from core.schemas.verification import ChallengeRef, CheckResult, VerificationResult

logger = logging.getLogger(__name__)


class VectorExpectations(BaseModel):
    model_config = ConfigDict(extra="ignore")

    bar_list_hash: Bytes32Hex
    merkle_root: Bytes32Hex
    leaf_hashes: dict[str, Bytes32Hex] | None = None
    proofs: dict[str, dict[str, Any]] | None = None


class ReserveVector(BaseModel):
    """A published commitment test vector."""

    model_config = ConfigDict(extra="ignore")

    schema_version: str = "0.1"
    report_id: str | None = None
    as_of_timestamp: int | None = None
    bar_list_path: str = Field(..., min_length=1)
    expected: VectorExpectations

    @classmethod
    def from_json_dict(cls, data: Any) -> "ReserveVector":
        try:
            return cls.model_validate(data)
        except PydanticValidationError as e:
            raise from_pydantic_error(e, "TestVector") from e


def check_vector(vector: ReserveVector, bar_list_bytes: bytes) -> VerificationResult:
    """
    Compare a vector's expectations with a fresh recomputation.

    Errors building the commitment itself propagate; individual mismatches
    are reported as failed checks.
    """
    commitment: ReserveCommitment = build_commitment(bar_list_bytes)
    expected = vector.expected
    result = VerificationResult.success()

    result.compare_hash(
        "bar_list_hash", expected.bar_list_hash, to_hex(commitment.bar_list_hash), "bar_list_hash",
        ChallengeRef(kind="bar_list_hash"),
    )
    result.compare_hash(
        "merkle_root", expected.merkle_root, to_hex(commitment.merkle_root), "merkle_root",
        ChallengeRef(kind="merkle_root"),
    )

    reserve_list = commitment.reserve_list
    if vector.report_id is not None and vector.report_id != reserve_list.report_id:
        result.add_check(CheckResult.failed(
            "report_id",
            "report_id differs from the bar list",
            {"expected": vector.report_id, "actual": reserve_list.report_id},
        ))
    if vector.as_of_timestamp is not None and vector.as_of_timestamp != reserve_list.as_of_timestamp:
        result.add_check(CheckResult.failed(
            "as_of_timestamp",
            "as_of_timestamp differs from the bar list",
            {"expected": vector.as_of_timestamp, "actual": reserve_list.as_of_timestamp},
        ))

    leaf_by_serial = {u.serial_no: h for u, h in zip(commitment.sorted_units, commitment.leaf_hashes)}

    for serial, expected_leaf in (expected.leaf_hashes or {}).items():
        check_id = f"leaf_hash:{serial}"
        actual = leaf_by_serial.get(serial)
        if actual is None:
            result.add_check(CheckResult.failed(check_id, f"leaf missing for serial_no={serial}"))
            continue
        result.compare_hash(
            check_id, expected_leaf, to_hex(actual), f"leaf_hash for {serial}",
            ChallengeRef(kind="leaf", serial_no=serial),
        )

    for serial, proof in (expected.proofs or {}).items():
        check_id = f"proof:{serial}"
        leaf = leaf_by_serial.get(serial)
        if leaf is None:
            result.add_check(CheckResult.failed(check_id, f"proof leaf missing for serial_no={serial}"))
            continue
        try:
            ok = verify_proof(leaf, proof.get("siblings"), proof.get("positions"), expected.merkle_root)
        except PorException as e:
            result.add_check(CheckResult.failed(check_id, f"malformed proof for {serial}: {e.message}", e.details))
            continue
        if ok:
            result.add_check(CheckResult.passed(check_id, f"proof verifies for {serial}"))
        else:
            result.add_check(CheckResult.failed(check_id, f"proof verify FAIL for {serial}"))
            result.dispute("leaf", serial_no=serial)

    logger.info("Vector check: %d passed, %d failed", result.passed_count, result.error_count)
    return result


def resolve_bar_list_path(vector: ReserveVector, vector_path: str | Path) -> Path:
    """Resolve bar_list_path against the vector directory, then the cwd."""
    candidate = Path(vector.bar_list_path)
    if candidate.is_absolute():
        return candidate
    beside_vector = Path(vector_path).resolve().parent / candidate
    if beside_vector.exists():
        return beside_vector
    return Path.cwd() / candidate


def check_vector_file(vector_path: str | Path) -> VerificationResult:
    """
    Load a vector file, read its bar list verbatim and check it.

    Raises:
        FormatError: If either file is missing or not valid JSON.
    """
    vector_path = Path(vector_path)
    try:
        document = json.loads(vector_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise FormatError(f"Vector file not found: {vector_path}") from None
    except json.JSONDecodeError as e:
        raise FormatError(f"Vector file is not valid JSON: {e.msg}") from e

    vector = ReserveVector.from_json_dict(document)
    bar_list_path = resolve_bar_list_path(vector, vector_path)
    if not bar_list_path.exists():
        raise FormatError(f"Bar list not found: {bar_list_path}", field_path="bar_list_path")
    return check_vector(vector, bar_list_path.read_bytes())


__all__ = [
    "VectorExpectations",
    "ReserveVector",
    "check_vector",
    "resolve_bar_list_path",
    "check_vector_file",
]
