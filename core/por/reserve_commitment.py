"""
Reserve Commitment

Pure functions that turn a reserve list file into its commitment:
Merkle root over canonically sorted leaves, aggregate fine gold grams and
the keccak256 hash of the exact file bytes.

The file bytes are hashed verbatim; the parsed document is never
re-serialized for the bar list hash.
"""

from __future__ import annotations

import json
import logging
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

from core.crypto.hashing import hash_file_bytes, hash_leaf, to_hex
from core.merkle.merkle_tree import MerkleProof, build_merkle_proof, build_merkle_root
from core.schemas.errors import ErrorCodes, FormatError, IntegrityWarning, ValidationError
from core.schemas.proof import ProofDocument
from core.schemas.reserves import PorOutput, ReserveList, ReserveUnit
from core.schemas.versioning import SCHEMA_VERSION

logger = logging.getLogger(__name__)


# =============================================================================
# Parsing & Ordering
# =============================================================================

def parse_reserve_list(data: bytes) -> ReserveList:
    """
    Decode and validate reserve list file bytes.

    Raises:
        FormatError: If the bytes are not UTF-8 JSON.
        ValidationError: If the document fails schema validation.
    """
    try:
        document = json.loads(data.decode("utf-8"))
    except UnicodeDecodeError as e:
        raise FormatError(f"Reserve list is not valid UTF-8: {e.reason}") from e
    except json.JSONDecodeError as e:
        raise FormatError(f"Reserve list is not valid JSON: {e.msg} (line {e.lineno})") from e
    return ReserveList.from_json_dict(document)


def canonical_sort_units(units: Iterable[ReserveUnit]) -> list[ReserveUnit]:
    """Sort by (serial_no, refiner, vault_id), ascending by code point."""
    return sorted(units, key=lambda u: u.sort_key)


def check_unique_serials(units: Sequence[ReserveUnit]) -> None:
    """
    Raises:
        ValidationError: With code DUPLICATE_SERIAL on the first repeat.
    """
    seen: set[str] = set()
    for i, unit in enumerate(units):
        if unit.serial_no in seen:
            raise ValidationError(
                f"Duplicate serial_no in bars[]: {unit.serial_no}",
                field_path=f"bars[{i}].serial_no",
                value=unit.serial_no,
                code=ErrorCodes.DUPLICATE_SERIAL,
            )
        seen.add(unit.serial_no)


def compute_leaf_hashes(units: Sequence[ReserveUnit], as_of_timestamp: int) -> list[bytes]:
    """Leaf hashes in the given order (callers sort first)."""
    return [hash_leaf(unit, as_of_timestamp) for unit in units]


def sum_fine_gold_grams(units: Iterable[ReserveUnit]) -> int:
    return sum(unit.fine_weight_g for unit in units)


def check_totals(
    reserve_list: ReserveList,
    computed_grams: int,
    bars_count: int,
    *,
    strict: bool = False,
) -> list[str]:
    """
    Cross-check advisory totals against the recomputed figures.

    Mismatches are logged and emitted as IntegrityWarning. In strict mode
    the first mismatch raises instead.

    Returns:
        Human-readable mismatch messages (empty when consistent)

    Raises:
        ValidationError: With code TOTALS_MISMATCH, only when strict=True.
    """
    totals = reserve_list.totals
    if totals is None:
        return []

    mismatches: list[str] = []
    if totals.fine_gold_grams is not None and totals.fine_gold_grams != computed_grams:
        mismatches.append(
            f"totals.fine_gold_grams ({totals.fine_gold_grams}) != sum(bars[].fine_weight_g) ({computed_grams})"
        )
    if totals.bars_count is not None and totals.bars_count != bars_count:
        mismatches.append(f"totals.bars_count ({totals.bars_count}) != len(bars) ({bars_count})")

    if mismatches and strict:
        raise ValidationError(
            mismatches[0],
            field_path="totals",
            details={"mismatches": mismatches},
            code=ErrorCodes.TOTALS_MISMATCH,
        )

    for message in mismatches:
        logger.warning("Reserve list %s: %s", reserve_list.report_id, message)
        warnings.warn(message, IntegrityWarning, stacklevel=3)
    return mismatches


# =============================================================================
# Commitment
# =============================================================================

@dataclass(frozen=True)
class ReserveCommitment:
    """Everything derived from one reserve list file."""
    reserve_list: ReserveList
    sorted_units: tuple[ReserveUnit, ...]
    leaf_hashes: tuple[bytes, ...]
    merkle_root: bytes
    bar_list_hash: bytes
    attested_fine_gold_grams: int
    totals_mismatches: tuple[str, ...] = ()

    @property
    def bars_count(self) -> int:
        return len(self.sorted_units)

    def to_por_output(self) -> PorOutput:
        return PorOutput(
            schema_version=SCHEMA_VERSION,
            report_id=self.reserve_list.report_id,
            as_of_timestamp=self.reserve_list.as_of_timestamp,
            bars_count=self.bars_count,
            attested_fine_gold_grams=self.attested_fine_gold_grams,
            bar_list_hash=to_hex(self.bar_list_hash),
            merkle_root=to_hex(self.merkle_root),
        )

    def index_of(self, serial_no: str) -> int:
        """
        Position of a serial in the canonical order.

        Raises:
            ValidationError: If the serial is not in the list.
        """
        for i, unit in enumerate(self.sorted_units):
            if unit.serial_no == serial_no:
                return i
        raise ValidationError(
            f"serial_no not found in reserve list: {serial_no}",
            field_path="serial_no",
            value=serial_no,
        )

    def leaf_hash_for(self, serial_no: str) -> bytes:
        return self.leaf_hashes[self.index_of(serial_no)]

    def prove(self, serial_no: str) -> MerkleProof:
        return build_merkle_proof(list(self.leaf_hashes), self.index_of(serial_no))

    def proof_document(self, serial_no: str) -> ProofDocument:
        """Proof for one serial, in the JSON document shape."""
        proof = self.prove(serial_no)
        return ProofDocument(serial_no=serial_no, **proof.to_dict())


def build_commitment(data: bytes, *, strict_totals: bool = False) -> ReserveCommitment:
    """
    Build the full commitment from reserve list file bytes.

    Args:
        data: Exact bytes of the reserve list file
        strict_totals: Raise on advisory totals mismatch instead of warning

    Raises:
        FormatError: Malformed file
        ValidationError: Schema violation, duplicate serial, or strict totals mismatch
        EncodingError: A unit cannot be canonically encoded
    """
    reserve_list = parse_reserve_list(data)
    check_unique_serials(reserve_list.bars)

    units = canonical_sort_units(reserve_list.bars)
    leaves = compute_leaf_hashes(units, reserve_list.as_of_timestamp)
    grams = sum_fine_gold_grams(units)
    mismatches = check_totals(reserve_list, grams, len(units), strict=strict_totals)

    commitment = ReserveCommitment(
        reserve_list=reserve_list,
        sorted_units=tuple(units),
        leaf_hashes=tuple(leaves),
        merkle_root=build_merkle_root(leaves),
        bar_list_hash=hash_file_bytes(data),
        attested_fine_gold_grams=grams,
        totals_mismatches=tuple(mismatches),
    )
    logger.info(
        "Built commitment for %s: %d bars, %d g, root %s",
        reserve_list.report_id,
        commitment.bars_count,
        grams,
        to_hex(commitment.merkle_root),
    )
    return commitment


def build_commitment_from_file(path: str | Path, *, strict_totals: bool = False) -> ReserveCommitment:
    """Read a reserve list file verbatim and build its commitment."""
    return build_commitment(Path(path).read_bytes(), strict_totals=strict_totals)


def compute_por_output(data: bytes, *, strict_totals: bool = False) -> PorOutput:
    """Shortcut: file bytes to PorOutput."""
    return build_commitment(data, strict_totals=strict_totals).to_por_output()


__all__ = [
    "ReserveCommitment",
    "parse_reserve_list",
    "canonical_sort_units",
    "check_unique_serials",
    "compute_leaf_hashes",
    "sum_fine_gold_grams",
    "check_totals",
    "build_commitment",
    "build_commitment_from_file",
    "compute_por_output",
]
