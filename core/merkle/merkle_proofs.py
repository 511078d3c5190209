"""
Merkle Proofs
Proof verification plus class-based convenience wrappers.

positions[i] gives the side of siblings[i] relative to the running hash:
- "left"  => parent = H(sibling, running)
- "right" => parent = H(running, sibling)
The boolean form is accepted too (true = left).

Verification returns a boolean for well-formed proofs that simply do not
match. Malformed input (bad hex, wrong lengths, mismatched list lengths)
raises FormatError.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Sequence

from core.crypto.hashing import hash_leaf, require_bytes32
from core.merkle.merkle_tree import (
    MerkleProof,
    Position,
    build_merkle_proof,
    build_merkle_root,
    merkle_parent,
)
from core.schemas.errors import FormatError


def normalize_positions(positions: Any, count: int) -> list[Position]:
    """
    Normalize a positions list to "left"/"right" strings.

    Args:
        positions: list of "left"/"right" or list of booleans (true = left)
        count: Expected length (number of siblings)

    Raises:
        FormatError: On a non-list, a length mismatch or an unknown entry.
    """
    if positions is None:
        positions = []
    if not isinstance(positions, (list, tuple)):
        raise FormatError("positions must be an array", field_path="positions")
    if len(positions) != count:
        raise FormatError(
            f"positions length ({len(positions)}) must equal siblings length ({count})",
            field_path="positions",
        )

    if positions and all(isinstance(p, bool) for p in positions):
        return ["left" if p else "right" for p in positions]

    normalized: list[Position] = []
    for i, p in enumerate(positions):
        if p not in ("left", "right") or isinstance(p, bool):
            raise FormatError(
                f"positions[{i}] must be 'left' or 'right'",
                field_path=f"positions[{i}]",
                value=p,
            )
        normalized.append(p)
    return normalized


def verify_proof(
    leaf_hash: bytes | str,
    siblings: Sequence[bytes | str] | None,
    positions: Any,
    root: bytes | str,
) -> bool:
    """
    Fold a leaf hash up a sibling path and compare with a candidate root.

    Hex inputs are compared case-insensitively (they are decoded first).
    An empty sibling list is valid only when the leaf equals the root.

    Returns:
        True if the recomputed root matches, False otherwise

    Raises:
        FormatError: On malformed hashes or mismatched list lengths.
    """
    running = require_bytes32(leaf_hash, "leaf_hash")
    expected = require_bytes32(root, "root")

    if siblings is None:
        siblings = []
    if not isinstance(siblings, (list, tuple)):
        raise FormatError("siblings must be an array", field_path="siblings")

    sibling_bytes = [require_bytes32(s, f"siblings[{i}]") for i, s in enumerate(siblings)]
    sides = normalize_positions(positions, len(sibling_bytes))

    for sibling, side in zip(sibling_bytes, sides):
        if side == "left":
            running = merkle_parent(sibling, running)
        else:
            running = merkle_parent(running, sibling)

    return running == expected


def verify_merkle_proof(proof: MerkleProof) -> bool:
    """Verify a MerkleProof against its own claimed root."""
    return verify_proof(proof.leaf, proof.siblings, proof.positions, proof.root)


def verify_leaf_document(
    leaf: Mapping[str, Any],
    siblings: Sequence[bytes | str] | None,
    positions: Any,
    root: bytes | str,
) -> bool:
    """
    Verify a proof for a leaf given as its JSON object.

    The object must carry as_of_timestamp plus the five hashed unit
    fields; extra fields are ignored.

    Raises:
        EncodingError: If the leaf object cannot be canonically encoded.
        FormatError: On malformed proof components.
    """
    if not isinstance(leaf, Mapping):
        raise FormatError("leaf must be a JSON object", field_path="leaf")
    return verify_proof(hash_leaf(leaf, leaf.get("as_of_timestamp")), siblings, positions, root)


class MerkleProver:
    """
    Convenience class for generating Merkle proofs.

    Example:
        >>> proof = MerkleProver.prove(leaves, index=1)
        >>> proof.leaf == leaves[1]
        True
    """

    @staticmethod
    def prove(leaves: Sequence[bytes], index: int) -> MerkleProof:
        """
        Generate a Merkle proof for the leaf at the given index.

        Raises:
            IndexError: If index is out of range
            ValueError: If leaves is empty
        """
        return build_merkle_proof(leaves, index)

    @staticmethod
    def compute_root(leaves: Sequence[bytes]) -> bytes:
        return build_merkle_root(leaves)


class MerkleVerifier:
    """
    Convenience class for verifying Merkle proofs.

    Example:
        >>> proof = MerkleProver.prove(leaves, index=1)
        >>> MerkleVerifier.verify(proof)
        True
    """

    @staticmethod
    def verify(proof: MerkleProof) -> bool:
        return verify_merkle_proof(proof)

    @staticmethod
    def verify_leaf_in_root(
        leaf: bytes | str,
        siblings: Sequence[bytes | str],
        positions: Any,
        root: bytes | str,
    ) -> bool:
        """
        Verify a leaf hash is included in a Merkle root using raw components.

        Args:
            leaf: The leaf hash to verify
            siblings: Sibling hashes (bottom-up)
            positions: Sibling sides, strings or booleans
            root: The claimed Merkle root
        """
        return verify_proof(leaf, siblings, positions, root)

    @staticmethod
    def verify_leaf_document(
        leaf: Mapping[str, Any],
        siblings: Sequence[bytes | str],
        positions: Any,
        root: bytes | str,
    ) -> bool:
        """Verify a leaf JSON object; it is canonically hashed first."""
        return verify_leaf_document(leaf, siblings, positions, root)


__all__ = [
    "normalize_positions",
    "verify_proof",
    "verify_merkle_proof",
    "verify_leaf_document",
    "MerkleProver",
    "MerkleVerifier",
]
