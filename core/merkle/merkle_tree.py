"""
Merkle Tree Implementation
Deterministic Merkle tree construction and proof generation over reserve
leaf hashes.

This module provides:
- Deterministic Merkle root computation
- Merkle proof generation (siblings + positions) for any leaf index
- Standard padding rule for odd number of nodes

Canonical Commitment Rules (Hard Contracts):
1. Leaf hashing: leaf = keccak256(0x00 || canonical_leaf_json_utf8)
   - Implemented via core.crypto.hashing.hash_leaf()
2. Parent hashing: parent = keccak256(0x01 || left || right)
3. Padding rule: Duplicate last node if odd number at any level
4. Empty leaves: build_merkle_root([]) returns the all-zero 32-byte hash
5. Single leaf: root = leaf (the leaf hash itself)

Determinism Notes:
- No randomness or non-deterministic ordering
- This module never sorts leaves - callers apply the canonical bar order
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Sequence

from core.crypto.hashing import ZERO_HASH, hash_node, require_bytes32, to_hex


Position = Literal["left", "right"]


@dataclass(frozen=True)
class MerkleProof:
    """
    A Merkle proof for a single leaf in a Merkle tree.

    Attributes:
        leaf: The leaf hash being proven (32 bytes)
        index: The 0-based index of the leaf in the ordered leaf list
        siblings: Sibling hashes from bottom to top of tree
        positions: Side of each sibling relative to the running hash
        root: The Merkle root this proof is against
    """
    leaf: bytes
    index: int
    siblings: list[bytes]
    positions: list[Position]
    root: bytes

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError(f"Leaf index must be non-negative, got {self.index}")
        if len(self.siblings) != len(self.positions):
            raise ValueError("siblings and positions must have the same length")

    def to_dict(self) -> dict:
        """Hex form, suitable for a proof JSON document."""
        return {
            "index": self.index,
            "leaf_hash": to_hex(self.leaf),
            "merkle_root": to_hex(self.root),
            "siblings": [to_hex(s) for s in self.siblings],
            "positions": list(self.positions),
        }


def merkle_parent(left: bytes, right: bytes) -> bytes:
    """
    Compute the parent hash of two child nodes.

    Args:
        left: Left child hash (32 bytes)
        right: Right child hash (32 bytes)

    Returns:
        keccak256(0x01 || left || right)
    """
    return hash_node(left, right)


def _next_level(level: list[bytes]) -> list[bytes]:
    if len(level) % 2 == 1:
        level = level + [level[-1]]
    return [merkle_parent(level[i], level[i + 1]) for i in range(0, len(level), 2)]


def build_merkle_root(leaves: Sequence[bytes]) -> bytes:
    """
    Build a Merkle root from a sequence of leaf hashes.

    Algorithm:
    1. If empty: return the zero hash sentinel
    2. If single leaf: return the leaf itself
    3. Otherwise, iteratively build levels:
       - If odd number of nodes, duplicate the last node
       - Pair adjacent nodes and compute parent hashes
       - Repeat until single root remains

    Example: [a, b, c] -> [a, b, c, c] -> [parent(a,b), parent(c,c)]

    Args:
        leaves: Sequence of 32-byte leaf hashes. Order matters and is preserved.

    Returns:
        32-byte Merkle root

    Raises:
        FormatError: If any leaf is not exactly 32 bytes.
    """
    if len(leaves) == 0:
        return ZERO_HASH

    current_level = [require_bytes32(leaf, f"leaves[{i}]") for i, leaf in enumerate(leaves)]

    while len(current_level) > 1:
        current_level = _next_level(current_level)

    return current_level[0]


def build_merkle_proof(leaves: Sequence[bytes], index: int) -> MerkleProof:
    """
    Generate a Merkle proof for the leaf at the given index.

    At each level the sibling is ``index ^ 1`` after padding. An even
    running index means the sibling sits on the right.

    Args:
        leaves: Sequence of leaf hashes
        index: 0-based index of the leaf to prove

    Returns:
        MerkleProof with leaf, index, siblings, positions (bottom-up) and root

    Raises:
        IndexError: If index is out of range
        ValueError: If leaves is empty
    """
    if len(leaves) == 0:
        raise ValueError("Cannot generate proof for empty leaf list")

    if index < 0 or index >= len(leaves):
        raise IndexError(f"Leaf index {index} out of range for {len(leaves)} leaves")

    siblings: list[bytes] = []
    positions: list[Position] = []
    current_level = [require_bytes32(leaf, f"leaves[{i}]") for i, leaf in enumerate(leaves)]
    current_index = index

    while len(current_level) > 1:
        if len(current_level) % 2 == 1:
            current_level.append(current_level[-1])

        siblings.append(current_level[current_index ^ 1])
        positions.append("right" if current_index % 2 == 0 else "left")

        current_level = _next_level(current_level)
        current_index //= 2

    return MerkleProof(
        leaf=require_bytes32(leaves[index]),
        index=index,
        siblings=siblings,
        positions=positions,
        root=current_level[0],
    )


def compute_tree_depth(num_leaves: int) -> int:
    """
    Compute the depth of a Merkle tree with given number of leaves.

    Depth is the number of levels from leaves to root (inclusive).
    A single leaf has depth 1, two leaves have depth 2, etc.

    Returns:
        Tree depth (0 for empty tree)
    """
    if num_leaves == 0:
        return 0

    depth = 1
    n = num_leaves
    while n > 1:
        n = (n + 1) // 2
        depth += 1

    return depth


__all__ = [
    "Position",
    "MerkleProof",
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_tree_depth",
]
