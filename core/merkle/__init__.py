"""
Merkle Tree and Commitments
Deterministic Merkle tree construction + proof generation/verification.

Canonical Commitment Rules:
1. Leaf hashing: keccak256(0x00 || canonical_leaf_json_utf8)
2. Parent hashing: keccak256(0x01 || left || right)
3. Padding: Duplicate last node if odd number at any level
4. Empty tree: 32 zero bytes
5. Single leaf: root = leaf

Usage:
    from core.merkle import build_merkle_root, build_merkle_proof, verify_merkle_proof
    from core.crypto import hash_leaf

    leaves = [hash_leaf(unit, as_of_timestamp) for unit in sorted_units]
    root = build_merkle_root(leaves)
    proof = build_merkle_proof(leaves, index=2)
    assert verify_merkle_proof(proof)
"""
from .merkle_tree import (
    MerkleProof,
    Position,
    merkle_parent,
    build_merkle_root,
    build_merkle_proof,
    compute_tree_depth,
)

from .merkle_proofs import (
    MerkleProver,
    MerkleVerifier,
    normalize_positions,
    verify_leaf_document,
    verify_merkle_proof,
    verify_proof,
)


__all__ = [
    # Core types
    "MerkleProof",
    "Position",
    # Core functions
    "merkle_parent",
    "build_merkle_root",
    "build_merkle_proof",
    "compute_tree_depth",
    "normalize_positions",
    "verify_proof",
    "verify_merkle_proof",
    "verify_leaf_document",
    # Convenience classes
    "MerkleProver",
    "MerkleVerifier",
]
