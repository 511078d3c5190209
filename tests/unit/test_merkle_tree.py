"""
Merkle Tree Unit Tests
Tests for core/merkle/merkle_tree.py

Tests:
1. Root determinism - same leaves → same root across runs
2. Padding correctness - odd leaf count uses "duplicate last" rule
3. Proof generation - every index yields a valid proof
4. Tamper detection - tampered sibling/leaf/root fails verification
5. Empty leaves - build_merkle_root([]) returns the zero hash
6. Single leaf - root equals leaf
"""
import pytest

from core.crypto.hashing import NODE_PREFIX, ZERO_HASH, keccak256
from core.merkle.merkle_tree import (
    MerkleProof,
    merkle_parent,
    build_merkle_root,
    build_merkle_proof,
    compute_tree_depth,
)
from core.merkle.merkle_proofs import MerkleProver, MerkleVerifier, verify_merkle_proof
from core.schemas.errors import FormatError


def _leaves(count: int) -> list[bytes]:
    return [keccak256(f"leaf{i}".encode()) for i in range(count)]


class TestEmptyTree:
    """Tests for empty tree behavior."""

    def test_empty_leaves_returns_zero_hash(self):
        """build_merkle_root([]) returns 32 zero bytes."""
        assert build_merkle_root([]) == ZERO_HASH
        assert ZERO_HASH == b"\x00" * 32

    def test_build_proof_empty_raises(self):
        """Cannot generate proof for empty tree."""
        with pytest.raises(ValueError, match="empty"):
            build_merkle_proof([], 0)


class TestSingleLeaf:
    """Tests for single leaf tree behavior."""

    def test_single_leaf_root_equals_leaf(self):
        leaf = keccak256(b"single leaf")
        assert build_merkle_root([leaf]) == leaf

    def test_single_leaf_proof_no_siblings(self):
        leaf = keccak256(b"single leaf")
        proof = build_merkle_proof([leaf], 0)

        assert proof.siblings == []
        assert proof.positions == []
        assert proof.root == leaf

    def test_single_leaf_proof_verifies(self):
        proof = build_merkle_proof([keccak256(b"single leaf")], 0)
        assert verify_merkle_proof(proof)


class TestRootDeterminism:
    """Same input, same root."""

    def test_same_leaves_same_root(self):
        assert build_merkle_root(_leaves(5)) == build_merkle_root(_leaves(5))

    def test_different_leaves_different_roots(self):
        assert build_merkle_root(_leaves(4)) != build_merkle_root(_leaves(4)[:3] + [keccak256(b"x")])

    def test_leaf_order_matters(self):
        leaves = _leaves(2)
        assert build_merkle_root(leaves) != build_merkle_root(list(reversed(leaves)))

    def test_input_list_not_mutated(self):
        leaves = _leaves(3)
        snapshot = list(leaves)
        build_merkle_root(leaves)
        build_merkle_proof(leaves, 2)
        assert leaves == snapshot


class TestPaddingCorrectness:
    """The last node is duplicated on odd levels."""

    def test_padding_rule_three_leaves(self):
        a, b, c = _leaves(3)
        expected = merkle_parent(merkle_parent(a, b), merkle_parent(c, c))
        assert build_merkle_root([a, b, c]) == expected

    def test_padding_rule_five_leaves(self):
        a, b, c, d, e = _leaves(5)
        level1 = [merkle_parent(a, b), merkle_parent(c, d), merkle_parent(e, e)]
        level2 = [merkle_parent(level1[0], level1[1]), merkle_parent(level1[2], level1[2])]
        assert build_merkle_root([a, b, c, d, e]) == merkle_parent(level2[0], level2[1])

    def test_even_leaves_no_padding_needed(self):
        a, b, c, d = _leaves(4)
        expected = merkle_parent(merkle_parent(a, b), merkle_parent(c, d))
        assert build_merkle_root([a, b, c, d]) == expected

    def test_padded_last_leaf_proof_uses_itself(self):
        """The duplicated leaf is its own sibling at the bottom level."""
        leaves = _leaves(3)
        proof = build_merkle_proof(leaves, 2)
        assert proof.siblings[0] == leaves[2]
        assert proof.positions[0] == "right"


class TestProofGeneration:
    """Proofs for every index verify against the tree root."""

    @pytest.mark.parametrize("count", [1, 2, 3, 4, 5, 7, 8, 9])
    def test_proof_verifies_for_each_index(self, count):
        leaves = _leaves(count)
        root = build_merkle_root(leaves)
        for i in range(count):
            proof = build_merkle_proof(leaves, i)
            assert proof.root == root
            assert proof.leaf == leaves[i]
            assert verify_merkle_proof(proof), f"proof for index {i} of {count} failed"

    def test_proof_length_is_depth_minus_one(self):
        leaves = _leaves(5)
        proof = build_merkle_proof(leaves, 0)
        assert len(proof.siblings) == compute_tree_depth(5) - 1

    def test_positions_follow_index_bits(self):
        proof = build_merkle_proof(_leaves(4), 1)
        assert proof.positions == ["left", "right"]

    def test_proof_index_out_of_range_raises(self):
        with pytest.raises(IndexError):
            build_merkle_proof(_leaves(3), 3)
        with pytest.raises(IndexError):
            build_merkle_proof(_leaves(3), -1)

    def test_short_leaf_rejected(self):
        with pytest.raises(FormatError):
            build_merkle_root([b"\x01" * 31, b"\x02" * 32])

    def test_to_dict_is_hex(self):
        proof = build_merkle_proof(_leaves(2), 0)
        data = proof.to_dict()
        assert data["index"] == 0
        assert data["leaf_hash"] == "0x" + proof.leaf.hex()
        assert data["siblings"] == ["0x" + proof.siblings[0].hex()]
        assert data["positions"] == ["right"]


class TestTamperDetection:
    """Any modified component fails verification."""

    def test_tampered_sibling_fails(self):
        proof = build_merkle_proof(_leaves(4), 1)
        bad = bytearray(proof.siblings[0])
        bad[0] ^= 0x01
        tampered = MerkleProof(
            leaf=proof.leaf,
            index=proof.index,
            siblings=[bytes(bad)] + proof.siblings[1:],
            positions=proof.positions,
            root=proof.root,
        )
        assert not verify_merkle_proof(tampered)

    def test_tampered_leaf_fails(self):
        proof = build_merkle_proof(_leaves(4), 1)
        tampered = MerkleProof(
            leaf=keccak256(b"other"),
            index=proof.index,
            siblings=proof.siblings,
            positions=proof.positions,
            root=proof.root,
        )
        assert not verify_merkle_proof(tampered)

    def test_tampered_root_fails(self):
        proof = build_merkle_proof(_leaves(4), 1)
        tampered = MerkleProof(
            leaf=proof.leaf,
            index=proof.index,
            siblings=proof.siblings,
            positions=proof.positions,
            root=keccak256(b"other root"),
        )
        assert not verify_merkle_proof(tampered)

    def test_flipped_position_fails(self):
        proof = build_merkle_proof(_leaves(4), 1)
        flipped = ["right" if p == "left" else "left" for p in proof.positions]
        tampered = MerkleProof(
            leaf=proof.leaf,
            index=proof.index,
            siblings=proof.siblings,
            positions=flipped,
            root=proof.root,
        )
        assert not verify_merkle_proof(tampered)

    def test_mismatched_lengths_rejected_on_construction(self):
        proof = build_merkle_proof(_leaves(4), 1)
        with pytest.raises(ValueError):
            MerkleProof(
                leaf=proof.leaf,
                index=proof.index,
                siblings=proof.siblings[:1],
                positions=proof.positions,
                root=proof.root,
            )


class TestMerkleParent:
    def test_merkle_parent_order_matters(self):
        a, b = _leaves(2)
        assert merkle_parent(a, b) != merkle_parent(b, a)

    def test_merkle_parent_is_prefixed_keccak(self):
        a, b = _leaves(2)
        assert merkle_parent(a, b) == keccak256(NODE_PREFIX + a + b)


class TestComputeTreeDepth:
    @pytest.mark.parametrize(
        "count,depth",
        [(0, 0), (1, 1), (2, 2), (3, 3), (4, 3), (5, 4), (8, 4), (9, 5)],
    )
    def test_depth(self, count, depth):
        assert compute_tree_depth(count) == depth


class TestConvenienceClasses:
    def test_prover_compute_root(self):
        leaves = _leaves(3)
        assert MerkleProver.compute_root(leaves) == build_merkle_root(leaves)

    def test_prover_and_verifier(self):
        proof = MerkleProver.prove(_leaves(6), 4)
        assert MerkleVerifier.verify(proof)

    def test_verifier_verify_leaf_in_root(self):
        leaves = _leaves(3)
        proof = build_merkle_proof(leaves, 0)
        assert MerkleVerifier.verify_leaf_in_root(proof.leaf, proof.siblings, proof.positions, proof.root)


@pytest.mark.slow
class TestLargeTree:
    def test_large_tree_all_proofs_valid(self):
        leaves = _leaves(257)
        root = build_merkle_root(leaves)
        for i in range(0, 257, 16):
            proof = build_merkle_proof(leaves, i)
            assert proof.root == root
            assert verify_merkle_proof(proof)


class TestMerkleProofDataclass:
    def test_merkle_proof_immutable(self):
        proof = build_merkle_proof(_leaves(2), 0)
        with pytest.raises(AttributeError):
            proof.index = 1

    def test_negative_index_rejected(self):
        with pytest.raises(ValueError):
            MerkleProof(leaf=ZERO_HASH, index=-1, siblings=[], positions=[], root=ZERO_HASH)
