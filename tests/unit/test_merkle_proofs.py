"""
Merkle Proof Verification Tests
Tests for core/merkle/merkle_proofs.py
"""
import pytest

from core.crypto.hashing import hash_leaf, keccak256, to_hex
from core.merkle import build_merkle_proof, build_merkle_root
from core.merkle.merkle_proofs import (
    MerkleVerifier,
    normalize_positions,
    verify_leaf_document,
    verify_proof,
)
from core.schemas.errors import EncodingError, FormatError


AS_OF = 1700000000
UNITS = [
    {"serial_no": f"SN-{i}", "refiner": "ACME", "fineness": "999.9", "fine_weight_g": 1000 + i, "vault_id": "V1"}
    for i in range(3)
]


@pytest.fixture
def tree():
    leaves = [hash_leaf(u, AS_OF) for u in UNITS]
    return leaves, build_merkle_root(leaves)


class TestVerifyProof:
    """Tests for verify_proof()."""

    def test_every_index_verifies_from_hex(self, tree):
        leaves, root = tree
        for i in range(len(leaves)):
            proof = build_merkle_proof(leaves, i)
            assert verify_proof(
                to_hex(proof.leaf),
                [to_hex(s) for s in proof.siblings],
                proof.positions,
                to_hex(root),
            )

    def test_uppercase_hex_accepted(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 1)
        assert verify_proof(
            "0x" + proof.leaf.hex().upper(),
            ["0x" + s.hex().upper() for s in proof.siblings],
            proof.positions,
            "0x" + root.hex().upper(),
        )

    def test_empty_proof_only_for_leaf_equal_root(self):
        leaf = keccak256(b"only")
        assert verify_proof(leaf, [], [], leaf)
        assert not verify_proof(leaf, [], [], keccak256(b"other"))

    def test_none_siblings_treated_as_empty(self):
        leaf = keccak256(b"only")
        assert verify_proof(leaf, None, None, leaf)

    def test_flipped_root_byte_fails(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 0)
        bad_root = bytes([root[0] ^ 0xFF]) + root[1:]
        assert not verify_proof(proof.leaf, proof.siblings, proof.positions, bad_root)

    def test_boolean_positions(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 2)
        as_bools = [p == "left" for p in proof.positions]
        assert verify_proof(proof.leaf, proof.siblings, as_bools, root)

    def test_length_mismatch_raises(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 0)
        with pytest.raises(FormatError):
            verify_proof(proof.leaf, proof.siblings, proof.positions[:1], root)

    def test_malformed_sibling_raises(self, tree):
        leaves, root = tree
        with pytest.raises(FormatError):
            verify_proof(leaves[0], ["0x1234"], ["right"], root)

    def test_siblings_must_be_a_list(self, tree):
        leaves, root = tree
        with pytest.raises(FormatError):
            verify_proof(leaves[0], "0x" + "00" * 32, ["right"], root)

    def test_malformed_root_raises(self, tree):
        leaves, _ = tree
        with pytest.raises(FormatError):
            verify_proof(leaves[0], [], [], "not-hex")

    def test_verifier_wrapper(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 1)
        assert MerkleVerifier.verify_leaf_in_root(proof.leaf, proof.siblings, proof.positions, root)


class TestNormalizePositions:
    def test_strings_pass_through(self):
        assert normalize_positions(["left", "right"], 2) == ["left", "right"]

    def test_booleans_mean_left(self):
        assert normalize_positions([True, False], 2) == ["left", "right"]

    def test_unknown_entry_rejected(self):
        with pytest.raises(FormatError) as exc_info:
            normalize_positions(["left", "up"], 2)
        assert exc_info.value.details["field_path"] == "positions[1]"

    def test_mixed_bool_and_string_rejected(self):
        with pytest.raises(FormatError):
            normalize_positions([True, "left"], 2)

    def test_non_list_rejected(self):
        with pytest.raises(FormatError):
            normalize_positions("left", 1)


class TestVerifyLeafDocument:
    """Proofs for leaves given as JSON objects."""

    def test_leaf_document_verifies(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 1)
        leaf = {**UNITS[1], "as_of_timestamp": AS_OF}
        assert verify_leaf_document(leaf, proof.siblings, proof.positions, root)

    def test_extra_fields_ignored(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 1)
        leaf = {**UNITS[1], "as_of_timestamp": AS_OF, "bar_id": "B-2", "notes": "x"}
        assert verify_leaf_document(leaf, proof.siblings, proof.positions, root)

    def test_changed_weight_fails(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 1)
        leaf = {**UNITS[1], "as_of_timestamp": AS_OF, "fine_weight_g": 1}
        assert not verify_leaf_document(leaf, proof.siblings, proof.positions, root)

    def test_wrong_timestamp_fails(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 1)
        leaf = {**UNITS[1], "as_of_timestamp": AS_OF + 1}
        assert not verify_leaf_document(leaf, proof.siblings, proof.positions, root)

    def test_missing_timestamp_raises(self, tree):
        leaves, root = tree
        proof = build_merkle_proof(leaves, 1)
        with pytest.raises(EncodingError):
            verify_leaf_document(UNITS[1], proof.siblings, proof.positions, root)

    def test_non_mapping_rejected(self, tree):
        _, root = tree
        with pytest.raises(FormatError):
            verify_leaf_document(["not", "a", "dict"], [], [], root)
