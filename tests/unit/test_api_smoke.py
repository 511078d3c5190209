"""
API Smoke Tests

Tests for the FastAPI endpoints:
1. GET /health returns ok
2. POST /por/build returns the PorOutput for the raw body
3. POST /por/prove returns a verifiable proof
4. POST /verify/attestation recovers the signer, rejects tampering
5. POST /verify/proof accepts a leaf hash or a leaf object
6. Core errors map to structured error bodies
"""

import pytest
from fastapi.testclient import TestClient

from api.app import app
from core.config import RuntimeConfig, set_default_config
from core.crypto.hashing import keccak256, to_hex
from core.merkle import verify_proof

from fixtures import AS_OF, OTHER_ADDRESS, SIGNER_ADDRESS, make_reserve_list, make_unit, reserve_list_bytes


# Create test client
client = TestClient(app)


@pytest.fixture(autouse=True)
def default_config():
    """Pin the process-wide config so the shell environment cannot leak in."""
    set_default_config(RuntimeConfig())
    yield
    set_default_config(None)


class TestHealth:
    def test_health(self):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.json()["service"] == "grush-por-api"

    def test_root(self):
        assert client.get("/").json()["ok"] is True


class TestBuild:
    """POST /por/build"""

    def test_build(self, reserve_list_data, commitment):
        response = client.post("/por/build", content=reserve_list_data)

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["output"]["merkle_root"] == to_hex(commitment.merkle_root)
        assert data["output"]["bar_list_hash"] == to_hex(keccak256(reserve_list_data))
        assert data["output"]["attested_fine_gold_grams"] == 3003
        assert data["warnings"] == []

    @pytest.mark.filterwarnings("ignore::UserWarning")
    def test_totals_mismatch_is_a_warning(self):
        document = make_reserve_list()
        document["totals"]["bars_count"] = 99
        response = client.post("/por/build", content=reserve_list_bytes(document))

        assert response.status_code == 200
        assert len(response.json()["warnings"]) == 1

    def test_strict_totals_rejects(self):
        document = make_reserve_list()
        document["totals"]["bars_count"] = 99
        response = client.post("/por/build?strict_totals=true", content=reserve_list_bytes(document))

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "TOTALS_MISMATCH"

    @pytest.mark.filterwarnings("ignore::UserWarning")
    def test_strict_totals_default_from_config(self):
        set_default_config(RuntimeConfig.from_dict({"por": {"strict_totals": True}}))
        document = make_reserve_list()
        document["totals"]["fine_gold_grams"] = 1

        assert client.post("/por/build", content=reserve_list_bytes(document)).status_code == 422
        response = client.post("/por/build?strict_totals=false", content=reserve_list_bytes(document))
        assert response.status_code == 200

    def test_empty_body(self):
        response = client.post("/por/build", content=b"")
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_invalid_json(self):
        response = client.post("/por/build", content=b"{not json")
        assert response.status_code == 400
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "FORMAT_ERROR"

    def test_duplicate_serial(self):
        bars = [make_unit(serial_no="X", vault_id="A"), make_unit(serial_no="X", vault_id="B")]
        response = client.post("/por/build", content=reserve_list_bytes(make_reserve_list(bars=bars)))
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "DUPLICATE_SERIAL"


class TestProve:
    """POST /por/prove"""

    def test_prove(self, reserve_list_data, commitment):
        response = client.post("/por/prove?serial_no=SN-002", content=reserve_list_data)

        assert response.status_code == 200
        proof = response.json()["proof"]
        assert proof["serial_no"] == "SN-002"
        assert proof["index"] == 2
        assert verify_proof(proof["leaf_hash"], proof["siblings"], proof["positions"], commitment.merkle_root)

    def test_unknown_serial(self, reserve_list_data):
        response = client.post("/por/prove?serial_no=NOPE", content=reserve_list_data)
        assert response.status_code == 422

    def test_serial_required(self, reserve_list_data):
        response = client.post("/por/prove", content=reserve_list_data)
        assert response.status_code == 422


class TestVerifyAttestation:
    """POST /verify/attestation"""

    def test_valid(self, attestation_json):
        response = client.post("/verify/attestation", json={"attestation": attestation_json})

        assert response.status_code == 200
        data = response.json()
        assert data["ok"] is True
        assert data["recovered_signer"] == SIGNER_ADDRESS
        assert data["report_id_bytes32"] == to_hex(keccak256(b"GRUSH-2023-11-14"))
        assert [c["check_id"] for c in data["checks"]][-1] == "signer"

    def test_tampered(self, attestation_json):
        attestation_json["attested_fine_gold_grams"] += 1
        response = client.post("/verify/attestation", json={"attestation": attestation_json})

        assert response.status_code == 422
        body = response.json()
        assert body["ok"] is False
        assert body["error"]["code"] == "SIGNATURE_MISMATCH"

    def test_expected_signer_mismatch(self, attestation_json):
        response = client.post(
            "/verify/attestation",
            json={"attestation": attestation_json, "expected_signer": OTHER_ADDRESS},
        )
        assert response.status_code == 422

    def test_malformed_signature(self, attestation_json):
        attestation_json["signature"] = "0x1234"
        response = client.post("/verify/attestation", json={"attestation": attestation_json})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "FORMAT_ERROR"


class TestVerifyProof:
    """POST /verify/proof"""

    def _proof(self, commitment, serial_no="SN-001"):
        return commitment.proof_document(serial_no).to_json_dict()

    def test_leaf_hash(self, commitment):
        proof = self._proof(commitment)
        response = client.post("/verify/proof", json={
            "leaf_hash": proof["leaf_hash"],
            "siblings": proof["siblings"],
            "positions": proof["positions"],
            "merkle_root": proof["merkle_root"],
        })

        assert response.status_code == 200
        assert response.json()["ok"] is True

    def test_leaf_object(self, commitment):
        proof = self._proof(commitment)
        leaf = {**make_unit(serial_no="SN-001", fine_weight_g=1001), "as_of_timestamp": AS_OF}
        response = client.post("/verify/proof", json={
            "leaf": leaf,
            "siblings": proof["siblings"],
            "positions": [p == "left" for p in proof["positions"]],
            "merkle_root": proof["merkle_root"],
        })

        assert response.status_code == 200
        assert response.json()["ok"] is True
        assert response.json()["leaf_hash"] == proof["leaf_hash"]

    def test_wrong_root_is_not_an_error(self, commitment):
        proof = self._proof(commitment)
        response = client.post("/verify/proof", json={
            "leaf_hash": proof["leaf_hash"],
            "siblings": proof["siblings"],
            "positions": proof["positions"],
            "merkle_root": "0x" + "00" * 32,
        })

        assert response.status_code == 200
        assert response.json()["ok"] is False

    def test_both_leaf_forms_rejected(self, commitment):
        proof = self._proof(commitment)
        response = client.post("/verify/proof", json={
            "leaf_hash": proof["leaf_hash"],
            "leaf": {"serial_no": "SN-001"},
            "merkle_root": proof["merkle_root"],
        })
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_REQUEST"

    def test_leaf_without_timestamp(self, commitment):
        response = client.post("/verify/proof", json={
            "leaf": make_unit(),
            "merkle_root": self._proof(commitment)["merkle_root"],
        })
        assert response.status_code == 400
        assert response.json()["error"]["code"] == "FORMAT_ERROR"

    def test_length_mismatch(self, commitment):
        proof = self._proof(commitment)
        response = client.post("/verify/proof", json={
            "leaf_hash": proof["leaf_hash"],
            "siblings": proof["siblings"],
            "positions": proof["positions"][:1],
            "merkle_root": proof["merkle_root"],
        })
        assert response.status_code == 400
