"""
CLI Unit Tests
Tests for por_cli/main.py and the command modules.

Commands are driven through main(argv) with files under tmp_path; exit
codes are 0 (success), 1 (error) and 2 (verification failed).
"""
import json

import pytest

from core.crypto.hashing import keccak256, to_hex
from core.crypto.signatures import load_signing_key
from core.registry import InMemoryReserveRegistry
from por_cli.commands import attest
from por_cli.main import EXIT_RUNTIME_ERROR, EXIT_SUCCESS, EXIT_VERIFICATION_FAILED, create_parser, main

from fixtures import (
    AS_OF,
    CHAIN_ID,
    OTHER_ADDRESS,
    OTHER_KEY,
    REGISTRY_ADDRESS,
    SIGNER_ADDRESS,
    SIGNER_KEY,
    make_reserve_list,
    reserve_list_bytes,
)


CSV_EXPORT = """Serial Number,Brand,Fine g,Vault,Purity
SN-2,ACME,"1,000",IST-01,9999
SN-1,Valcambi,995,IST-02,999.9
"""


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    """Run every command from an empty directory with no config files around."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HOME", str(tmp_path))
    return tmp_path


def run(capsys, *argv):
    code = main(list(argv))
    captured = capsys.readouterr()
    return code, captured.out, captured.err


class TestParser:
    def test_no_command_prints_help(self, capsys):
        assert main([]) == EXIT_RUNTIME_ERROR
        assert "grush-por" in capsys.readouterr().out

    def test_verify_proof_leaf_forms_exclusive(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["verify-proof", "--proof", "p.json", "--leaf", "l.json", "--leaf-hash", "0x00"])


class TestBuildAndProve:
    """build, prove and verify-proof."""

    def test_build_stdout(self, capsys, reserve_list_file, reserve_list_data, commitment):
        code, out, _ = run(capsys, "build", str(reserve_list_file))

        assert code == EXIT_SUCCESS
        output = json.loads(out)
        assert output["merkle_root"] == to_hex(commitment.merkle_root)
        assert output["bar_list_hash"] == to_hex(keccak256(reserve_list_data))
        assert output["attested_fine_gold_grams"] == 3003

    def test_build_out_file(self, capsys, workdir, reserve_list_file):
        out_path = workdir / "out" / "por_output.json"
        code, out, _ = run(capsys, "build", str(reserve_list_file), "--out", str(out_path))

        assert code == EXIT_SUCCESS
        assert out == ""
        assert json.loads(out_path.read_text())["report_id"] == "GRUSH-2023-11-14"

    @pytest.mark.filterwarnings("ignore::UserWarning")
    def test_totals_mismatch_warns_on_stderr(self, capsys, workdir):
        document = make_reserve_list()
        document["totals"]["fine_gold_grams"] = 1
        path = workdir / "reserves.json"
        path.write_bytes(reserve_list_bytes(document))

        code, _, err = run(capsys, "build", str(path))
        assert code == EXIT_SUCCESS
        assert "warning: totals.fine_gold_grams" in err

    def test_strict_totals_fails(self, capsys, workdir):
        document = make_reserve_list()
        document["totals"]["bars_count"] = 7
        path = workdir / "reserves.json"
        path.write_bytes(reserve_list_bytes(document))

        code, _, err = run(capsys, "build", str(path), "--strict-totals")
        assert code == EXIT_RUNTIME_ERROR
        assert "TOTALS_MISMATCH" in err

    def test_missing_file(self, capsys, workdir):
        code, _, err = run(capsys, "build", str(workdir / "nope.json"))
        assert code == EXIT_RUNTIME_ERROR
        assert "Error" in err

    def test_prove_and_verify(self, capsys, workdir, reserve_list_file):
        proof_path = workdir / "proof.json"
        assert run(capsys, "prove", str(reserve_list_file), "SN-001", "--out", str(proof_path))[0] == EXIT_SUCCESS

        code, out, _ = run(capsys, "verify-proof", "--proof", str(proof_path))
        assert code == EXIT_SUCCESS
        assert "proof: OK" in out

    def test_verify_proof_with_leaf_object(self, capsys, workdir, reserve_list_file):
        proof_path = workdir / "proof.json"
        run(capsys, "prove", str(reserve_list_file), "SN-000", "--out", str(proof_path))
        leaf_path = workdir / "leaf.json"
        leaf_path.write_text(json.dumps({
            "serial_no": "SN-000",
            "refiner": "ACME",
            "fineness": "999.9",
            "fine_weight_g": 1000,
            "vault_id": "IST-VAULT-01",
            "as_of_timestamp": AS_OF,
        }))

        code, out, _ = run(capsys, "verify-proof", "--proof", str(proof_path), "--leaf", str(leaf_path), "--json")
        assert code == EXIT_SUCCESS
        assert json.loads(out)["ok"] is True

    def test_verify_proof_wrong_root(self, capsys, workdir, reserve_list_file):
        proof_path = workdir / "proof.json"
        run(capsys, "prove", str(reserve_list_file), "SN-001", "--out", str(proof_path))

        code, out, _ = run(capsys, "verify-proof", "--proof", str(proof_path), "--root", "0x" + "00" * 32)
        assert code == EXIT_VERIFICATION_FAILED
        assert "proof: FAIL" in out

    def test_prove_unknown_serial(self, capsys, reserve_list_file):
        assert run(capsys, "prove", str(reserve_list_file), "NOPE")[0] == EXIT_RUNTIME_ERROR


class TestFormat:
    def test_csv_to_reserve_list(self, capsys, workdir):
        path = workdir / "bars.csv"
        path.write_text(CSV_EXPORT, encoding="utf-8")

        code, out, _ = run(
            capsys, "format", str(path),
            "--custodian-name", "Istanbul Vault Co",
            "--custodian-location", "Istanbul, TR",
            "--report-id", "R-1",
            "--as-of", str(AS_OF),
        )

        assert code == EXIT_SUCCESS
        document = json.loads(out)
        assert document["report_id"] == "R-1"
        assert [b["serial_no"] for b in document["bars"]] == ["SN-1", "SN-2"]
        assert document["totals"] == {"fine_gold_grams": 1995, "bars_count": 2}

    def test_formatted_output_builds(self, capsys, workdir):
        path = workdir / "bars.csv"
        path.write_text(CSV_EXPORT, encoding="utf-8")
        out_path = workdir / "reserves.json"
        run(
            capsys, "format", str(path),
            "--custodian-name", "X", "--custodian-location", "Y",
            "--report-id", "R-1", "--as-of", str(AS_OF), "--out", str(out_path),
        )

        code, out, _ = run(capsys, "build", str(out_path))
        assert code == EXIT_SUCCESS
        assert json.loads(out)["attested_fine_gold_grams"] == 1995


class TestCheckVectors:
    def _write_vector(self, workdir, commitment, merkle_root=None):
        vector = {
            "bar_list_path": "bar_list.json",
            "expected": {
                "bar_list_hash": to_hex(commitment.bar_list_hash),
                "merkle_root": merkle_root or to_hex(commitment.merkle_root),
            },
        }
        path = workdir / "vector.json"
        path.write_text(json.dumps(vector), encoding="utf-8")
        return path

    def test_passing_vector(self, capsys, workdir, reserve_list_data, commitment):
        (workdir / "bar_list.json").write_bytes(reserve_list_data)
        path = self._write_vector(workdir, commitment)

        code, out, _ = run(capsys, "check-vectors", str(path), "--json")
        assert code == EXIT_SUCCESS
        report = json.loads(out)
        assert report["ok"] is True
        assert report["vectors"][0]["failed"] == 0

    def test_failing_vector(self, capsys, workdir, reserve_list_data, commitment):
        (workdir / "bar_list.json").write_bytes(reserve_list_data)
        path = self._write_vector(workdir, commitment, merkle_root="0x" + "11" * 32)

        code, out, _ = run(capsys, "check-vectors", str(path))
        assert code == EXIT_VERIFICATION_FAILED
        assert out.startswith("FAIL")


class TestSignAndVerify:
    """sign and verify."""

    @pytest.fixture
    def por_output_file(self, workdir, commitment):
        path = workdir / "por_output.json"
        path.write_text(json.dumps(commitment.to_por_output().to_json_dict()), encoding="utf-8")
        return path

    def _sign(self, capsys, workdir, por_output_file, monkeypatch):
        monkeypatch.setenv("ATTESTATION_SIGNER_PK", SIGNER_KEY)
        out_path = workdir / "attestation.json"
        code, _, _ = run(
            capsys, "sign", str(por_output_file),
            "--chain-id", str(CHAIN_ID),
            "--registry", REGISTRY_ADDRESS,
            "--out", str(out_path),
        )
        assert code == EXIT_SUCCESS
        return out_path

    def test_sign(self, capsys, workdir, por_output_file, monkeypatch, attestation_json):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)
        document = json.loads(path.read_text())

        assert document["signer_address"] == SIGNER_ADDRESS
        assert document == attestation_json
        assert SIGNER_KEY[2:] not in path.read_text()

    def test_sign_requires_key(self, capsys, por_output_file):
        code, _, err = run(
            capsys, "sign", str(por_output_file), "--chain-id", str(CHAIN_ID), "--registry", REGISTRY_ADDRESS
        )
        assert code == EXIT_RUNTIME_ERROR
        assert "ATTESTATION_SIGNER_PK" in err

    def test_sign_uses_config_chain(self, capsys, por_output_file, monkeypatch):
        monkeypatch.setenv("ATTESTATION_SIGNER_PK", SIGNER_KEY)
        monkeypatch.setenv("GRUSH_CHAIN_ID", str(CHAIN_ID))
        monkeypatch.setenv("GRUSH_REGISTRY_ADDRESS", REGISTRY_ADDRESS)

        code, out, _ = run(capsys, "sign", str(por_output_file))
        assert code == EXIT_SUCCESS
        assert json.loads(out)["chain_id"] == CHAIN_ID

    def test_sign_requires_chain(self, capsys, por_output_file, monkeypatch):
        monkeypatch.setenv("ATTESTATION_SIGNER_PK", SIGNER_KEY)
        assert run(capsys, "sign", str(por_output_file), "--registry", REGISTRY_ADDRESS)[0] == EXIT_RUNTIME_ERROR

    def test_verify(self, capsys, workdir, por_output_file, monkeypatch):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)

        code, out, _ = run(capsys, "verify", str(path))
        assert code == EXIT_SUCCESS
        assert "ok: true" in out
        assert f"recovered_signer: {SIGNER_ADDRESS}" in out

    def test_verify_json_debug(self, capsys, workdir, por_output_file, monkeypatch):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)

        code, out, _ = run(capsys, "verify", str(path), "--json", "--debug")
        summary = json.loads(out)
        assert code == EXIT_SUCCESS
        assert summary["ok"] is True
        assert [c["check_id"] for c in summary["checks"]] == ["structure", "domain", "recovery", "signer"]

    def test_verify_tampered(self, capsys, workdir, por_output_file, monkeypatch):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)
        document = json.loads(path.read_text())
        document["merkle_root"] = "0x" + "ab" * 32
        path.write_text(json.dumps(document))

        code, out, _ = run(capsys, "verify", str(path), "--json")
        summary = json.loads(out)
        assert code == EXIT_VERIFICATION_FAILED
        assert summary["ok"] is False
        assert summary["error_code"] == "SIGNATURE_MISMATCH"

    def test_verify_expected_signer(self, capsys, workdir, por_output_file, monkeypatch):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)
        code, _, _ = run(capsys, "verify", str(path), "--expected-signer", OTHER_ADDRESS)
        assert code == EXIT_VERIFICATION_FAILED

    def test_publish_requires_rpc_url(self, capsys, workdir, por_output_file, monkeypatch):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)
        code, _, err = run(capsys, "publish", str(path))
        assert code == EXIT_RUNTIME_ERROR
        assert "RPC URL" in err

    @pytest.fixture
    def fake_registry(self, monkeypatch):
        """Swap the JSON-RPC registry for an in-memory one that records how it was built."""
        built = []

        class RecordingRegistry(InMemoryReserveRegistry):
            def __init__(self, rpc_url, registry_address, *, publisher_address=None, publisher_key=None, timeout=30.0):
                super().__init__(chain_id=CHAIN_ID, address=registry_address, allowed_signers=[SIGNER_ADDRESS])
                self.rpc_url = rpc_url
                self.publisher_key = publisher_key
                self.publisher_address = (
                    load_signing_key(publisher_key).address if publisher_key else publisher_address
                )
                self.last_transaction_hash = "0x" + "ab" * 32
                self.closed = False
                built.append(self)

            def close(self):
                self.closed = True

        monkeypatch.setattr(attest, "JsonRpcReserveRegistry", RecordingRegistry)
        return built

    def test_publish_with_publisher_key(self, capsys, workdir, por_output_file, monkeypatch, fake_registry):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)
        monkeypatch.setenv("PUBLISHER_PK", OTHER_KEY)

        code, out, _ = run(capsys, "publish", str(path), "--rpc-url", "http://localhost:8545")
        receipt = json.loads(out)

        assert code == EXIT_SUCCESS
        assert receipt["publisher"] == OTHER_ADDRESS
        assert receipt["signer"] == SIGNER_ADDRESS
        assert receipt["tx_hash"] == "0x" + "ab" * 32
        assert OTHER_KEY[2:] not in out
        [registry] = fake_registry
        assert registry.publisher_key == OTHER_KEY
        assert registry.closed

    def test_publish_from_node_account(self, capsys, workdir, por_output_file, monkeypatch, fake_registry):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)
        code, out, _ = run(
            capsys, "publish", str(path), "--rpc-url", "http://localhost:8545", "--publisher", OTHER_ADDRESS
        )
        assert code == EXIT_SUCCESS
        assert json.loads(out)["publisher"] == OTHER_ADDRESS
        assert fake_registry[0].publisher_key is None

    def test_publish_requires_publisher(self, capsys, workdir, por_output_file, monkeypatch, fake_registry):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)
        code, _, err = run(capsys, "publish", str(path), "--rpc-url", "http://localhost:8545")
        assert code == EXIT_RUNTIME_ERROR
        assert "PUBLISHER_PK" in err
        assert fake_registry[0].get_report_ids(0, 10) == []

    def test_publish_dry_run(self, capsys, workdir, por_output_file, monkeypatch, fake_registry):
        path = self._sign(capsys, workdir, por_output_file, monkeypatch)
        code, out, _ = run(capsys, "publish", str(path), "--rpc-url", "http://localhost:8545", "--dry-run")
        report = json.loads(out)
        assert code == EXIT_SUCCESS
        assert report["ok"] is True
        assert fake_registry[0].get_report_ids(0, 10) == []


class TestConfigCommand:
    def test_init_then_show(self, capsys, workdir):
        code, out, _ = run(capsys, "config", "--init")
        assert code == EXIT_SUCCESS
        assert (workdir / "grush.json").exists()

        code, out, _ = run(capsys, "config", "--show")
        assert code == EXIT_SUCCESS
        assert json.loads(out)["log_level"] == "INFO"

    def test_init_refuses_overwrite(self, capsys, workdir):
        (workdir / "grush.json").write_text("{}")
        code, _, err = run(capsys, "config", "--init")
        assert code == EXIT_RUNTIME_ERROR
        assert "already exists" in err

    def test_config_file_feeds_commands(self, capsys, workdir):
        (workdir / "grush.json").write_text(json.dumps({"chain_id": 5}))
        code, out, _ = run(capsys, "config", "--show")
        assert json.loads(out)["chain_id"] == 5

    def test_broken_config_file(self, capsys, workdir):
        (workdir / "grush.json").write_text("{broken")
        code, _, err = run(capsys, "config", "--show")
        assert code == EXIT_RUNTIME_ERROR
        assert "Error loading configuration" in err
