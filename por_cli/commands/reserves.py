"""
CLI Reserve Commands

- build:          reserve list -> PorOutput
- prove:          reserve list + serial_no -> Proof document
- verify-proof:   check an inclusion proof against a root
- format:         CSV/TSV/JSON bar export -> reserve list
- check-vectors:  compare published test vectors with a recomputation

Usage:
    grush-por build reserves.json --out por_output.json
    grush-por prove reserves.json SERIAL-001 --out proof.json
    grush-por verify-proof --proof proof.json --leaf leaf.json --root 0x...
    grush-por format bars.csv --custodian-name "..." --custodian-location "..."
    grush-por check-vectors vectors/*.json
"""

from __future__ import annotations

import json
import logging
import sys
from argparse import Namespace
from typing import Any

from core.crypto import hash_leaf, require_bytes32, to_hex
from core.merkle import verify_proof
from core.por import (
    FormatOptions,
    build_commitment_from_file,
    check_vector_file,
    dumps_reserve_list,
    format_bar_list_file,
)
from core.schemas.errors import FormatError
from core.schemas.proof import ProofDocument
from por_cli.commands.common import (
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    dumps,
    emit,
    read_json_file,
)


logger = logging.getLogger(__name__)


def _strict_totals(args: Namespace) -> bool:
    if getattr(args, "strict_totals", None) is not None:
        return args.strict_totals
    config = getattr(args, "cli_config", None)
    return bool(config and config.strict_totals)


def build_cmd(args: Namespace) -> int:
    """Handle build command."""
    commitment = build_commitment_from_file(args.reserve_list, strict_totals=_strict_totals(args))
    for mismatch in commitment.totals_mismatches:
        print(f"warning: {mismatch}", file=sys.stderr)
    emit(dumps(commitment.to_por_output().to_json_dict()), args.out)
    return EXIT_SUCCESS


def prove_cmd(args: Namespace) -> int:
    """Handle prove command."""
    commitment = build_commitment_from_file(args.reserve_list)
    proof = commitment.proof_document(args.serial_no)
    emit(dumps(proof.to_json_dict()), args.out)
    return EXIT_SUCCESS


def _resolve_leaf_hash(args: Namespace, proof: ProofDocument) -> bytes:
    if args.leaf:
        leaf = read_json_file(args.leaf, "leaf")
        if not isinstance(leaf, dict):
            raise FormatError("leaf must be a JSON object", field_path="leaf")
        return hash_leaf(leaf, leaf.get("as_of_timestamp"))
    if args.leaf_hash:
        return require_bytes32(args.leaf_hash, "leaf_hash")
    if proof.leaf_hash:
        return require_bytes32(proof.leaf_hash, "leaf_hash")
    raise FormatError("Provide --leaf or --leaf-hash (or a proof carrying leaf_hash)", field_path="leaf")


def verify_proof_cmd(args: Namespace) -> int:
    """Handle verify-proof command."""
    proof = ProofDocument.from_json_dict(read_json_file(args.proof, "proof"))
    leaf_hash = _resolve_leaf_hash(args, proof)
    root = args.root or proof.merkle_root
    if not root:
        raise FormatError("Provide --root (or a proof carrying merkle_root)", field_path="root")

    ok = verify_proof(leaf_hash, proof.siblings, proof.positions, root)
    result = {"ok": ok, "leaf_hash": to_hex(leaf_hash), "merkle_root": root}

    if args.json:
        print(json.dumps(result, indent=2))
    else:
        print(f"leaf_hash: {result['leaf_hash']}")
        print(f"merkle_root: {root}")
        print("proof: OK" if ok else "proof: FAIL")
    return EXIT_SUCCESS if ok else EXIT_VERIFICATION_FAILED


def _delimiter(value: str | None) -> str | None:
    if value is None:
        return None
    return "\t" if value in ("\\t", "tab") else value


def format_cmd(args: Namespace) -> int:
    """Handle format command."""
    options = FormatOptions(
        custodian_name=args.custodian_name,
        custodian_location=args.custodian_location,
        report_id=args.report_id,
        as_of_timestamp=args.as_of,
        auditor_name=args.auditor_name,
        auditor_ref=args.auditor_ref,
        delimiter=_delimiter(args.delimiter),
        emit_vaults=args.emit_vaults,
    )
    reserve_list = format_bar_list_file(args.input, options)
    emit(dumps_reserve_list(reserve_list), args.out)
    if args.out:
        print(
            f"Formatted {len(reserve_list.bars)} bars "
            f"({reserve_list.totals.fine_gold_grams} g) into {args.out}",
            file=sys.stderr,
        )
    return EXIT_SUCCESS


def check_vectors_cmd(args: Namespace) -> int:
    """Handle check-vectors command."""
    reports: list[dict[str, Any]] = []
    all_ok = True

    for vector_path in args.vectors:
        result = check_vector_file(vector_path)
        all_ok = all_ok and result.ok
        reports.append({
            "vector": str(vector_path),
            "ok": result.ok,
            "passed": result.passed_count,
            "failed": result.error_count,
            "failures": result.get_error_messages(),
        })

    if args.json:
        print(json.dumps({"ok": all_ok, "vectors": reports}, indent=2))
    else:
        for report in reports:
            status = "PASS" if report["ok"] else "FAIL"
            print(f"{status} {report['vector']} ({report['passed']} passed, {report['failed']} failed)")
            for failure in report["failures"]:
                print(f"  ✗ {failure}")
    return EXIT_SUCCESS if all_ok else EXIT_VERIFICATION_FAILED
