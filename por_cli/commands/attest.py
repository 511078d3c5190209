"""
CLI Attestation Commands

- sign:     PorOutput -> signed Attestation (key from ATTESTATION_SIGNER_PK)
- verify:   recover and cross-check an attestation signer
- publish:  pre-flight and publish an attestation through a JSON-RPC node
            (transactions signed with PUBLISHER_PK, or sent from --publisher)

Usage:
    ATTESTATION_SIGNER_PK=0x... grush-por sign por_output.json --chain-id 1 --registry 0x...
    grush-por verify attestation.json [--expected-signer 0x...] [--json]
    grush-por publish attestation.json --rpc-url http://localhost:8545 --publisher 0x... [--dry-run]
    PUBLISHER_PK=0x... grush-por publish attestation.json --rpc-url http://localhost:8545
"""

from __future__ import annotations

import json
import logging
from argparse import Namespace
from dataclasses import asdict, dataclass, field
from typing import Any

from core.attestation import build_signed_attestation, verify_attestation
from core.config import RuntimeConfig
from core.registry import JsonRpcReserveRegistry, preflight, publish_attestation
from core.schemas.attestation import Attestation
from core.schemas.errors import PorException, ValidationError
from core.schemas.reserves import PorOutput
from por_cli.commands.common import (
    EXIT_SUCCESS,
    EXIT_VERIFICATION_FAILED,
    dumps,
    emit,
    read_json_file,
)


logger = logging.getLogger(__name__)


@dataclass
class VerifySummary:
    """Summary of attestation verification for CLI output."""
    path: str = ""
    ok: bool = False
    report_id: str = ""
    recovered_signer: str = ""
    registry: str = ""
    chain_id: int | None = None
    merkle_root: str = ""
    error_code: str = ""
    errors: list[str] = field(default_factory=list)
    checks: list[dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        for key in ("error_code", "errors", "checks"):
            if not d[key]:
                del d[key]
        return d


def print_summary_human(summary: VerifySummary) -> None:
    """Print summary in human-readable format."""
    print(f"attestation: {summary.path}")
    print(f"ok: {str(summary.ok).lower()}")
    if summary.report_id:
        print(f"report_id: {summary.report_id}")
    if summary.recovered_signer:
        print(f"recovered_signer: {summary.recovered_signer}")
        print(f"registry: {summary.registry}")
        print(f"chain_id: {summary.chain_id}")
        print(f"merkle_root: {summary.merkle_root}")

    if summary.errors:
        print(f"\nerrors ({len(summary.errors)}):")
        for err in summary.errors:
            print(f"  ✗ [{summary.error_code}] {err}")

    if summary.checks:
        print(f"\nchecks ({len(summary.checks)}):")
        for check in summary.checks:
            mark = "✓" if check["ok"] else "✗"
            print(f"  {mark} {check['check_id']}: {check['message']}")


def sign_cmd(args: Namespace) -> int:
    """Handle sign command."""
    config = args.cli_config
    chain_id = args.chain_id if args.chain_id is not None else config.chain_id
    registry = args.registry or config.registry_address
    if chain_id is None:
        raise ValidationError("chain id is required (--chain-id or GRUSH_CHAIN_ID)", field_path="chain_id")
    if not registry:
        raise ValidationError(
            "registry address is required (--registry or GRUSH_REGISTRY_ADDRESS)",
            field_path="reserve_registry_address",
        )

    private_key = RuntimeConfig.from_env().signer.private_key
    if not private_key:
        raise ValidationError("ATTESTATION_SIGNER_PK is not set", field_path="ATTESTATION_SIGNER_PK")

    output = PorOutput.from_json_dict(read_json_file(args.por_output, "por_output"))
    attestation = build_signed_attestation(output, chain_id, registry, private_key)
    emit(dumps(attestation.to_json_dict()), args.out)
    return EXIT_SUCCESS


def verify_cmd(args: Namespace) -> int:
    """Handle verify command."""
    document = read_json_file(args.attestation, "attestation")
    summary = VerifySummary(path=str(args.attestation))

    try:
        verified = verify_attestation(document, args.expected_signer)
    except PorException as e:
        summary.ok = False
        summary.error_code = e.code
        summary.errors.append(e.message)
        if isinstance(document, dict):
            summary.report_id = str(document.get("report_id", ""))
    else:
        att = verified.attestation
        summary.ok = True
        summary.report_id = att.report_id
        summary.recovered_signer = verified.recovered_signer
        summary.registry = verified.registry
        summary.chain_id = att.chain_id
        summary.merkle_root = att.merkle_root
        if args.debug:
            summary.checks = [c.model_dump() for c in verified.checks]

    if args.json:
        print(json.dumps(summary.to_dict(), indent=2))
    else:
        print_summary_human(summary)
    return EXIT_SUCCESS if summary.ok else EXIT_VERIFICATION_FAILED


def publish_cmd(args: Namespace) -> int:
    """Handle publish command."""
    config = args.cli_config
    rpc_url = args.rpc_url or config.rpc_url
    publisher = args.publisher or config.publisher_address
    if not rpc_url:
        raise ValidationError("RPC URL is required (--rpc-url or GRUSH_RPC_URL)", field_path="rpc_url")

    publisher_key = RuntimeConfig.from_env().signer.publisher_key

    attestation = Attestation.from_json_dict(read_json_file(args.attestation, "attestation"))
    registry = JsonRpcReserveRegistry(
        rpc_url,
        attestation.reserve_registry_address,
        publisher_address=publisher,
        publisher_key=publisher_key,
        timeout=config.http_timeout,
    )
    publisher = registry.publisher_address

    try:
        if args.dry_run:
            result = preflight(attestation, registry, publisher_address=publisher)
            report = {
                "ok": result.ok,
                "checks": [c.model_dump() for c in result.checks],
            }
            if result.error:
                report["error"] = result.error.model_dump()
            print(json.dumps(report, indent=2))
            return EXIT_SUCCESS if result.ok else EXIT_VERIFICATION_FAILED

        if not publisher:
            raise ValidationError(
                "publisher is required (PUBLISHER_PK, --publisher or GRUSH_PUBLISHER_ADDRESS)",
                field_path="publisher_address",
            )
        receipt = publish_attestation(attestation, registry, publisher_address=publisher)
    finally:
        registry.close()

    emit(dumps(receipt), args.out)
    return EXIT_SUCCESS
