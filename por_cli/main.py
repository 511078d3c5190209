"""
CLI Main Entry Point

Parses command-line arguments and dispatches to subcommands.

Usage:
    grush-por build <reserve_list.json> [--out PATH] [--strict-totals]
    grush-por prove <reserve_list.json> <serial_no> [--out PATH]
    grush-por verify-proof --proof PATH [--leaf PATH | --leaf-hash HEX] [--root HEX] [--json]
    grush-por format <bars.csv|bars.tsv|bars.json> --custodian-name NAME --custodian-location LOC [--out PATH]
    grush-por check-vectors <vector.json>... [--json]
    grush-por sign <por_output.json> --chain-id N --registry ADDR [--out PATH]
    grush-por verify <attestation.json> [--expected-signer ADDR] [--json] [--debug]
    grush-por publish <attestation.json> [--rpc-url URL] [--publisher ADDR] [--dry-run]
    grush-por config --init

Environment Variables:
    ATTESTATION_SIGNER_PK       Attestation signing key (sign)
    PUBLISHER_PK                Publisher transaction key (publish)
    GRUSH_CHAIN_ID              Default chain id
    GRUSH_RPC_URL               JSON-RPC endpoint (also RPC_URL)
    GRUSH_REGISTRY_ADDRESS      Default ReserveRegistry address
    GRUSH_PUBLISHER_ADDRESS     Node-managed publisher account
    GRUSH_STRICT_TOTALS         Fail on advisory totals mismatch
    GRUSH_LOG_LEVEL             Log level (default: INFO)
    GRUSH_LOG_FILE              Optional log file
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
import traceback
from pathlib import Path
from typing import Sequence

from core.schemas.errors import PorException
from por_cli.commands import attest, reserves
from por_cli.commands.common import EXIT_RUNTIME_ERROR, EXIT_SUCCESS, EXIT_VERIFICATION_FAILED
from por_cli.config import DEFAULT_CONFIG_NAME, get_default_config_template, load_config


__all__ = [
    "EXIT_SUCCESS",
    "EXIT_RUNTIME_ERROR",
    "EXIT_VERIFICATION_FAILED",
    "setup_logging",
    "create_parser",
    "main",
]


def setup_logging(level: str = "INFO", log_file: str | None = None) -> None:
    """Configure logging for the CLI."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]

    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog="grush-por",
        description="GRUSH Proof-of-Reserve CLI - Build commitments, sign and verify attestations.",
    )
    parser.add_argument(
        "--version", action="version", version="%(prog)s 0.1.0"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="Path to configuration file (default: ./grush.json or ~/.config/grush/config.json)",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Log level (overrides config)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # --- build command ---
    build_parser = subparsers.add_parser(
        "build",
        help="Build the PorOutput commitment for a reserve list",
        description="Hash the reserve list file, build the Merkle root and sum fine gold grams.",
    )
    build_parser.add_argument("reserve_list", type=str, help="Path to reserve list JSON")
    build_parser.add_argument("--out", "-o", type=str, default=None, help="Output path (default: stdout)")
    build_parser.add_argument(
        "--strict-totals",
        dest="strict_totals",
        action="store_true",
        default=None,
        help="Fail when advisory totals disagree with the bars",
    )
    build_parser.set_defaults(func=reserves.build_cmd)

    # --- prove command ---
    prove_parser = subparsers.add_parser(
        "prove",
        help="Generate an inclusion proof for one serial number",
    )
    prove_parser.add_argument("reserve_list", type=str, help="Path to reserve list JSON")
    prove_parser.add_argument("serial_no", type=str, help="Serial number to prove")
    prove_parser.add_argument("--out", "-o", type=str, default=None, help="Output path (default: stdout)")
    prove_parser.set_defaults(func=reserves.prove_cmd)

    # --- verify-proof command ---
    verify_proof_parser = subparsers.add_parser(
        "verify-proof",
        help="Verify a Merkle inclusion proof",
    )
    verify_proof_parser.add_argument("--proof", type=str, required=True, help="Proof JSON file")
    leaf_group = verify_proof_parser.add_mutually_exclusive_group()
    leaf_group.add_argument("--leaf", type=str, default=None, help="Leaf JSON object file")
    leaf_group.add_argument("--leaf-hash", type=str, default=None, help="bytes32 leaf hash")
    verify_proof_parser.add_argument("--root", type=str, default=None, help="Expected Merkle root")
    verify_proof_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    verify_proof_parser.set_defaults(func=reserves.verify_proof_cmd)

    # --- format command ---
    format_parser = subparsers.add_parser(
        "format",
        help="Normalize a CSV/TSV/JSON bar export into a reserve list",
    )
    format_parser.add_argument("input", type=str, help="Bar export (.csv, .tsv, .txt or .json)")
    format_parser.add_argument("--custodian-name", type=str, required=True)
    format_parser.add_argument("--custodian-location", type=str, required=True)
    format_parser.add_argument("--report-id", type=str, default=None, help="Default: auto-YYYY-MM-DD-<epoch>")
    format_parser.add_argument("--as-of", type=int, default=None, help="Epoch seconds (default: now)")
    format_parser.add_argument("--auditor-name", type=str, default=None)
    format_parser.add_argument("--auditor-ref", type=str, default=None)
    format_parser.add_argument("--delimiter", type=str, default=None, help='"," ";" or "\\t" (auto-detect if omitted)')
    format_parser.add_argument("--emit-vaults", action="store_true", default=False, help="Emit the vault list")
    format_parser.add_argument("--out", "-o", type=str, default=None, help="Output path (default: stdout)")
    format_parser.set_defaults(func=reserves.format_cmd)

    # --- check-vectors command ---
    vectors_parser = subparsers.add_parser(
        "check-vectors",
        help="Check published test vectors against a recomputation",
    )
    vectors_parser.add_argument("vectors", nargs="+", type=str, help="Vector JSON files")
    vectors_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    vectors_parser.set_defaults(func=reserves.check_vectors_cmd)

    # --- sign command ---
    sign_parser = subparsers.add_parser(
        "sign",
        help="Sign a PorOutput into an EIP-712 attestation",
        description="The signing key is read from ATTESTATION_SIGNER_PK.",
    )
    sign_parser.add_argument("por_output", type=str, help="PorOutput JSON file")
    sign_parser.add_argument("--chain-id", type=int, default=None, help="Chain id (default: from config)")
    sign_parser.add_argument("--registry", type=str, default=None, help="ReserveRegistry address (default: from config)")
    sign_parser.add_argument("--out", "-o", type=str, default=None, help="Output path (default: stdout)")
    sign_parser.set_defaults(func=attest.sign_cmd)

    # --- verify command ---
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify a signed attestation offline",
    )
    verify_parser.add_argument("attestation", type=str, help="Attestation JSON file")
    verify_parser.add_argument("--expected-signer", type=str, default=None, help="Required signer address")
    verify_parser.add_argument("--json", action="store_true", default=False, help="JSON output")
    verify_parser.add_argument("--debug", action="store_true", default=False, help="Include detailed checks")
    verify_parser.set_defaults(func=attest.verify_cmd)

    # --- publish command ---
    publish_parser = subparsers.add_parser(
        "publish",
        help="Publish an attestation to the ReserveRegistry",
        description=(
            "Runs pre-flight checks, then sends publishAttestation signed with PUBLISHER_PK "
            "or from a node-managed --publisher account."
        ),
    )
    publish_parser.add_argument("attestation", type=str, help="Attestation JSON file")
    publish_parser.add_argument("--rpc-url", type=str, default=None, help="JSON-RPC endpoint (default: from config)")
    publish_parser.add_argument("--publisher", type=str, default=None, help="Publisher account (default: from config)")
    publish_parser.add_argument("--dry-run", action="store_true", default=False, help="Pre-flight only")
    publish_parser.add_argument("--out", "-o", type=str, default=None, help="Receipt output path (default: stdout)")
    publish_parser.set_defaults(func=attest.publish_cmd)

    # --- config command ---
    config_parser = subparsers.add_parser(
        "config",
        help="Manage CLI configuration",
        description="Initialize or display configuration.",
    )
    config_parser.add_argument(
        "--init",
        action="store_true",
        default=False,
        help="Create a template configuration file",
    )
    config_parser.add_argument(
        "--show",
        action="store_true",
        default=False,
        help="Show current configuration",
    )
    config_parser.add_argument(
        "--path",
        type=str,
        default=DEFAULT_CONFIG_NAME,
        help=f"Path for config file (default: {DEFAULT_CONFIG_NAME})",
    )
    config_parser.set_defaults(func=config_cmd)

    return parser


def config_cmd(args: argparse.Namespace) -> int:
    """Handle config command."""
    if args.init:
        config_path = Path(args.path)
        if config_path.exists():
            print(f"Error: Config file already exists: {config_path}", file=sys.stderr)
            return EXIT_RUNTIME_ERROR

        config_path.write_text(get_default_config_template())
        print(f"Created configuration file: {config_path}")
        print("\nEdit this file to configure your settings.")
        print("You can also use environment variables (GRUSH_* prefix).")
        return EXIT_SUCCESS

    if args.show:
        print(json.dumps(args.cli_config.to_dict(), indent=2))
        return EXIT_SUCCESS

    # Default: show help
    print("Usage: grush-por config [--init|--show]")
    print("  --init  Create a template configuration file")
    print("  --show  Show current configuration")
    return EXIT_SUCCESS


def main(argv: Sequence[str] | None = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0=success, 1=error, 2=verification failed)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return EXIT_RUNTIME_ERROR

    # Load configuration
    try:
        config = load_config(args.config)
    except Exception as e:
        print(f"Error loading configuration: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR

    # Setup logging
    log_level = args.log_level or config.log_level
    setup_logging(level=log_level, log_file=config.log_file)

    # Attach config to args for commands to use
    args.cli_config = config

    try:
        return args.func(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except PorException as e:
        print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR
    except Exception as e:
        if getattr(args, "debug", False):
            traceback.print_exc()
        else:
            print(f"Error: {e}", file=sys.stderr)
        return EXIT_RUNTIME_ERROR


if __name__ == "__main__":
    sys.exit(main())
