"""
GRUSH PoR CLI

Command-line interface for reserve commitments and attestations.

Usage:
    python -m por_cli build reserves.json --out por_output.json
    python -m por_cli sign por_output.json --chain-id 11155111 --registry 0x... --out attestation.json
    python -m por_cli verify attestation.json
    python -m por_cli prove reserves.json SERIAL-001
    python -m por_cli publish attestation.json --dry-run
"""

__version__ = "0.1.0"
