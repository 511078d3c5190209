"""
Test fixtures package for GRUSH PoR tests.

This package provides factory functions for creating test objects:
- reserves.py: reserve units, reserve lists, commitments, signed attestations

Usage:
    from fixtures import make_reserve_list, reserve_list_bytes

    def test_something():
        data = reserve_list_bytes(make_reserve_list(report_id="R-1"))
"""

from .reserves import (
    AS_OF,
    CHAIN_ID,
    OTHER_ADDRESS,
    OTHER_KEY,
    OTHER_REGISTRY_ADDRESS,
    REGISTRY_ADDRESS,
    SIGNER_ADDRESS,
    SIGNER_KEY,
    make_attestation_json,
    make_commitment,
    make_reserve_list,
    make_signed_attestation,
    make_unit,
    make_units,
    reserve_list_bytes,
)

__all__ = [
    "AS_OF",
    "CHAIN_ID",
    "OTHER_ADDRESS",
    "OTHER_KEY",
    "OTHER_REGISTRY_ADDRESS",
    "REGISTRY_ADDRESS",
    "SIGNER_ADDRESS",
    "SIGNER_KEY",
    "make_attestation_json",
    "make_commitment",
    "make_reserve_list",
    "make_signed_attestation",
    "make_unit",
    "make_units",
    "reserve_list_bytes",
]
