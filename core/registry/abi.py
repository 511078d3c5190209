"""
Registry ABI

JSON ABI of the ReserveRegistry functions the core calls, for
``w3.eth.contract(address=..., abi=RESERVE_REGISTRY_ABI)``.

latestAttestation() returns the report id followed by the stored record
(asOfTimestamp, publishedAt, attestedFineGoldGrams, merkleRoot,
barListHash, signer).
"""
from __future__ import annotations

from typing import Any


def _param(name: str, kind: str, **extra: Any) -> dict[str, Any]:
    return {"name": name, "type": kind, "internalType": extra.pop("internal_type", kind), **extra}


def _function(
    name: str,
    inputs: list[dict[str, Any]],
    outputs: list[dict[str, Any]],
    mutability: str = "view",
) -> dict[str, Any]:
    return {
        "type": "function",
        "name": name,
        "inputs": inputs,
        "outputs": outputs,
        "stateMutability": mutability,
    }


RECORD_COMPONENTS: list[dict[str, Any]] = [
    _param("asOfTimestamp", "uint64"),
    _param("publishedAt", "uint64"),
    _param("attestedFineGoldGrams", "uint256"),
    _param("merkleRoot", "bytes32"),
    _param("barListHash", "bytes32"),
    _param("signer", "address"),
]

RESERVE_REGISTRY_ABI: list[dict[str, Any]] = [
    _function(
        "publishAttestation",
        [
            _param("reportId", "bytes32"),
            _param("asOfTimestamp", "uint64"),
            _param("attestedFineGoldGrams", "uint256"),
            _param("merkleRoot", "bytes32"),
            _param("barListHash", "bytes32"),
            _param("signature", "bytes"),
        ],
        [_param("signer", "address")],
        mutability="nonpayable",
    ),
    _function("isAllowedSigner", [_param("signer", "address")], [_param("", "bool")]),
    _function("latestReportId", [], [_param("", "bytes32")]),
    _function(
        "latestAttestation",
        [],
        [
            _param("reportId", "bytes32"),
            _param(
                "record",
                "tuple",
                internal_type="struct ReserveRegistry.Record",
                components=RECORD_COMPONENTS,
            ),
        ],
    ),
    _function("exists", [_param("reportId", "bytes32")], [_param("", "bool")]),
    _function(
        "getReportIds",
        [_param("start", "uint256"), _param("count", "uint256")],
        [_param("", "bytes32[]")],
    ),
]

# Canonical signatures, for selector lookups
PUBLISH_ATTESTATION = "publishAttestation(bytes32,uint64,uint256,bytes32,bytes32,bytes)"
IS_ALLOWED_SIGNER = "isAllowedSigner(address)"
LATEST_REPORT_ID = "latestReportId()"
LATEST_ATTESTATION = "latestAttestation()"
EXISTS = "exists(bytes32)"
GET_REPORT_IDS = "getReportIds(uint256,uint256)"


__all__ = [
    "RECORD_COMPONENTS",
    "RESERVE_REGISTRY_ABI",
    "PUBLISH_ATTESTATION",
    "IS_ALLOWED_SIGNER",
    "LATEST_REPORT_ID",
    "LATEST_ATTESTATION",
    "EXISTS",
    "GET_REPORT_IDS",
]
