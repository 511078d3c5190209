"""
Reserve Registry

Registry interface, an in-memory implementation, a JSON-RPC client for a
deployed contract and the attestation publisher.

Usage:
    from core.registry import JsonRpcReserveRegistry, publish_attestation

    registry = JsonRpcReserveRegistry(rpc_url, registry_address, publisher_key=publisher_pk)
    receipt = publish_attestation(attestation_json, registry)
"""
from .base import AttestationRecord, ReserveRegistry
from .jsonrpc import JsonRpcReserveRegistry
from .memory import InMemoryReserveRegistry
from .publisher import preflight, publish_attestation

__all__ = [
    "AttestationRecord",
    "ReserveRegistry",
    "InMemoryReserveRegistry",
    "JsonRpcReserveRegistry",
    "preflight",
    "publish_attestation",
]
