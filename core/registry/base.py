"""
Reserve Registry Interface

The on-chain ReserveRegistry as seen by the core: publication of signed
attestations plus the read-only views a verifier or publisher needs.
Implementations: InMemoryReserveRegistry (tests, local runs) and
JsonRpcReserveRegistry (a live node).
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class AttestationRecord:
    """A published attestation as stored by the registry."""
    as_of_timestamp: int
    published_at: int
    attested_fine_gold_grams: int
    merkle_root: bytes
    bar_list_hash: bytes
    signer: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "as_of_timestamp": self.as_of_timestamp,
            "published_at": self.published_at,
            "attested_fine_gold_grams": self.attested_fine_gold_grams,
            "merkle_root": "0x" + self.merkle_root.hex(),
            "bar_list_hash": "0x" + self.bar_list_hash.hex(),
            "signer": self.signer,
        }


class ReserveRegistry(ABC):
    """
    Registry collaborator.

    All report ids, roots and hashes are raw 32-byte values; addresses are
    checksummed strings.
    """

    #: Checksummed registry contract address (the EIP-712 verifyingContract)
    address: str

    @abstractmethod
    def chain_id(self) -> int:
        """Chain the registry lives on."""

    @abstractmethod
    def publish_attestation(
        self,
        report_id: bytes,
        as_of_timestamp: int,
        attested_fine_gold_grams: int,
        merkle_root: bytes,
        bar_list_hash: bytes,
        signature: bytes,
    ) -> str:
        """
        Publish a signed attestation.

        Returns:
            The signer address the registry recovered

        Raises:
            RegistryException: If the registry rejects the publication
        """

    @abstractmethod
    def is_allowed_signer(self, address: str) -> bool:
        """Whether the address is on the signer allowlist."""

    @abstractmethod
    def latest_report_id(self) -> bytes:
        """Most recently published report id (zero hash if none)."""

    @abstractmethod
    def latest_attestation(self) -> tuple[bytes, AttestationRecord]:
        """Most recently published report id and its record."""

    @abstractmethod
    def exists(self, report_id: bytes) -> bool:
        """Whether a report id has been published."""

    @abstractmethod
    def get_report_ids(self, start: int, count: int) -> list[bytes]:
        """Page through published ids in publication order; empty when start >= n."""


__all__ = ["AttestationRecord", "ReserveRegistry"]
