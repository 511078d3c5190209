"""
In-Memory Reserve Registry

Mirrors the registry contract's publication rules without a chain:
- the signer is recovered from the EIP-712 message and must be allowlisted
- a report id can be published once
- the latest pointer follows publication order
"""
from __future__ import annotations

import logging
import time
from typing import Callable, Iterable

from core.attestation.codec import AttestationDomain, AttestationPayload, attestation_message
from core.crypto.addresses import normalize_address
from core.crypto.hashing import ZERO_HASH, require_bytes32, to_hex
from core.crypto.signatures import recover_signer
from core.registry.base import AttestationRecord, ReserveRegistry
from core.schemas.errors import ErrorCodes, PorException, RegistryException

logger = logging.getLogger(__name__)


class InMemoryReserveRegistry(ReserveRegistry):
    """
    Process-local registry.

    Usage:
        registry = InMemoryReserveRegistry(chain_id=31337, address=REGISTRY)
        registry.set_allowed_signer(signer, True)
        registry.publish_attestation(...)
    """

    def __init__(
        self,
        chain_id: int,
        address: str,
        allowed_signers: Iterable[str] = (),
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._chain_id = chain_id
        self.address = normalize_address(address, "registry_address")
        self._domain = AttestationDomain.create(chain_id, self.address)
        self._allowed: set[str] = {normalize_address(a) for a in allowed_signers}
        self._records: dict[bytes, AttestationRecord] = {}
        self._order: list[bytes] = []
        self._clock = clock

    def chain_id(self) -> int:
        return self._chain_id

    def set_allowed_signer(self, address: str, allowed: bool) -> None:
        signer = normalize_address(address)
        if allowed:
            self._allowed.add(signer)
        else:
            self._allowed.discard(signer)

    def publish_attestation(
        self,
        report_id: bytes,
        as_of_timestamp: int,
        attested_fine_gold_grams: int,
        merkle_root: bytes,
        bar_list_hash: bytes,
        signature: bytes,
    ) -> str:
        report_id = require_bytes32(report_id, "report_id")
        if report_id == ZERO_HASH:
            raise RegistryException("report_id must not be zero")
        if report_id in self._records:
            raise RegistryException(
                f"Report already published: {to_hex(report_id)}",
                code=ErrorCodes.REPORT_EXISTS,
                details={"report_id": to_hex(report_id)},
            )

        payload = AttestationPayload(
            report_id=to_hex(report_id),
            as_of_timestamp=as_of_timestamp,
            attested_fine_gold_grams=attested_fine_gold_grams,
            merkle_root=to_hex(require_bytes32(merkle_root, "merkle_root")),
            bar_list_hash=to_hex(require_bytes32(bar_list_hash, "bar_list_hash")),
        )
        try:
            signer = recover_signer(attestation_message(payload, self._domain), signature)
        except PorException as e:
            raise RegistryException(f"Invalid signature: {e.message}", details=e.details) from e

        if signer not in self._allowed:
            raise RegistryException(
                f"Signer not allowed: {signer}",
                code=ErrorCodes.SIGNER_NOT_ALLOWED,
                details={"signer": signer},
            )

        self._records[report_id] = AttestationRecord(
            as_of_timestamp=as_of_timestamp,
            published_at=int(self._clock()),
            attested_fine_gold_grams=attested_fine_gold_grams,
            merkle_root=bytes.fromhex(payload.merkle_root[2:]),
            bar_list_hash=bytes.fromhex(payload.bar_list_hash[2:]),
            signer=signer,
        )
        self._order.append(report_id)
        logger.info("Published report %s signed by %s", to_hex(report_id), signer)
        return signer

    def is_allowed_signer(self, address: str) -> bool:
        return normalize_address(address) in self._allowed

    def latest_report_id(self) -> bytes:
        return self._order[-1] if self._order else ZERO_HASH

    def latest_attestation(self) -> tuple[bytes, AttestationRecord]:
        if not self._order:
            raise RegistryException("No attestation published yet")
        report_id = self._order[-1]
        return report_id, self._records[report_id]

    def get_attestation(self, report_id: bytes) -> AttestationRecord:
        key = require_bytes32(report_id, "report_id")
        try:
            return self._records[key]
        except KeyError:
            raise RegistryException(f"Unknown report: {to_hex(key)}") from None

    def exists(self, report_id: bytes) -> bool:
        return require_bytes32(report_id, "report_id") in self._records

    def get_report_ids(self, start: int, count: int) -> list[bytes]:
        if start < 0 or count < 0:
            raise RegistryException("start and count must be non-negative")
        if start >= len(self._order):
            return []
        return list(self._order[start:start + count])


__all__ = ["InMemoryReserveRegistry"]
