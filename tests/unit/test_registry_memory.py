"""
In-Memory Registry Unit Tests
Tests for core/registry/memory.py
"""
import pytest

from core.crypto.hashing import ZERO_HASH, from_hex, keccak256
from core.registry import InMemoryReserveRegistry
from core.schemas.errors import ErrorCodes, RegistryException

from fixtures import (
    CHAIN_ID,
    OTHER_ADDRESS,
    OTHER_KEY,
    OTHER_REGISTRY_ADDRESS,
    REGISTRY_ADDRESS,
    SIGNER_ADDRESS,
    make_reserve_list,
    make_signed_attestation,
)


def publish_args(attestation):
    """Positional registry arguments for a signed attestation."""
    return (
        keccak256(attestation.report_id.encode("utf-8")),
        attestation.as_of_timestamp,
        attestation.attested_fine_gold_grams,
        from_hex(attestation.merkle_root),
        from_hex(attestation.bar_list_hash),
        from_hex(attestation.signature),
    )


@pytest.fixture
def registry():
    return InMemoryReserveRegistry(
        chain_id=CHAIN_ID,
        address=REGISTRY_ADDRESS,
        allowed_signers=[SIGNER_ADDRESS],
        clock=lambda: 1700000500.0,
    )


class TestPublish:
    """Publication rules."""

    def test_publish_returns_recovered_signer(self, registry, attestation):
        assert registry.publish_attestation(*publish_args(attestation)) == SIGNER_ADDRESS

    def test_record_is_stored(self, registry, attestation):
        args = publish_args(attestation)
        registry.publish_attestation(*args)

        report_id, record = registry.latest_attestation()
        assert report_id == args[0]
        assert record.as_of_timestamp == attestation.as_of_timestamp
        assert record.published_at == 1700000500
        assert record.attested_fine_gold_grams == attestation.attested_fine_gold_grams
        assert record.merkle_root == args[3]
        assert record.signer == SIGNER_ADDRESS
        assert registry.get_attestation(report_id) == record

    def test_record_to_dict(self, registry, attestation):
        registry.publish_attestation(*publish_args(attestation))
        data = registry.latest_attestation()[1].to_dict()
        assert data["merkle_root"] == attestation.merkle_root
        assert data["signer"] == SIGNER_ADDRESS

    def test_duplicate_report_rejected(self, registry, attestation):
        registry.publish_attestation(*publish_args(attestation))
        with pytest.raises(RegistryException) as exc_info:
            registry.publish_attestation(*publish_args(attestation))
        assert exc_info.value.code == ErrorCodes.REPORT_EXISTS

    def test_zero_report_id_rejected(self, registry, attestation):
        args = (ZERO_HASH,) + publish_args(attestation)[1:]
        with pytest.raises(RegistryException):
            registry.publish_attestation(*args)

    def test_signer_not_allowed(self, registry, reserve_list_doc):
        attestation = make_signed_attestation(reserve_list_doc, private_key=OTHER_KEY)
        with pytest.raises(RegistryException) as exc_info:
            registry.publish_attestation(*publish_args(attestation))
        assert exc_info.value.code == ErrorCodes.SIGNER_NOT_ALLOWED
        assert exc_info.value.details["signer"] == OTHER_ADDRESS

    def test_tampered_amount_recovers_other_signer(self, registry, attestation):
        args = list(publish_args(attestation))
        args[2] += 1
        with pytest.raises(RegistryException) as exc_info:
            registry.publish_attestation(*args)
        assert exc_info.value.code == ErrorCodes.SIGNER_NOT_ALLOWED

    def test_other_domain_rejected(self, attestation):
        registry = InMemoryReserveRegistry(
            chain_id=CHAIN_ID,
            address=OTHER_REGISTRY_ADDRESS,
            allowed_signers=[SIGNER_ADDRESS],
        )
        with pytest.raises(RegistryException):
            registry.publish_attestation(*publish_args(attestation))

    def test_malformed_signature_wrapped(self, registry, attestation):
        args = publish_args(attestation)[:5] + (b"\x00" * 10,)
        with pytest.raises(RegistryException, match="Invalid signature"):
            registry.publish_attestation(*args)


class TestViews:
    """Read-only views."""

    def test_empty_registry(self, registry):
        assert registry.latest_report_id() == ZERO_HASH
        assert registry.get_report_ids(0, 10) == []
        with pytest.raises(RegistryException):
            registry.latest_attestation()

    def test_allowlist(self, registry):
        assert registry.is_allowed_signer(SIGNER_ADDRESS.lower())
        assert not registry.is_allowed_signer(OTHER_ADDRESS)
        registry.set_allowed_signer(OTHER_ADDRESS, True)
        assert registry.is_allowed_signer(OTHER_ADDRESS)
        registry.set_allowed_signer(OTHER_ADDRESS, False)
        assert not registry.is_allowed_signer(OTHER_ADDRESS)

    def test_paging_in_publication_order(self, registry):
        ids = []
        for n in range(3):
            attestation = make_signed_attestation(make_reserve_list(report_id=f"R-{n}"))
            args = publish_args(attestation)
            registry.publish_attestation(*args)
            ids.append(args[0])

        assert registry.latest_report_id() == ids[-1]
        assert registry.get_report_ids(0, 2) == ids[:2]
        assert registry.get_report_ids(1, 10) == ids[1:]
        assert registry.get_report_ids(3, 1) == []
        assert all(registry.exists(i) for i in ids)
        assert not registry.exists(keccak256(b"unknown"))

    def test_negative_paging_rejected(self, registry):
        with pytest.raises(RegistryException):
            registry.get_report_ids(-1, 1)

    def test_unknown_record(self, registry):
        with pytest.raises(RegistryException):
            registry.get_attestation(keccak256(b"unknown"))

    def test_unknown_record_by_hex_names_report(self, registry):
        report_id = "0x" + keccak256(b"unknown").hex()
        with pytest.raises(RegistryException) as exc_info:
            registry.get_attestation(report_id)
        assert exc_info.value.message == f"Unknown report: {report_id}"

    def test_chain_id_and_address(self, registry):
        assert registry.chain_id() == CHAIN_ID
        assert registry.address == REGISTRY_ADDRESS
