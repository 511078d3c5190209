"""
Pytest configuration and shared fixtures for GRUSH PoR tests.

This conftest.py:
1. Adds project root to sys.path for imports
2. Provides commonly-used fixtures via pytest's autodiscovery
3. Configures pytest markers and settings
"""

import sys
from pathlib import Path

import pytest

# =============================================================================
# Path Setup - Must happen before any local imports
# =============================================================================

# Get the project root (parent of tests/)
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_TESTS_ROOT = Path(__file__).resolve().parent

# Add both project root and tests root to sys.path
for _path in [str(_PROJECT_ROOT), str(_TESTS_ROOT)]:
    if _path not in sys.path:
        sys.path.insert(0, _path)

# =============================================================================
# Import fixtures using importlib (more robust for pytest loading)
# =============================================================================

import importlib

_reserves = importlib.import_module("fixtures.reserves")

make_unit = _reserves.make_unit
make_reserve_list = _reserves.make_reserve_list
reserve_list_bytes = _reserves.reserve_list_bytes
make_commitment = _reserves.make_commitment
make_signed_attestation = _reserves.make_signed_attestation


# =============================================================================
# Pytest Fixtures (autodiscovered by pytest)
# =============================================================================

@pytest.fixture
def reserve_list_doc():
    """Provide a default three-unit reserve list document."""
    return make_reserve_list()


@pytest.fixture
def reserve_list_data(reserve_list_doc):
    """Provide the reserve list as file bytes."""
    return reserve_list_bytes(reserve_list_doc)


@pytest.fixture
def reserve_list_file(tmp_path, reserve_list_data):
    """Write the reserve list to a temporary file."""
    path = tmp_path / "reserves.json"
    path.write_bytes(reserve_list_data)
    return path


@pytest.fixture
def commitment(reserve_list_doc):
    """Provide the commitment for the default reserve list."""
    return make_commitment(reserve_list_doc)


@pytest.fixture
def attestation(reserve_list_doc):
    """Provide a signed Attestation for the default reserve list."""
    return make_signed_attestation(reserve_list_doc)


@pytest.fixture
def attestation_json(attestation):
    """Provide the signed attestation as a decoded JSON document."""
    return attestation.to_json_dict()


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch):
    """Keep GRUSH_* settings from the developer's shell out of tests."""
    for name in (
        "GRUSH_CHAIN_ID",
        "GRUSH_RPC_URL",
        "RPC_URL",
        "GRUSH_REGISTRY_ADDRESS",
        "GRUSH_PUBLISHER_ADDRESS",
        "GRUSH_STRICT_TOTALS",
        "GRUSH_HTTP_TIMEOUT",
        "GRUSH_LOG_LEVEL",
        "GRUSH_LOG_FILE",
        "ATTESTATION_SIGNER_PK",
        "PUBLISHER_PK",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
    config.addinivalue_line(
        "markers", "vectors: marks known-answer test vector checks"
    )


# =============================================================================
# Test Helpers (available to all tests via fixtures)
# =============================================================================

@pytest.fixture
def assert_check_passed():
    """Helper to assert a specific check passed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert checks[0].ok, f"Check '{check_id}' failed: {checks[0].message}"
    return _assert


@pytest.fixture
def assert_check_failed():
    """Helper to assert a specific check failed in VerificationResult."""
    def _assert(result, check_id: str):
        checks = [c for c in result.checks if c.check_id == check_id]
        assert len(checks) == 1, f"Expected check '{check_id}' not found in {[c.check_id for c in result.checks]}"
        assert not checks[0].ok, f"Check '{check_id}' unexpectedly passed"
    return _assert
