"""
Schemas & Canonicalization
File: versioning.py

Purpose: Document version constants.
This file must remain tiny and have no imports from other schema files
to avoid circular dependencies.
"""

# Version of ReserveList / PorOutput / Attestation JSON documents
SCHEMA_VERSION: str = "0.1"

# Version of the EIP-712 type set the attestation is signed under
EIP712_TYPES_VERSION: str = "0.1"
