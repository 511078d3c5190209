"""
Core cryptographic utilities.

Keccak-256 hashing and hex helpers, EIP-55 addresses, EIP-712 typed data
encoding and recoverable secp256k1 signatures.
"""
from .hashing import (
    HASH_LENGTH,
    LEAF_PREFIX,
    NODE_PREFIX,
    ZERO_HASH,
    from_hex,
    hash_file_bytes,
    hash_leaf,
    hash_node,
    is_bytes32_hex,
    is_hex_string,
    keccak256,
    report_id_to_bytes32,
    require_bytes32,
    to_hex,
)
from .addresses import (
    address_to_bytes,
    addresses_equal,
    is_address,
    normalize_address,
    to_checksum_address,
)
from .eip712 import (
    encode_message,
    message_digest,
    typed_data_digest,
)
from .signatures import (
    RecoverableSignature,
    load_signing_key,
    recover_signer,
    sign_message,
    signer_address,
)

__all__ = [
    "HASH_LENGTH",
    "LEAF_PREFIX",
    "NODE_PREFIX",
    "ZERO_HASH",
    "from_hex",
    "hash_file_bytes",
    "hash_leaf",
    "hash_node",
    "is_bytes32_hex",
    "is_hex_string",
    "keccak256",
    "report_id_to_bytes32",
    "require_bytes32",
    "to_hex",
    "address_to_bytes",
    "addresses_equal",
    "is_address",
    "normalize_address",
    "to_checksum_address",
    "encode_message",
    "message_digest",
    "typed_data_digest",
    "RecoverableSignature",
    "load_signing_key",
    "recover_signer",
    "sign_message",
    "signer_address",
]
