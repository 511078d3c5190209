"""
Recoverable secp256k1 Signatures
65-byte r || s || v signatures over EIP-191 signable messages, produced and
recovered through eth_account.

- Signing is deterministic (RFC 6979) and always produces low-s, v in {27, 28}
- Recovery accepts v in {27, 28} or {0, 1} and rejects high-s signatures
- Private key material is never logged or included in error details
"""
from __future__ import annotations

from dataclasses import dataclass

from eth_account import Account
from eth_account.messages import SignableMessage
from eth_account.signers.local import LocalAccount
from eth_keys.exceptions import BadSignature

from core.crypto.hashing import from_hex, is_hex_string
from core.schemas.errors import FormatError, SignatureMismatchError


SECP256K1_N: int = 0xFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141
SIGNATURE_LENGTH: int = 65


@dataclass(frozen=True)
class RecoverableSignature:
    """
    A secp256k1 signature with its recovery id.

    Attributes:
        r: Signature r value
        s: Signature s value (low-s when produced here)
        v: 27 or 28
    """
    r: int
    s: int
    v: int

    @property
    def recovery_id(self) -> int:
        return self.v - 27

    def to_bytes(self) -> bytes:
        return self.r.to_bytes(32, "big") + self.s.to_bytes(32, "big") + bytes([self.v])

    def to_hex(self) -> str:
        return "0x" + self.to_bytes().hex()

    @classmethod
    def from_bytes(cls, data: bytes | str) -> RecoverableSignature:
        """
        Parse a 65-byte signature given as raw bytes or 0x-hex.

        Raises:
            FormatError: On a wrong length, a bad v, or r/s outside [1, n).
        """
        raw = from_hex(data, "signature") if isinstance(data, str) else bytes(data)
        if len(raw) != SIGNATURE_LENGTH:
            raise FormatError(
                f"signature must be {SIGNATURE_LENGTH} bytes, got {len(raw)}",
                field_path="signature",
            )

        r = int.from_bytes(raw[:32], "big")
        s = int.from_bytes(raw[32:64], "big")
        v = raw[64]
        if v in (0, 1):
            v += 27
        if v not in (27, 28):
            raise FormatError(f"signature v must be 27/28 or 0/1, got {raw[64]}", field_path="signature")
        if not (1 <= r < SECP256K1_N and 1 <= s < SECP256K1_N):
            raise FormatError("signature r/s out of range", field_path="signature")
        return cls(r=r, s=s, v=v)


def load_signing_key(private_key: str | bytes) -> LocalAccount:
    """
    Load a secp256k1 private key from 32 raw bytes or hex (0x optional).

    Raises:
        FormatError: If the key is malformed or outside [1, n). The key
            value itself is never echoed back.
    """
    if isinstance(private_key, str):
        text = private_key.strip()
        if not text.startswith("0x"):
            text = "0x" + text
        if not is_hex_string(text) or len(text) != 66:
            raise FormatError("private key must be 32 bytes of hex", field_path="private_key")
        raw = bytes.fromhex(text[2:])
    else:
        raw = bytes(private_key)
        if len(raw) != 32:
            raise FormatError("private key must be 32 bytes", field_path="private_key")

    if not 1 <= int.from_bytes(raw, "big") < SECP256K1_N:
        raise FormatError("private key out of range for secp256k1", field_path="private_key")
    return Account.from_key(raw)


def signer_address(account: LocalAccount) -> str:
    """Checksummed address controlled by a signing key."""
    return account.address


def sign_message(message: SignableMessage, account: LocalAccount) -> RecoverableSignature:
    """Sign an EIP-191 message, returning a low-s recoverable signature."""
    signed = account.sign_message(message)
    return RecoverableSignature(r=signed.r, s=signed.s, v=signed.v)


def recover_signer(message: SignableMessage, signature: RecoverableSignature | bytes | str) -> str:
    """
    Recover the checksummed signer address of a signed message.

    Raises:
        FormatError: On a malformed signature.
        SignatureMismatchError: If the signature is high-s or no public
            key can be recovered from it.
    """
    sig = signature if isinstance(signature, RecoverableSignature) else RecoverableSignature.from_bytes(signature)
    if sig.s > SECP256K1_N // 2:
        raise SignatureMismatchError("Signature s value is not canonical (high-s)")

    try:
        return Account.recover_message(message, signature=sig.to_bytes())
    except (BadSignature, ValueError) as e:
        raise SignatureMismatchError(f"Unable to recover a public key from signature: {e}") from e


__all__ = [
    "SECP256K1_N",
    "SIGNATURE_LENGTH",
    "RecoverableSignature",
    "load_signing_key",
    "signer_address",
    "sign_message",
    "recover_signer",
]
