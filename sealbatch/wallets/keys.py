"""Wallet key decoding, Sui address derivation and transaction signing.

Credentials come in several shapes. Each shape is handled by a named
recognizer (a predicate plus a decoder); recognizers are tried in a fixed
priority order and the mnemonic recognizer matches everything else:

1. ``suiprivkey1...``  bech32-encoded flag byte + 32-byte secret
2. ``0x...`` or 64 hex characters
3. 44-character base64 (flag byte + 32-byte secret)
4. BIP-39 mnemonic, derived along ``m/44'/784'/0'/0'/0'`` (SLIP-0010)

Only Ed25519 keys are supported.
"""

from __future__ import annotations

import base64
import hashlib
import hmac
import re
import struct
import unicodedata
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from bech32 import bech32_decode, convertbits
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PublicFormat

from sealbatch.errors import KeyDecodeError
from sealbatch.logging_config import register_public_ids

ED25519_FLAG = 0x00
SUI_PRIVATE_KEY_PREFIX = "suiprivkey"
SUI_DERIVATION_PATH = (44, 784, 0, 0, 0)

_HARDENED = 0x80000000
_HEX_SECRET = re.compile(r"^[0-9a-fA-F]{64}$")
_BASE64_SECRET = re.compile(r"^[A-Za-z0-9+/=]+$")
_MNEMONIC_LENGTHS = (12, 15, 18, 21, 24)

# Intent prefix for transaction data: scope=0, version=0, app_id=0
_TRANSACTION_INTENT = bytes([0, 0, 0])


class KeyFormat(str, Enum):
    """Credential shapes understood by the recognizers."""

    BECH32 = "bech32"
    HEX = "hex"
    BASE64 = "base64"
    MNEMONIC = "mnemonic"


def _strip_flag(raw: bytes, source: str) -> bytes:
    """Return the 32-byte Ed25519 secret from a raw key, dropping a scheme flag."""
    if len(raw) == 33:
        if raw[0] != ED25519_FLAG:
            raise KeyDecodeError(f"Unsupported key scheme flag 0x{raw[0]:02x} in {source} key")
        return raw[1:]
    if len(raw) == 64:
        # secret || public key
        return raw[:32]
    if len(raw) == 32:
        return raw
    raise KeyDecodeError(f"Invalid {source} key length: {len(raw)} bytes")


def _decode_bech32(credential: str) -> bytes:
    hrp, data = bech32_decode(credential)
    if hrp != SUI_PRIVATE_KEY_PREFIX or data is None:
        raise KeyDecodeError("Invalid suiprivkey checksum or prefix")
    raw = convertbits(data, 5, 8, False)
    if raw is None:
        raise KeyDecodeError("Invalid suiprivkey payload")
    raw_bytes = bytes(raw)
    if len(raw_bytes) != 33:
        raise KeyDecodeError(f"Invalid suiprivkey length: {len(raw_bytes)} bytes")
    return _strip_flag(raw_bytes, "bech32")


def _decode_hex(credential: str) -> bytes:
    digits = credential[2:] if credential.startswith("0x") else credential
    try:
        raw = bytes.fromhex(digits)
    except ValueError as exc:
        raise KeyDecodeError("Invalid hex private key") from exc
    return _strip_flag(raw, "hex")


def _decode_base64(credential: str) -> bytes:
    try:
        raw = base64.b64decode(credential, validate=True)
    except ValueError as exc:
        raise KeyDecodeError("Invalid base64 private key") from exc
    return _strip_flag(raw, "base64")


def mnemonic_to_seed(mnemonic: str, passphrase: str = "") -> bytes:
    """BIP-39 seed from a mnemonic phrase (no wordlist validation)."""
    normalized = unicodedata.normalize("NFKD", " ".join(mnemonic.split()))
    salt = unicodedata.normalize("NFKD", "mnemonic" + passphrase)
    return hashlib.pbkdf2_hmac("sha512", normalized.encode("utf-8"), salt.encode("utf-8"), 2048)


def derive_ed25519_secret(seed: bytes, path: tuple[int, ...] = SUI_DERIVATION_PATH) -> bytes:
    """SLIP-0010 Ed25519 derivation; every path segment is hardened."""
    digest = hmac.new(b"ed25519 seed", seed, hashlib.sha512).digest()
    key, chain_code = digest[:32], digest[32:]
    for index in path:
        data = b"\x00" + key + struct.pack(">I", index | _HARDENED)
        digest = hmac.new(chain_code, data, hashlib.sha512).digest()
        key, chain_code = digest[:32], digest[32:]
    return key


def _decode_mnemonic(credential: str) -> bytes:
    words = credential.split()
    if len(words) not in _MNEMONIC_LENGTHS:
        raise KeyDecodeError(
            f"Unrecognized credential format ({len(words)} words, expected a mnemonic "
            f"of {'/'.join(str(n) for n in _MNEMONIC_LENGTHS)} words)"
        )
    return derive_ed25519_secret(mnemonic_to_seed(credential))


@dataclass(frozen=True)
class KeyRecognizer:
    """A named credential shape: a predicate and the decoder it selects."""

    format: KeyFormat
    matches: Callable[[str], bool]
    decode: Callable[[str], bytes]


RECOGNIZERS: tuple[KeyRecognizer, ...] = (
    KeyRecognizer(
        KeyFormat.BECH32,
        lambda c: c.startswith(SUI_PRIVATE_KEY_PREFIX),
        _decode_bech32,
    ),
    KeyRecognizer(
        KeyFormat.HEX,
        lambda c: c.startswith("0x") or bool(_HEX_SECRET.match(c)),
        _decode_hex,
    ),
    KeyRecognizer(
        KeyFormat.BASE64,
        lambda c: len(c) == 44 and bool(_BASE64_SECRET.match(c)),
        _decode_base64,
    ),
    KeyRecognizer(KeyFormat.MNEMONIC, lambda c: True, _decode_mnemonic),
)


def recognize(credential: str) -> KeyRecognizer:
    """Return the first recognizer whose predicate accepts *credential*."""
    for recognizer in RECOGNIZERS:
        if recognizer.matches(credential):
            return recognizer
    raise KeyDecodeError("No recognizer accepted the credential")  # pragma: no cover


def address_from_public_key(public_key: bytes) -> str:
    """Sui address: blake2b-256 over the scheme flag and the public key."""
    digest = hashlib.blake2b(bytes([ED25519_FLAG]) + public_key, digest_size=32).digest()
    address = "0x" + digest.hex()
    register_public_ids(address)
    return address


class WalletKey:
    """Ed25519 signer for one wallet."""

    def __init__(self, secret: bytes, key_format: KeyFormat = KeyFormat.HEX) -> None:
        if len(secret) != 32:
            raise KeyDecodeError(f"Ed25519 secret must be 32 bytes, got {len(secret)}")
        self._private_key = Ed25519PrivateKey.from_private_bytes(secret)
        self.key_format = key_format
        self.public_key = self._private_key.public_key().public_bytes(
            Encoding.Raw, PublicFormat.Raw
        )
        self.address = address_from_public_key(self.public_key)

    @classmethod
    def from_credential(cls, credential: str) -> WalletKey:
        """Decode a credential string using the first matching recognizer.

        Raises
        ------
        KeyDecodeError
            If the credential cannot be decoded into an Ed25519 secret.
        """
        credential = credential.strip()
        if not credential:
            raise KeyDecodeError("Empty credential")
        recognizer = recognize(credential)
        return cls(recognizer.decode(credential), recognizer.format)

    def sign_transaction(self, tx_bytes: bytes) -> str:
        """Sign transaction bytes and return the serialized signature (base64).

        The signed message is the blake2b-256 digest of the transaction
        intent prefix followed by the transaction bytes.
        """
        digest = hashlib.blake2b(_TRANSACTION_INTENT + tx_bytes, digest_size=32).digest()
        signature = self._private_key.sign(digest)
        return base64.b64encode(bytes([ED25519_FLAG]) + signature + self.public_key).decode("ascii")

    def __repr__(self) -> str:
        return f"WalletKey(address={self.address!r}, format={self.key_format.value!r})"
