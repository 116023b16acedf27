"""Unit tests for credential recognizers, address derivation and signing."""

import base64
import hashlib

import pytest
from bech32 import bech32_encode, convertbits
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PublicKey

from sealbatch.errors import KeyDecodeError
from sealbatch.wallets.keys import (
    KeyFormat,
    WalletKey,
    address_from_public_key,
    derive_ed25519_secret,
    mnemonic_to_seed,
    recognize,
)

SECRET = bytes(range(1, 33))
SECRET_HEX = SECRET.hex()
MNEMONIC_12 = " ".join(["abandon"] * 11 + ["about"])


def _bech32(secret: bytes) -> str:
    return bech32_encode("suiprivkey", convertbits(bytes([0]) + secret, 8, 5))


class TestRecognize:
    """Recognizers are tried in a fixed priority order."""

    def test_bech32(self):
        assert recognize(_bech32(SECRET)).format is KeyFormat.BECH32

    def test_prefixed_hex(self):
        assert recognize("0x" + SECRET_HEX).format is KeyFormat.HEX

    def test_bare_hex(self):
        assert recognize(SECRET_HEX).format is KeyFormat.HEX

    def test_base64(self):
        encoded = base64.b64encode(bytes([0]) + SECRET).decode()
        assert len(encoded) == 44
        assert recognize(encoded).format is KeyFormat.BASE64

    def test_mnemonic_is_the_fallback(self):
        assert recognize(MNEMONIC_12).format is KeyFormat.MNEMONIC
        assert recognize("anything else").format is KeyFormat.MNEMONIC


class TestWalletKey:
    def test_every_encoding_of_one_secret_yields_the_same_address(self):
        hex_key = WalletKey.from_credential(SECRET_HEX)
        encodings = [
            "0x" + SECRET_HEX,
            "0x00" + SECRET_HEX,
            _bech32(SECRET),
            base64.b64encode(bytes([0]) + SECRET).decode(),
        ]
        for credential in encodings:
            assert WalletKey.from_credential(credential).address == hex_key.address

    def test_address_shape(self):
        key = WalletKey(SECRET)
        assert key.address.startswith("0x")
        assert len(key.address) == 66
        assert key.address == address_from_public_key(key.public_key)

    def test_address_is_blake2b_of_flag_and_public_key(self):
        key = WalletKey(SECRET)
        expected = hashlib.blake2b(b"\x00" + key.public_key, digest_size=32).hexdigest()
        assert key.address == "0x" + expected

    def test_key_format_is_recorded(self):
        assert WalletKey.from_credential(_bech32(SECRET)).key_format is KeyFormat.BECH32

    def test_credential_is_stripped(self):
        assert WalletKey.from_credential(f"  {SECRET_HEX}\n").address == WalletKey(SECRET).address

    def test_repr_does_not_leak_secret(self):
        assert SECRET_HEX not in repr(WalletKey(SECRET))

    @pytest.mark.parametrize(
        "credential",
        [
            "",
            "   ",
            "0xzz" + "0" * 62,
            "0x" + "ab" * 20,
            "not a key",
            "suiprivkey1qqqqqqqqqq",
            "0x01" + SECRET_HEX,
        ],
    )
    def test_undecodable_credentials_raise(self, credential):
        with pytest.raises(KeyDecodeError):
            WalletKey.from_credential(credential)

    def test_mnemonic_credential_derives_a_key(self):
        key = WalletKey.from_credential(MNEMONIC_12)
        assert key.key_format is KeyFormat.MNEMONIC
        assert key.address == WalletKey.from_credential(f"  {MNEMONIC_12}  ").address


class TestSigning:
    def test_signature_verifies_against_intent_digest(self):
        key = WalletKey(SECRET)
        tx_bytes = b"transaction-data"

        serialized = base64.b64decode(key.sign_transaction(tx_bytes))

        assert serialized[0] == 0x00
        assert serialized[65:] == key.public_key
        digest = hashlib.blake2b(b"\x00\x00\x00" + tx_bytes, digest_size=32).digest()
        Ed25519PublicKey.from_public_bytes(key.public_key).verify(serialized[1:65], digest)

    def test_signature_does_not_verify_for_other_bytes(self):
        key = WalletKey(SECRET)
        serialized = base64.b64decode(key.sign_transaction(b"one"))
        digest = hashlib.blake2b(b"\x00\x00\x00" + b"two", digest_size=32).digest()
        with pytest.raises(InvalidSignature):
            Ed25519PublicKey.from_public_bytes(key.public_key).verify(serialized[1:65], digest)


class TestDerivation:
    """Published BIP-39 and SLIP-0010 test vectors."""

    def test_bip39_seed(self):
        seed = mnemonic_to_seed(MNEMONIC_12, "TREZOR")
        assert seed.hex() == (
            "c55257c360c07c72029aebc1b53c05ed0362ada38ead3e3e9efa3708e53495531f"
            "09a6987599d18264c1e1c92f2cf141630c7a3c4ab7c81b2f001698e7463b04"
        )

    def test_slip10_master_key(self):
        seed = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
        assert derive_ed25519_secret(seed, ()).hex() == (
            "2b4be7f19ee27bbf30c667b642d5f4aa69fd169872f8fc3059c08ebae2eb19e7"
        )

    def test_slip10_first_hardened_child(self):
        seed = bytes.fromhex("000102030405060708090a0b0c0d0e0f")
        assert derive_ed25519_secret(seed, (0,)).hex() == (
            "68e0fe46dfb67e368c75379acec591dad19df3cde26e63b93a8e704f1dade7a3"
        )

    @pytest.mark.parametrize("words", [11, 13, 25])
    def test_mnemonic_length_is_checked(self, words):
        with pytest.raises(KeyDecodeError):
            WalletKey.from_credential(" ".join(["abandon"] * words))
