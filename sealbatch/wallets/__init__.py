"""Wallet credentials: loading and key decoding."""

from sealbatch.wallets.keys import KeyFormat, KeyRecognizer, RECOGNIZERS, WalletKey, recognize
from sealbatch.wallets.loader import combine_credentials, load_credentials, load_single_credential

__all__ = [
    "KeyFormat",
    "KeyRecognizer",
    "RECOGNIZERS",
    "WalletKey",
    "combine_credentials",
    "load_credentials",
    "load_single_credential",
    "recognize",
]
