"""Wallet credential loading.

Credentials are opaque strings (bech32 private keys, hex or base64 secrets,
or mnemonic phrases); this layer never inspects their shape. Missing files
are not fatal here: deciding that an empty credential set aborts the run is
the caller's job.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


def load_credentials(path: str) -> list[str]:
    """Load one credential per line, skipping blanks and ``#`` comments."""
    wallet_path = Path(path)
    if not wallet_path.exists():
        logger.warning("Wallet file %s not found.", path)
        return []

    try:
        text = wallet_path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.error("Error loading wallets from %s: %s", path, exc)
        return []

    credentials = [
        line.strip()
        for line in text.splitlines()
        if line.strip() and not line.strip().startswith("#")
    ]
    logger.info("Loaded %d wallet(s) from %s", len(credentials), path)
    return credentials


def load_single_credential(path: str) -> str | None:
    """Read a file whose entire trimmed contents are one credential."""
    key_path = Path(path)
    if not key_path.exists():
        return None

    try:
        credential = key_path.read_text(encoding="utf-8").strip()
    except OSError as exc:
        logger.error("Error reading credential file %s: %s", path, exc)
        return None

    if not credential:
        logger.warning("Credential file %s is empty.", path)
        return None

    logger.info("Using wallet from %s", path)
    return credential


def combine_credentials(*sources: Iterable[str]) -> list[str]:
    """Merge credential sources, keeping first-seen order and dropping repeats."""
    seen: set[str] = set()
    combined: list[str] = []
    for source in sources:
        for credential in source:
            if credential in seen:
                continue
            seen.add(credential)
            combined.append(credential)
    return combined
