"""Failed-wallet persistence.

The failed-wallets file lists one wallet address per line. It is rewritten
in full at the end of every batch run (never appended) and deleted when the
run had no failures, so its absence means "no known failures". Lines are
written sorted so identical failure sets produce identical files.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from sealbatch.logging_config import register_public_ids

logger = logging.getLogger(__name__)


class FailedWalletStore:
    """Reads and rewrites the failed-wallets file."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def load(self) -> set[str]:
        """Return the recorded identities, or an empty set when there is no file."""
        if not self._path.exists():
            return set()
        try:
            text = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            logger.error("Error reading failed wallets from %s: %s", self._path, exc)
            return set()
        identities = {
            line.strip()
            for line in text.splitlines()
            if line.strip() and not line.strip().startswith("#")
        }
        register_public_ids(*identities)
        return identities

    def save(self, identities: Iterable[str]) -> None:
        """Replace the file with *identities*; an empty set deletes it."""
        unique = sorted(set(identities))
        if not unique:
            self.clear()
            return
        self._path.write_text("\n".join(unique) + "\n", encoding="utf-8")
        logger.info("Saved %d failed wallet(s) to %s", len(unique), self._path)

    def clear(self) -> None:
        if self._path.exists():
            self._path.unlink()
            logger.info("Removed stale failed wallets file %s", self._path)
