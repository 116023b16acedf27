"""Single-run lock file.

Held for the whole of a manual run, or of a scheduled run including its retry
chain, so a second process (or an overlapping firing) cannot start a batch
that would race on the failed-wallets file. The lock records the holder's PID; a lock
left behind by a process that no longer exists is taken over.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from sealbatch.errors import RunInProgressError

logger = logging.getLogger(__name__)


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class RunLock:
    """Exclusive lock file usable as a context manager."""

    def __init__(self, path: str) -> None:
        self._path = Path(path)
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def acquire(self) -> None:
        """Create the lock file.

        Raises
        ------
        RunInProgressError
            If a live process already holds the lock.
        """
        for _ in range(2):
            try:
                fd = os.open(self._path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
            except FileExistsError:
                if not self._remove_stale():
                    raise RunInProgressError(lock_file=str(self._path)) from None
                continue
            with os.fdopen(fd, "w") as handle:
                handle.write(str(os.getpid()))
            self._held = True
            return
        raise RunInProgressError(lock_file=str(self._path))

    def release(self) -> None:
        if not self._held:
            return
        self._held = False
        try:
            self._path.unlink()
        except FileNotFoundError:
            logger.warning("Run lock %s disappeared before release", self._path)

    def _remove_stale(self) -> bool:
        """Delete the lock if its holder is gone; True when removed."""
        try:
            pid = int(self._path.read_text(encoding="utf-8").strip() or "0")
        except (OSError, ValueError):
            pid = 0
        if pid and _pid_alive(pid):
            return False
        logger.warning("Removing stale run lock %s (pid %s)", self._path, pid or "unknown")
        try:
            self._path.unlink()
        except FileNotFoundError:
            pass
        return True

    def __enter__(self) -> RunLock:
        self.acquire()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.release()
