"""Proxy rotator with round-robin selection.

Proxies are loaded from a line-oriented file. Three shapes are accepted::

    host:port
    host:port:user:pass
    user:pass@host:port

Any other shape is dropped with a warning. Each outbound call asks the rotator
for a fresh transport handle, so consecutive calls fan out across every
configured proxy. An empty rotator hands out no proxy and never raises.
"""

from __future__ import annotations

import logging
from pathlib import Path

import httpx

from sealbatch.proxy.types import ProxyAuth, ProxyEntry

logger = logging.getLogger(__name__)


def parse_proxy_line(line: str) -> ProxyEntry | None:
    """Parse one proxy line into a ProxyEntry, or None for unsupported shapes."""
    line = line.strip()
    if not line:
        return None

    if "@" in line:
        auth_part, _, host_part = line.partition("@")
        auth_fields = auth_part.split(":")
        host_fields = host_part.split(":")
        if len(auth_fields) != 2 or len(host_fields) != 2:
            return None
        username, password = auth_fields
        host, port = host_fields
        if not all((username, password, host, port)):
            return None
        return ProxyEntry(host=host, port=port, auth=ProxyAuth(username, password))

    fields = line.split(":")
    if len(fields) == 4:
        host, port, username, password = fields
        if not all((host, port, username, password)):
            return None
        return ProxyEntry(host=host, port=port, auth=ProxyAuth(username, password))

    if len(fields) == 2:
        host, port = fields
        if not host or not port:
            return None
        return ProxyEntry(host=host, port=port)

    return None


class ProxyRotator:
    """Owns an ordered proxy list and its rotation index."""

    def __init__(self, proxies: list[ProxyEntry] | None = None) -> None:
        self._proxies: list[ProxyEntry] = list(proxies or [])
        self._index: int = 0
        self._usage: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._proxies)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_from_file(self, path: str) -> list[ProxyEntry]:
        """Replace the pool with proxies parsed from *path*.

        A missing or empty file is not fatal: the rotator proceeds without
        proxies and a warning is logged.
        """
        self._proxies = []
        self._index = 0
        self._usage = {}

        proxy_path = Path(path)
        if not proxy_path.exists():
            logger.warning("Proxy file %s not found. Will proceed without proxies.", path)
            return []

        try:
            lines = proxy_path.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            logger.error("Error loading proxies from %s: %s", path, exc)
            return []

        for lineno, raw in enumerate(lines, start=1):
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            entry = parse_proxy_line(line)
            if entry is None:
                logger.warning("Skipping unsupported proxy format on line %d of %s", lineno, path)
                continue
            self._proxies.append(entry)

        if self._proxies:
            logger.info("Loaded %d proxies from %s", len(self._proxies), path)
        else:
            logger.warning("No proxies found in %s. Will proceed without proxies.", path)
        return list(self._proxies)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def next(self) -> ProxyEntry | None:
        """Return the next proxy in round-robin order, or None when empty."""
        if not self._proxies:
            return None

        proxy = self._proxies[self._index]
        self._index = (self._index + 1) % len(self._proxies)
        self._usage[proxy.address] = self._usage.get(proxy.address, 0) + 1
        return proxy

    def build_transport(self) -> httpx.Proxy | None:
        """Build a forward-proxy handle for a single outbound call."""
        proxy = self.next()
        if proxy is None:
            return None

        logger.debug("Using proxy: %s", proxy.address, extra={"proxy_used": proxy.address})
        return httpx.Proxy(proxy.url)

    # ------------------------------------------------------------------
    # Stats
    # ------------------------------------------------------------------

    def get_stats(self) -> dict:
        """Return pool statistics for the run summary."""
        return {
            "total": len(self._proxies),
            "authenticated": sum(1 for p in self._proxies if p.auth is not None),
            "proxies": [
                {
                    "address": p.address,
                    "authenticated": p.auth is not None,
                    "uses": self._usage.get(p.address, 0),
                }
                for p in self._proxies
            ],
        }
