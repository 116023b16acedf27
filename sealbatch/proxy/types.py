"""Proxy data models for the proxy rotator."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import quote


@dataclass(frozen=True)
class ProxyAuth:
    """Basic-auth credentials for a forward proxy."""

    username: str
    password: str


@dataclass(frozen=True)
class ProxyEntry:
    """A single forward proxy parsed from the proxy file."""

    host: str
    port: str
    auth: ProxyAuth | None = None

    @property
    def address(self) -> str:
        return f"{self.host}:{self.port}"

    @property
    def url(self) -> str:
        """Proxy URL with basic auth embedded when credentials are present."""
        if self.auth and self.auth.username and self.auth.password:
            user = quote(self.auth.username, safe="")
            password = quote(self.auth.password, safe="")
            return f"http://{user}:{password}@{self.host}:{self.port}"
        return f"http://{self.host}:{self.port}"
