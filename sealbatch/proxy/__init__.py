"""Proxy package: proxy file parsing and round-robin rotation."""

from sealbatch.proxy.manager import ProxyRotator, parse_proxy_line
from sealbatch.proxy.types import ProxyAuth, ProxyEntry

__all__ = ["ProxyAuth", "ProxyEntry", "ProxyRotator", "parse_proxy_line"]
