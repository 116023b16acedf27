"""Image payload resolution.

A payload source is tried in precedence order: an ``http(s)://`` URL is
downloaded (through the next proxy), an existing local path is read, and raw
bytes are used as-is.
"""

from __future__ import annotations

import logging
import random
from pathlib import Path

import httpx

from sealbatch.config.constants import DEFAULT_IMAGE_URL, RANDOM_IMAGE_SOURCES
from sealbatch.errors import ImageSourceError
from sealbatch.proxy.manager import ProxyRotator

logger = logging.getLogger(__name__)

ImageSource = str | Path | bytes


def is_url(source: object) -> bool:
    return isinstance(source, str) and source.lower().startswith(("http://", "https://"))


class ImageLoader:
    """Loads image payloads and picks random image URLs.

    Parameters
    ----------
    proxy_rotator:
        Optional rotator used for image downloads.
    probe_timeout_seconds:
        Timeout for each HEAD probe while looking for a random image.
    default_url:
        Fallback URL when every random image service fails.
    """

    def __init__(
        self,
        proxy_rotator: ProxyRotator | None = None,
        probe_timeout_seconds: float = 5.0,
        default_url: str = DEFAULT_IMAGE_URL,
        rng: random.Random | None = None,
    ) -> None:
        self._proxy_rotator = proxy_rotator
        self._probe_timeout = probe_timeout_seconds
        self._default_url = default_url
        self._rng = rng or random.Random()

    async def load(self, source: ImageSource) -> bytes:
        """Resolve *source* to payload bytes.

        Raises
        ------
        ImageSourceError
            If the URL cannot be fetched, the path cannot be read, or the
            source is neither.
        """
        if is_url(source):
            return await self._fetch(str(source))
        if isinstance(source, (str, Path)):
            path = Path(source)
            if path.is_file():
                return self._read(path)
            raise ImageSourceError(f"Image source is neither a URL nor a readable file: {source}")
        if isinstance(source, (bytes, bytearray)):
            return bytes(source)
        raise ImageSourceError(f"Unsupported image source type: {type(source).__name__}")

    async def _fetch(self, url: str) -> bytes:
        logger.info("Fetching image from URL %s", url)
        proxy = self._proxy_rotator.build_transport() if self._proxy_rotator else None
        try:
            async with httpx.AsyncClient(proxy=proxy, follow_redirects=True) as client:
                response = await client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ImageSourceError(f"Error fetching image from {url}: {exc}") from exc

        data = response.content
        logger.info("Image fetched: %.2f KB", len(data) / 1024)
        return data

    @staticmethod
    def _read(path: Path) -> bytes:
        logger.info("Loading local image %s", path)
        try:
            data = path.read_bytes()
        except OSError as exc:
            raise ImageSourceError(f"Error loading local image {path}: {exc}") from exc
        logger.info("Image loaded: %.2f KB", len(data) / 1024)
        return data

    async def random_url(self, width: int = 800, height: int = 600) -> str:
        """Return the first random image URL whose service answers a HEAD probe."""
        seed = self._rng.randrange(10_000)
        candidates = [
            template.format(width=width, height=height, seed=seed)
            for template in RANDOM_IMAGE_SOURCES
        ]

        for index, url in enumerate(candidates, start=1):
            logger.debug("Trying image source %d/%d", index, len(candidates))
            try:
                async with httpx.AsyncClient(follow_redirects=True) as client:
                    response = await client.head(url, timeout=self._probe_timeout)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                logger.debug("Image source %s failed: %s", url, exc)
                continue
            logger.info("Image source found: %s", url)
            return url

        logger.warning("All image sources failed. Using default image %s", self._default_url)
        return self._default_url
