"""Blob upload with publisher failover.

Publishers are interchangeable, so every attempt picks one uniformly at
random instead of rotating: a client that keeps landing on a dead publisher
would otherwise stay stuck on it. Each attempt also takes a fresh proxy from
the rotator, so a failed attempt's proxy is not reused on the next one.

Two response shapes are successful: ``newlyCreated`` (a new blob object) and
``alreadyCertified`` (the same content was stored before). Anything else,
and every transport error, is retried after a fixed delay until the attempt
budget runs out.
"""

from __future__ import annotations

import asyncio
import logging
import random

import httpx

from sealbatch.errors import UploadExhaustedError, UploadResponseError
from sealbatch.proxy.manager import ProxyRotator

logger = logging.getLogger(__name__)


def parse_blob_id(data: object) -> str:
    """Extract the blob id from a publisher response body.

    Raises
    ------
    UploadResponseError
        If the body matches neither success shape or carries no blob id.
    """
    if not isinstance(data, dict):
        raise UploadResponseError()

    newly_created = data.get("newlyCreated")
    already_certified = data.get("alreadyCertified")
    if isinstance(newly_created, dict) and isinstance(newly_created.get("blobObject"), dict):
        blob_id = newly_created["blobObject"].get("blobId")
    elif isinstance(already_certified, dict):
        blob_id = already_certified.get("blobId")
    else:
        raise UploadResponseError()

    if not blob_id:
        raise UploadResponseError("Blob ID is missing in response")
    return str(blob_id)


class BlobPublisher:
    """Uploads payloads to a pool of storage publishers.

    Parameters
    ----------
    publisher_urls:
        Base ``.../v1/blobs`` URLs of interchangeable publishers.
    proxy_rotator:
        Optional rotator; one proxy handle is taken per attempt.
    rng:
        Random source for publisher selection (injectable for tests).
    """

    def __init__(
        self,
        publisher_urls: list[str],
        proxy_rotator: ProxyRotator | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if not publisher_urls:
            raise ValueError("at least one publisher URL is required")
        self._publisher_urls = list(publisher_urls)
        self._proxy_rotator = proxy_rotator
        self._rng = rng or random.Random()

    async def upload(
        self,
        payload: bytes,
        epochs: int = 1,
        max_attempts: int = 15,
        retry_delay: float = 5.0,
    ) -> str:
        """Upload *payload* and return its blob id.

        Performs at most *max_attempts* attempts, sleeping *retry_delay*
        seconds between consecutive attempts.

        Raises
        ------
        UploadExhaustedError
            If every attempt fails.
        """
        logger.info("Uploading blob for %d epoch(s) (%.2f KB)", epochs, len(payload) / 1024)
        last_error: Exception | None = None

        for attempt in range(1, max_attempts + 1):
            index = self._rng.randrange(len(self._publisher_urls))
            url = f"{self._publisher_urls[index]}?epochs={epochs}"
            proxy = self._proxy_rotator.build_transport() if self._proxy_rotator else None
            logger.info(
                "Attempt %d/%d: using publisher%d",
                attempt,
                max_attempts,
                index + 1,
                extra={"attempt": attempt, "endpoint": url},
            )

            try:
                async with httpx.AsyncClient(proxy=proxy) as client:
                    response = await client.put(
                        url,
                        content=payload,
                        headers={"Content-Type": "application/octet-stream"},
                    )
                response.raise_for_status()
                blob_id = parse_blob_id(response.json())
            except (httpx.HTTPError, ValueError, UploadResponseError) as exc:
                last_error = exc
                logger.warning(
                    "Upload failed on attempt %d: %s",
                    attempt,
                    exc,
                    extra={"attempt": attempt, "endpoint": url, "error_reason": str(exc)},
                )
                if attempt < max_attempts:
                    logger.info("Retrying in %.0f seconds...", retry_delay)
                    await asyncio.sleep(retry_delay)
                continue

            logger.info("Blob uploaded successfully: %s", blob_id, extra={"attempt": attempt})
            return blob_id

        logger.error("Max retries (%d) reached. Giving up.", max_attempts)
        raise UploadExhaustedError(
            attempts=max_attempts,
            last_error=str(last_error) if last_error else None,
        )
