"""Error hierarchy for the batch runner.

All runner-specific errors extend SealBatchError. Errors raised inside a
wallet's workflows are caught by the batch orchestrator and turned into a
failed-wallet record; errors that reach the CLI are mapped to ``exit_code``.
"""

from __future__ import annotations


class SealBatchError(Exception):
    """Base error for all runner-specific errors."""

    exit_code: int = 1
    message: str = "Unexpected runner error"

    def __init__(self, message: str | None = None, **kwargs: object) -> None:
        self.message = message or self.__class__.message
        self.details = kwargs
        super().__init__(self.message)


class NoCredentialsError(SealBatchError):
    """No wallet credential available from any source."""

    message = "No wallet credentials found"


class KeyDecodeError(SealBatchError):
    """A credential could not be decoded into a wallet key."""

    message = "Could not decode wallet credential"


class LedgerUnavailableError(SealBatchError):
    """Startup connection check against the ledger RPC failed."""

    message = "Ledger RPC endpoint is unreachable"


class LedgerCallError(SealBatchError):
    """A ledger call was rejected or failed to execute."""

    message = "Ledger call failed"


class LedgerResponseError(LedgerCallError):
    """A ledger call succeeded but the response lacks the expected objects."""

    message = "Unexpected ledger response"


class ImageSourceError(SealBatchError):
    """The payload could not be obtained from its source."""

    message = "Could not load image payload"


class UploadResponseError(SealBatchError):
    """A publisher answered with a response that carries no blob id."""

    message = "Invalid response structure from publisher"


class UploadExhaustedError(SealBatchError):
    """Every upload attempt failed."""

    message = "Failed to upload blob after maximum retries"


class RunInProgressError(SealBatchError):
    """Another batch run holds the run lock."""

    message = "A batch run is already in progress"
