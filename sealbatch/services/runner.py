"""Batch runner: startup checks plus one orchestrator invocation.

Wires the components together from settings, loads credentials, checks that
the ledger node is reachable, runs the batch, and reports a structured
RunOutcome:

- SUCCEEDED: every selected workflow succeeded for every wallet
- RETRYABLE: some wallets failed, or the ledger was unreachable at startup
- FATAL: no credentials are available, so retrying cannot help
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from sealbatch.config.settings import BatchSettings
from sealbatch.errors import LedgerUnavailableError, NoCredentialsError
from sealbatch.ledger.client import SuiRpcClient
from sealbatch.models import RunOutcome, RunStatus, TaskSelection, WorkflowParams
from sealbatch.proxy.manager import ProxyRotator
from sealbatch.services.failed_store import FailedWalletStore
from sealbatch.services.orchestrator import BatchOrchestrator
from sealbatch.services.workflow import WorkflowExecutor
from sealbatch.storage.images import ImageLoader
from sealbatch.storage.publisher import BlobPublisher
from sealbatch.wallets.loader import (
    combine_credentials,
    load_credentials,
    load_single_credential,
)

logger = logging.getLogger(__name__)


@dataclass
class RunOptions:
    """What a batch run does for each wallet."""

    selection: TaskSelection = TaskSelection.BOTH
    params: WorkflowParams = field(default_factory=WorkflowParams)


def load_all_credentials(settings: BatchSettings) -> list[str]:
    """Combine the wallet file and the single-key file.

    Raises
    ------
    NoCredentialsError
        If neither source yields a credential.
    """
    single = load_single_credential(settings.private_key_file)
    credentials = combine_credentials(
        load_credentials(settings.wallet_file),
        [single] if single else [],
    )
    if not credentials:
        raise NoCredentialsError(
            f"No wallet found. Add credentials to {settings.wallet_file} "
            f"or {settings.private_key_file}."
        )
    return credentials


class BatchRunner:
    """Builds the component graph and runs one batch.

    Parameters
    ----------
    settings:
        Runner configuration.
    ledger:
        Ledger client; a SuiRpcClient for ``settings.rpc_url`` by default.
    proxy_rotator:
        Pre-loaded rotator; loaded from ``settings.proxy_file`` by default.
    """

    def __init__(
        self,
        settings: BatchSettings,
        *,
        ledger: SuiRpcClient | None = None,
        proxy_rotator: ProxyRotator | None = None,
        image_loader: ImageLoader | None = None,
        publisher: BlobPublisher | None = None,
    ) -> None:
        self._settings = settings
        self._ledger = ledger or SuiRpcClient(settings.rpc_url, settings.package_id)

        if proxy_rotator is None:
            proxy_rotator = ProxyRotator()
            proxy_rotator.load_from_file(settings.proxy_file)
        self.proxy_rotator = proxy_rotator

        self.failed_store = FailedWalletStore(settings.failed_wallets_file)
        self.image_loader = image_loader or ImageLoader(
            proxy_rotator,
            probe_timeout_seconds=settings.image_probe_timeout_seconds,
            default_url=settings.default_image_url,
        )
        executor = WorkflowExecutor(
            ledger=self._ledger,
            publisher=publisher or BlobPublisher(settings.publisher_urls, proxy_rotator),
            image_loader=self.image_loader,
            settings=settings,
        )
        self._orchestrator = BatchOrchestrator(executor=executor, failed_store=self.failed_store)

    async def run(
        self,
        options: RunOptions,
        only_identities: set[str] | None = None,
        credentials: list[str] | None = None,
    ) -> RunOutcome:
        """Run one batch; never raises for expected startup or wallet failures.

        ``credentials`` skips reloading the wallet files when the caller has
        already loaded them.
        """
        if not credentials:
            try:
                credentials = load_all_credentials(self._settings)
            except NoCredentialsError as exc:
                logger.error("%s", exc.message)
                return RunOutcome(RunStatus.FATAL, message=exc.message)

        try:
            await self._ledger.check_connection(timeout=self._settings.connection_timeout_seconds)
        except LedgerUnavailableError as exc:
            logger.error("%s", exc.message)
            return RunOutcome(RunStatus.RETRYABLE, message=exc.message)

        report = await self._orchestrator.run_batch(
            credentials, options.selection, options.params, only_identities=only_identities
        )
        if report.succeeded:
            return RunOutcome(RunStatus.SUCCEEDED, report=report)
        return RunOutcome(
            RunStatus.RETRYABLE,
            report=report,
            message=f"{len(report.failed_wallets)} wallet(s) failed",
        )
