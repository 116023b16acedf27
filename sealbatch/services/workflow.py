"""Workflow executor: runs one workflow for one wallet.

Allow-list workflow, per iteration:
create allow-list → add own address → add extra addresses → load payload →
upload blob → publish blob to the allow-list.

Subscription workflow, per iteration:
create service entry → load payload → upload blob → publish blob to the
subscription.

A failing step aborts the rest of that workflow invocation, later iterations
included. The failure is captured in the returned WorkflowResult together
with the iterations that already completed; it never affects other workflows
of the same wallet.
"""

from __future__ import annotations

import logging
import random

from sealbatch.config.settings import BatchSettings
from sealbatch.ledger.client import LedgerGateway
from sealbatch.ledger.seal import SealContracts, random_entry_name
from sealbatch.models import (
    AllowlistRecord,
    SubscriptionRecord,
    WorkflowKind,
    WorkflowParams,
    WorkflowResult,
)
from sealbatch.storage.images import ImageLoader, ImageSource
from sealbatch.storage.publisher import BlobPublisher
from sealbatch.wallets.keys import WalletKey

logger = logging.getLogger(__name__)


class WorkflowExecutor:
    """Executes allow-list and subscription workflows.

    Dependencies are injected via the constructor so the executor is
    testable without a ledger node or publishers.
    """

    def __init__(
        self,
        *,
        ledger: LedgerGateway,
        publisher: BlobPublisher,
        image_loader: ImageLoader,
        settings: BatchSettings,
        rng: random.Random | None = None,
    ) -> None:
        self._ledger = ledger
        self._publisher = publisher
        self._image_loader = image_loader
        self._settings = settings
        self._rng = rng or random.Random()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run(
        self, wallet: WalletKey, kind: WorkflowKind, params: WorkflowParams
    ) -> WorkflowResult:
        """Run *kind* for *wallet* ``params.count`` times.

        Never raises for step failures: the error is captured on the result.
        """
        result = WorkflowResult(kind=kind)
        contracts = SealContracts(self._ledger, wallet, self._settings.gas_budget)
        log_extra = {"wallet": wallet.address, "workflow": kind.value}

        logger.info(
            "Starting %s workflow for %d iteration(s)", kind.value, params.count, extra=log_extra
        )
        try:
            source = await self._resolve_source(params)
            for iteration in range(1, params.count + 1):
                logger.info(
                    "Processing %s %d of %d", kind.value, iteration, params.count, extra=log_extra
                )
                if kind is WorkflowKind.ALLOWLIST:
                    record = await self._allowlist_iteration(contracts, source, params)
                else:
                    record = await self._subscription_iteration(contracts, source)
                result.records.append(record)
        except Exception as exc:
            result.error = str(exc) or exc.__class__.__name__
            logger.error(
                "%s workflow failed: %s",
                kind.value.capitalize(),
                result.error,
                extra={**log_extra, "error_reason": result.error},
            )
            return result

        logger.info("%s workflow completed successfully", kind.value.capitalize(), extra=log_extra)
        return result

    # ------------------------------------------------------------------
    # Workflow steps
    # ------------------------------------------------------------------

    async def _allowlist_iteration(
        self, contracts: SealContracts, source: ImageSource, params: WorkflowParams
    ) -> AllowlistRecord:
        allowlist_id, entry_id = await contracts.create_allowlist(random_entry_name(self._rng))
        await contracts.add_to_allowlist(allowlist_id, entry_id, contracts.address)
        for address in params.extra_addresses:
            await contracts.add_to_allowlist(allowlist_id, entry_id, address)

        blob_id = await self._upload(source)
        await contracts.publish_to_allowlist(allowlist_id, entry_id, blob_id)
        return AllowlistRecord(allowlist_id=allowlist_id, entry_id=entry_id, blob_id=blob_id)

    async def _subscription_iteration(
        self, contracts: SealContracts, source: ImageSource
    ) -> SubscriptionRecord:
        shared_id, entry_id = await contracts.create_service(
            self._settings.service_amount,
            self._settings.service_duration_ms,
            random_entry_name(self._rng),
        )
        blob_id = await self._upload(source)
        await contracts.publish_to_subscription(shared_id, entry_id, blob_id)
        return SubscriptionRecord(shared_id=shared_id, entry_id=entry_id, blob_id=blob_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _resolve_source(self, params: WorkflowParams) -> ImageSource:
        """Pick the payload source; random images are chosen once per workflow."""
        if params.random_image:
            return await self._image_loader.random_url()
        if params.image_source is None:
            return self._settings.default_image_url
        return params.image_source

    async def _upload(self, source: ImageSource) -> str:
        payload = await self._image_loader.load(source)
        return await self._publisher.upload(
            payload,
            epochs=self._settings.blob_epochs,
            max_attempts=self._settings.upload_max_attempts,
            retry_delay=self._settings.upload_retry_delay_seconds,
        )
