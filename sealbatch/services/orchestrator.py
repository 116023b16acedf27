"""Batch orchestrator: runs the selected workflows for every wallet.

Wallets are processed strictly one after another. Nothing that goes wrong
for one wallet (an undecodable credential, a failed ledger call, an
exhausted upload) leaves that wallet's handling block: it is logged and
recorded as a failed identity, and the batch moves on.

At the end of the run the failed identities replace the failed-wallets
file; a clean run deletes it.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sealbatch.models import (
    BatchReport,
    TaskSelection,
    WalletReport,
    WorkflowParams,
    WorkflowResult,
)
from sealbatch.services.failed_store import FailedWalletStore
from sealbatch.services.workflow import WorkflowExecutor
from sealbatch.wallets.keys import WalletKey

logger = logging.getLogger(__name__)

KeyFactory = Callable[[str], WalletKey]


class BatchOrchestrator:
    """Iterates wallets, isolates their failures and persists the failed set.

    Parameters
    ----------
    executor:
        Runs a single workflow for a single wallet.
    failed_store:
        Failed-wallets file, rewritten at the end of every run.
    key_factory:
        Turns a credential string into a wallet key (defaults to the
        recognizer-based decoder).
    """

    def __init__(
        self,
        *,
        executor: WorkflowExecutor,
        failed_store: FailedWalletStore,
        key_factory: KeyFactory = WalletKey.from_credential,
    ) -> None:
        self._executor = executor
        self._failed_store = failed_store
        self._key_factory = key_factory

    async def run_batch(
        self,
        credentials: list[str],
        selection: TaskSelection,
        params: WorkflowParams,
        only_identities: set[str] | None = None,
    ) -> BatchReport:
        """Run *selection* for each credential and persist the failures.

        When *only_identities* is given (targeted retry), wallets whose
        address is not in it are skipped, and credentials that cannot be
        decoded are logged and skipped instead of being recorded as failed.
        """
        report = BatchReport()
        targets = self._select(credentials, only_identities)
        logger.info("Processing %d wallet(s)", len(targets))

        for position, (index, key, decode_error) in enumerate(targets, start=1):
            logger.info("Wallet %d of %d", position, len(targets))
            wallet_report = await self._run_wallet(index, key, decode_error, selection, params)
            report.wallets.append(wallet_report)
            if not wallet_report.succeeded and wallet_report.identity:
                report.failed_identities.add(wallet_report.identity)

        report.completed_at = datetime.now()
        self._failed_store.save(report.failed_identities)

        if report.succeeded:
            logger.info("All %d wallet(s) completed successfully", len(report.wallets))
        else:
            logger.warning(
                "%d of %d wallet(s) failed", len(report.failed_wallets), len(report.wallets)
            )
        return report

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _select(
        self, credentials: list[str], only_identities: set[str] | None
    ) -> list[tuple[int, WalletKey | None, str | None]]:
        """Decode keys up front and apply targeted-retry filtering.

        Returns ``(index, key, decode_error)`` triples; ``key`` is None and
        ``decode_error`` is set when a credential could not be decoded (full
        runs only).
        """
        selected: list[tuple[int, WalletKey | None, str | None]] = []
        for index, credential in enumerate(credentials):
            try:
                key = self._key_factory(credential)
            except Exception as exc:
                if only_identities is not None:
                    logger.warning(
                        "Skipping wallet #%d in retry mode: cannot derive address (%s)",
                        index + 1,
                        exc,
                    )
                    continue
                logger.error("Cannot derive address for wallet #%d: %s", index + 1, exc)
                selected.append((index, None, str(exc) or exc.__class__.__name__))
                continue

            if only_identities is not None and key.address not in only_identities:
                continue
            selected.append((index, key, None))

        if only_identities is not None:
            found = {key.address for _, key, _ in selected if key is not None}
            missing = only_identities - found
            if missing:
                logger.warning(
                    "%d failed wallet(s) have no matching credential: %s",
                    len(missing),
                    ", ".join(sorted(missing)),
                )
        return selected

    async def _run_wallet(
        self,
        index: int,
        key: WalletKey | None,
        decode_error: str | None,
        selection: TaskSelection,
        params: WorkflowParams,
    ) -> WalletReport:
        if key is None:
            return WalletReport(index=index, identity=None, error=decode_error)

        wallet_report = WalletReport(index=index, identity=key.address)
        started_at = datetime.now()
        logger.info("Wallet ready: %s", key.address, extra={"wallet": key.address})

        for kind in selection.kinds:
            try:
                result = await self._executor.run(key, kind, params)
            except Exception as exc:
                logger.exception("Unexpected error in %s workflow", kind.value)
                result = WorkflowResult(kind=kind, error=str(exc) or exc.__class__.__name__)
            wallet_report.results[kind] = result
            if not result.succeeded:
                logger.error(
                    "Wallet %s failed %s workflow: %s",
                    key.address,
                    kind.value,
                    result.error,
                    extra={"wallet": key.address, "workflow": kind.value},
                )

        duration_ms = (datetime.now() - started_at).total_seconds() * 1000
        logger.info(
            "Wallet %s finished (duration_ms=%.0f)",
            key.address,
            duration_ms,
            extra={"wallet": key.address, "duration_ms": round(duration_ms)},
        )
        return wallet_report
