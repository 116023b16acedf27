"""Scheduled retry driver.

Fires a batch run on a cron schedule and, when the run does not succeed,
layers a process-level retry chain on top of the orchestrator's own
per-wallet isolation:

    IDLE -> RUNNING -> SUCCEEDED -> IDLE
                    -> FAILED    -> IDLE (wait for the next firing)

After a retryable outcome the driver reads the failed-wallets file written
by the orchestrator. If it names identities, the next attempt is a targeted
retry of just those wallets; otherwise the whole batch is run again (blind
retry). Either way the driver sleeps ``retryDelayMs`` first, and the chain is
bounded by ``maxRetries``.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Awaitable, Callable
from datetime import datetime
from enum import Enum

from croniter import croniter

from sealbatch.config.schedule import ScheduleConfig
from sealbatch.errors import RunInProgressError
from sealbatch.models import RunOutcome, RunStatus
from sealbatch.scheduler.lock import RunLock
from sealbatch.services.failed_store import FailedWalletStore

logger = logging.getLogger(__name__)

# Receives the identities to restrict the run to, or None for a full run
RunCallable = Callable[[set[str] | None], Awaitable[RunOutcome]]


class DriverState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class RetryDriver:
    """Runs batches on a schedule with targeted or blind retries.

    Parameters
    ----------
    run:
        Coroutine function performing one batch run.
    config:
        Cron expression and retry policy.
    failed_store:
        The failed-wallets file the batch run writes.
    lock:
        Optional cross-process run lock held for a whole retry chain.
    """

    def __init__(
        self,
        *,
        run: RunCallable,
        config: ScheduleConfig,
        failed_store: FailedWalletStore,
        lock: RunLock | None = None,
    ) -> None:
        self._run = run
        self._config = config
        self._failed_store = failed_store
        self._lock = lock
        self._running = False
        self.state = DriverState.IDLE
        self.last_state: DriverState | None = None
        self.runs_started = 0

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_chain(self) -> RunOutcome:
        """Run once and retry until success, a fatal outcome or ``maxRetries``.

        Raises
        ------
        RunInProgressError
            If a chain is already active in this process or holds the lock.
        """
        if self._running:
            raise RunInProgressError("A retry chain is already running in this process")
        if self._lock is not None:
            self._lock.acquire()

        self._running = True
        self.state = DriverState.RUNNING
        try:
            outcome = await self._chain()
            if outcome.status is RunStatus.SUCCEEDED:
                self._failed_store.clear()
                self.last_state = DriverState.SUCCEEDED
                logger.info("Scheduled run completed successfully")
            else:
                self.last_state = DriverState.FAILED
                logger.error(
                    "Scheduled run failed (%s); waiting for the next scheduled time",
                    outcome.message or outcome.status.value,
                )
            return outcome
        finally:
            self._running = False
            self.state = DriverState.IDLE
            if self._lock is not None:
                self._lock.release()

    async def fire(self) -> RunOutcome | None:
        """Start a chain unless one is already active."""
        try:
            return await self.run_chain()
        except RunInProgressError as exc:
            logger.warning("Skipping scheduled run: %s", exc.message)
            return None

    async def serve_forever(self, run_now: bool = False) -> None:
        """Fire on every cron match; never returns unless cancelled."""
        if run_now:
            logger.info("Running immediately as requested")
            await self.fire()

        while True:
            # Recomputed from the current time so firings missed during a long chain are skipped
            next_run = croniter(self._config.schedule, datetime.now()).get_next(datetime)
            delay = max((next_run - datetime.now()).total_seconds(), 0.0)
            logger.info("Next scheduled run at %s", next_run.isoformat(sep=" "))
            await asyncio.sleep(delay)
            await self.fire()

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _chain(self) -> RunOutcome:
        outcome = await self._invoke(None)
        retries = 0
        per_wallet: Counter[str] = Counter()
        limit = self._config.wallet_retry_limit

        while outcome.status is RunStatus.RETRYABLE and retries < self._config.max_retries:
            # A run that never reached the batch leaves an earlier run's file behind
            failed = self._failed_store.load() if outcome.report is not None else set()
            targets: set[str] | None = None
            held_back: set[str] = set()

            if failed:
                targets = failed
                if limit is not None:
                    targets = {identity for identity in failed if per_wallet[identity] < limit}
                    held_back = failed - targets
                if not targets:
                    logger.warning(
                        "All %d failed wallet(s) reached the retry limit of %d",
                        len(failed),
                        limit,
                    )
                    break

            retries += 1
            if targets is None:
                logger.info(
                    "Blind retry %d/%d in %.0fs",
                    retries,
                    self._config.max_retries,
                    self._config.retry_delay_seconds,
                    extra={"retry_attempts": retries},
                )
            else:
                logger.info(
                    "Targeted retry %d/%d for %d wallet(s) in %.0fs",
                    retries,
                    self._config.max_retries,
                    len(targets),
                    self._config.retry_delay_seconds,
                    extra={"retry_attempts": retries},
                )
                per_wallet.update(targets)

            await asyncio.sleep(self._config.retry_delay_seconds)
            outcome = await self._invoke(targets)

            if held_back:
                # Wallets past their limit were not part of this run; keep them recorded
                self._failed_store.save(self._failed_store.load() | held_back)
                if outcome.status is RunStatus.SUCCEEDED:
                    outcome = RunOutcome(
                        RunStatus.RETRYABLE,
                        report=outcome.report,
                        message=f"{len(held_back)} wallet(s) over the retry limit",
                    )

        if outcome.status is RunStatus.RETRYABLE and retries >= self._config.max_retries:
            logger.warning("Maximum retries (%d) reached", self._config.max_retries)
        return outcome

    async def _invoke(self, targets: set[str] | None) -> RunOutcome:
        self.runs_started += 1
        try:
            return await self._run(targets)
        except Exception as exc:
            logger.exception("Batch run crashed")
            return RunOutcome(RunStatus.RETRYABLE, message=str(exc) or exc.__class__.__name__)
