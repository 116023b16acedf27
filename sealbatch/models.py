"""In-memory state models for workflows, wallet reports and batch runs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from sealbatch.storage.images import ImageSource


class WorkflowKind(str, Enum):
    """Workflows that can be run for a wallet."""

    ALLOWLIST = "allowlist"
    SUBSCRIPTION = "subscription"


class TaskSelection(str, Enum):
    """Which workflows a batch runs for every wallet."""

    ALLOWLIST = "allowlist"
    SUBSCRIPTION = "subscription"
    BOTH = "both"

    @property
    def kinds(self) -> tuple[WorkflowKind, ...]:
        if self is TaskSelection.ALLOWLIST:
            return (WorkflowKind.ALLOWLIST,)
        if self is TaskSelection.SUBSCRIPTION:
            return (WorkflowKind.SUBSCRIPTION,)
        return (WorkflowKind.ALLOWLIST, WorkflowKind.SUBSCRIPTION)


class RunStatus(str, Enum):
    """Outcome of one orchestrator invocation, as seen by the retry driver."""

    SUCCEEDED = "succeeded"
    RETRYABLE = "retryable"
    FATAL = "fatal"


@dataclass
class WorkflowParams:
    """Inputs shared by every wallet's workflows in one batch."""

    image_source: ImageSource | None = None
    random_image: bool = False
    extra_addresses: list[str] = field(default_factory=list)
    count: int = 1


@dataclass(frozen=True)
class AllowlistRecord:
    allowlist_id: str
    entry_id: str
    blob_id: str


@dataclass(frozen=True)
class SubscriptionRecord:
    shared_id: str
    entry_id: str
    blob_id: str


@dataclass
class WorkflowResult:
    """Outcome of one workflow invocation for one wallet.

    ``records`` holds every iteration that completed, including those that
    finished before a later iteration failed.
    """

    kind: WorkflowKind
    records: list[AllowlistRecord | SubscriptionRecord] = field(default_factory=list)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class WalletReport:
    """Per-wallet outcome across all selected workflows."""

    index: int
    identity: str | None
    results: dict[WorkflowKind, WorkflowResult] = field(default_factory=dict)
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.error is None and all(r.succeeded for r in self.results.values())

    @property
    def label(self) -> str:
        return self.identity or f"wallet #{self.index + 1}"


@dataclass
class BatchReport:
    """Aggregate outcome of one batch run."""

    wallets: list[WalletReport] = field(default_factory=list)
    failed_identities: set[str] = field(default_factory=set)
    started_at: datetime = field(default_factory=datetime.now)
    completed_at: datetime | None = None

    @property
    def failed_wallets(self) -> list[WalletReport]:
        return [w for w in self.wallets if not w.succeeded]

    @property
    def succeeded(self) -> bool:
        return not self.failed_wallets

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1


@dataclass
class RunOutcome:
    """Structured result of a runner invocation."""

    status: RunStatus
    report: BatchReport | None = None
    message: str | None = None

    @property
    def failed_identities(self) -> set[str]:
        return set(self.report.failed_identities) if self.report else set()

    @property
    def exit_code(self) -> int:
        return 0 if self.status is RunStatus.SUCCEEDED else 1
