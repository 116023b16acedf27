"""Services: workflow execution, batch orchestration and failure persistence."""

from sealbatch.services.failed_store import FailedWalletStore
from sealbatch.services.orchestrator import BatchOrchestrator
from sealbatch.services.runner import BatchRunner, RunOptions, load_all_credentials
from sealbatch.services.workflow import WorkflowExecutor

__all__ = [
    "BatchOrchestrator",
    "BatchRunner",
    "FailedWalletStore",
    "RunOptions",
    "WorkflowExecutor",
    "load_all_credentials",
]
