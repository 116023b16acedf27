"""Scheduler: cron-driven batch runs with process-level retries."""

from sealbatch.scheduler.driver import DriverState, RetryDriver
from sealbatch.scheduler.lock import RunLock

__all__ = ["DriverState", "RetryDriver", "RunLock"]
