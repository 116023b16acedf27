"""Schedule configuration model and JSON loader.

The schedule file (``schedule-config.json`` by default) holds the cron
expression for the scheduled driver plus its retry policy::

    {"schedule": "5 9 * * *", "maxRetries": 3, "retryDelayMs": 300000}

A missing file is created with defaults; an existing file is merged over the
defaults so older files without newer keys keep working.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path

from croniter import croniter
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Older schedule files stored the delay under this key
_LEGACY_DELAY_KEY = "retryDelay"


class ScheduleConfig(BaseModel):
    """Cron schedule and process-level retry policy."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    schedule: str
    max_retries: int = Field(default=3, ge=0, alias="maxRetries")
    retry_delay_ms: int = Field(default=300_000, ge=0, alias="retryDelayMs")
    wallet_retry_limit: int | None = Field(default=None, ge=1, alias="walletRetryLimit")

    @field_validator("schedule")
    @classmethod
    def _valid_cron(cls, value: str) -> str:
        value = value.strip()
        if not croniter.is_valid(value):
            raise ValueError(f"invalid cron expression: {value!r}")
        return value

    @property
    def retry_delay_seconds(self) -> float:
        return self.retry_delay_ms / 1000.0

    def to_json(self) -> str:
        return json.dumps(self.model_dump(by_alias=True, exclude_none=True), indent=2)


def default_schedule(now: datetime | None = None) -> str:
    """Daily cron expression firing one minute after *now*."""
    now = now or datetime.now()
    minute = (now.minute + 1) % 60
    hour = (now.hour + 1) % 24 if minute == 0 else now.hour
    return f"{minute} {hour} * * *"


def load_schedule_config(path: str, now: datetime | None = None) -> ScheduleConfig:
    """Load the schedule file, creating it with defaults when absent.

    Args:
        path: Location of the JSON schedule file.
        now: Reference time for the default schedule (defaults to local now).

    Returns:
        The merged configuration. An unreadable or invalid file is logged and
        the defaults are used instead; the broken file is left untouched.
    """
    defaults = ScheduleConfig(schedule=default_schedule(now))
    config_path = Path(path)

    if not config_path.exists():
        try:
            config_path.write_text(defaults.to_json() + "\n", encoding="utf-8")
            logger.info(
                "Created default schedule configuration at %s (cron: %s)",
                path,
                defaults.schedule,
            )
        except OSError as exc:
            logger.error("Could not write default schedule configuration to %s: %s", path, exc)
        return defaults

    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("Error loading schedule configuration from %s: %s", path, exc)
        return defaults

    if not isinstance(raw, dict):
        logger.error("Schedule configuration at %s is not a JSON object - using defaults", path)
        return defaults

    if _LEGACY_DELAY_KEY in raw and "retryDelayMs" not in raw:
        raw["retryDelayMs"] = raw.pop(_LEGACY_DELAY_KEY)

    merged = {**defaults.model_dump(by_alias=True, exclude_none=True), **raw}
    try:
        config = ScheduleConfig.model_validate(merged)
    except ValidationError as exc:
        logger.error("Invalid schedule configuration at %s: %s - using defaults", path, exc)
        return defaults

    logger.info("Loaded schedule configuration from %s", path)
    return config
