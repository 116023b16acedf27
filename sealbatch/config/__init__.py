"""Configuration module: settings and schedule configuration."""

from sealbatch.config.schedule import ScheduleConfig, default_schedule, load_schedule_config
from sealbatch.config.settings import BatchSettings

__all__ = [
    "BatchSettings",
    "ScheduleConfig",
    "default_schedule",
    "load_schedule_config",
]
