"""Unit tests for the schedule configuration loader."""

import json
from datetime import datetime

import pytest
from pydantic import ValidationError

from sealbatch.config.schedule import ScheduleConfig, default_schedule, load_schedule_config

NOW = datetime(2026, 3, 1, 9, 4)


class TestDefaultSchedule:
    def test_one_minute_after_now(self):
        assert default_schedule(NOW) == "5 9 * * *"

    def test_rolls_over_the_hour(self):
        assert default_schedule(datetime(2026, 3, 1, 9, 59)) == "0 10 * * *"

    def test_rolls_over_midnight(self):
        assert default_schedule(datetime(2026, 3, 1, 23, 59)) == "0 0 * * *"


class TestScheduleConfig:
    def test_aliases_and_field_names(self):
        by_alias = ScheduleConfig.model_validate(
            {"schedule": "0 * * * *", "maxRetries": 5, "retryDelayMs": 1000}
        )
        by_name = ScheduleConfig(schedule="0 * * * *", max_retries=5, retry_delay_ms=1000)
        assert by_alias == by_name
        assert by_alias.retry_delay_seconds == 1.0

    def test_invalid_cron_rejected(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(schedule="every day")

    def test_negative_retries_rejected(self):
        with pytest.raises(ValidationError):
            ScheduleConfig(schedule="0 * * * *", max_retries=-1)

    def test_to_json_uses_aliases(self):
        data = json.loads(ScheduleConfig(schedule="0 * * * *").to_json())
        assert data == {"schedule": "0 * * * *", "maxRetries": 3, "retryDelayMs": 300000}


class TestLoadScheduleConfig:
    def test_missing_file_is_created_with_defaults(self, tmp_path):
        path = tmp_path / "schedule-config.json"
        config = load_schedule_config(str(path), now=NOW)

        assert config.schedule == "5 9 * * *"
        assert config.max_retries == 3
        assert config.retry_delay_ms == 300_000
        assert json.loads(path.read_text())["schedule"] == "5 9 * * *"

    def test_file_values_override_defaults(self, tmp_path):
        path = tmp_path / "schedule-config.json"
        path.write_text(json.dumps({"schedule": "30 6 * * 1", "maxRetries": 1}))

        config = load_schedule_config(str(path), now=NOW)

        assert config.schedule == "30 6 * * 1"
        assert config.max_retries == 1
        assert config.retry_delay_ms == 300_000

    def test_wallet_retry_limit(self, tmp_path):
        path = tmp_path / "schedule-config.json"
        path.write_text(json.dumps({"schedule": "0 * * * *", "walletRetryLimit": 2}))
        assert load_schedule_config(str(path)).wallet_retry_limit == 2

    def test_legacy_retry_delay_key(self, tmp_path):
        path = tmp_path / "schedule-config.json"
        path.write_text(json.dumps({"schedule": "0 * * * *", "retryDelay": 1500}))
        assert load_schedule_config(str(path)).retry_delay_ms == 1500

    def test_invalid_json_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "schedule-config.json"
        path.write_text("{not json")

        config = load_schedule_config(str(path), now=NOW)

        assert config.schedule == "5 9 * * *"
        assert path.read_text() == "{not json"

    def test_invalid_values_fall_back_to_defaults(self, tmp_path):
        path = tmp_path / "schedule-config.json"
        path.write_text(json.dumps({"schedule": "0 * * * *", "maxRetries": -3}))
        assert load_schedule_config(str(path), now=NOW).max_retries == 3
