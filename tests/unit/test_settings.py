"""Unit tests for BatchSettings and run-level models."""

import pytest
from pydantic import ValidationError

from sealbatch.config.constants import PUBLISHER_URLS, SUI_TESTNET_RPC_URL
from sealbatch.config.settings import BatchSettings
from sealbatch.models import (
    BatchReport,
    RunOutcome,
    RunStatus,
    TaskSelection,
    WalletReport,
    WorkflowKind,
    WorkflowResult,
)


class TestBatchSettings:
    def test_defaults(self):
        settings = BatchSettings()
        assert settings.rpc_url == SUI_TESTNET_RPC_URL
        assert settings.publisher_urls == PUBLISHER_URLS
        assert settings.upload_max_attempts == 15
        assert settings.upload_retry_delay_seconds == 5.0
        assert settings.connection_timeout_seconds == 10.0
        assert settings.failed_wallets_file == "failed_wallets.txt"

    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("SEALBATCH_UPLOAD_MAX_ATTEMPTS", "20")
        monkeypatch.setenv("SEALBATCH_LOG_JSON", "true")
        monkeypatch.setenv("SEALBATCH_PUBLISHER_URLS", '["https://only.test/v1/blobs"]')
        settings = BatchSettings()
        assert settings.upload_max_attempts == 20
        assert settings.log_json is True
        assert settings.publisher_urls == ["https://only.test/v1/blobs"]

    def test_publishers_required(self):
        with pytest.raises(ValidationError):
            BatchSettings(publisher_urls=[])

    def test_attempts_must_be_positive(self):
        with pytest.raises(ValidationError):
            BatchSettings(upload_max_attempts=0)


class TestModels:
    def test_selection_kinds(self):
        assert TaskSelection.ALLOWLIST.kinds == (WorkflowKind.ALLOWLIST,)
        assert TaskSelection.SUBSCRIPTION.kinds == (WorkflowKind.SUBSCRIPTION,)
        assert TaskSelection.BOTH.kinds == (WorkflowKind.ALLOWLIST, WorkflowKind.SUBSCRIPTION)

    def test_wallet_fails_if_any_workflow_fails(self):
        wallet = WalletReport(index=0, identity="0x1")
        wallet.results[WorkflowKind.ALLOWLIST] = WorkflowResult(kind=WorkflowKind.ALLOWLIST)
        assert wallet.succeeded
        wallet.results[WorkflowKind.SUBSCRIPTION] = WorkflowResult(
            kind=WorkflowKind.SUBSCRIPTION, error="boom"
        )
        assert not wallet.succeeded

    def test_report_exit_code(self):
        report = BatchReport(wallets=[WalletReport(index=0, identity="0x1")])
        assert report.exit_code == 0
        report.wallets.append(WalletReport(index=1, identity=None, error="undecodable"))
        assert report.exit_code == 1
        assert [w.label for w in report.failed_wallets] == ["wallet #2"]

    @pytest.mark.parametrize(
        ("status", "code"), [(RunStatus.SUCCEEDED, 0), (RunStatus.RETRYABLE, 1), (RunStatus.FATAL, 1)]
    )
    def test_outcome_exit_code(self, status, code):
        assert RunOutcome(status).exit_code == code
