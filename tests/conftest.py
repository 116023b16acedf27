"""Shared test fixtures, fakes and hypothesis strategies for the sealbatch test suite."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from hypothesis import strategies as st

from sealbatch.config.settings import BatchSettings
from sealbatch.errors import KeyDecodeError, LedgerCallError
from sealbatch.ledger.client import ExecutionResult, MoveCall
from sealbatch.models import WorkflowKind, WorkflowParams, WorkflowResult
from sealbatch.services.failed_store import FailedWalletStore


# ---------------------------------------------------------------------------
# Keep the developer's SEALBATCH_* environment out of tests
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in list(os.environ):
        if key.startswith("SEALBATCH_"):
            monkeypatch.delenv(key)


# ---------------------------------------------------------------------------
# Settings fixture
# ---------------------------------------------------------------------------

@pytest.fixture
def settings(tmp_path: Path) -> BatchSettings:
    """Settings whose files all live in a temporary directory."""
    return BatchSettings(
        publisher_urls=["https://pub1.test/v1/blobs", "https://pub2.test/v1/blobs"],
        upload_max_attempts=3,
        upload_retry_delay_seconds=0.5,
        proxy_file=str(tmp_path / "proxies.txt"),
        wallet_file=str(tmp_path / "wallets.txt"),
        private_key_file=str(tmp_path / "private_key.txt"),
        failed_wallets_file=str(tmp_path / "failed_wallets.txt"),
        schedule_config_file=str(tmp_path / "schedule-config.json"),
        lock_file=str(tmp_path / ".sealbatch.lock"),
    )


@pytest.fixture
def failed_store(tmp_path: Path) -> FailedWalletStore:
    return FailedWalletStore(str(tmp_path / "failed_wallets.txt"))


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

def address_for(label: str) -> str:
    """Deterministic Sui-shaped address for a short label."""
    return "0x" + label.encode().hex().rjust(64, "0")[-64:]


@dataclass
class FakeKey:
    """Stands in for WalletKey: only ``address`` is needed by the services."""

    address: str

    def sign_transaction(self, tx_bytes: bytes) -> str:
        return "sig"


def fake_key_factory(credential: str) -> FakeKey:
    """Credentials starting with ``bad`` are undecodable; others map to an address."""
    if credential.startswith("bad"):
        raise KeyDecodeError(f"cannot decode {credential}")
    return FakeKey(address_for(credential))


@dataclass
class FakeExecutor:
    """Workflow executor that fails chosen (address, kind) pairs."""

    failing: set[tuple[str, WorkflowKind]] = field(default_factory=set)
    calls: list[tuple[str, WorkflowKind]] = field(default_factory=list)

    def fail(self, address: str, *kinds: WorkflowKind) -> None:
        for kind in kinds or tuple(WorkflowKind):
            self.failing.add((address, kind))

    async def run(self, wallet, kind: WorkflowKind, params: WorkflowParams) -> WorkflowResult:
        self.calls.append((wallet.address, kind))
        if (wallet.address, kind) in self.failing:
            return WorkflowResult(kind=kind, error=f"{kind.value} boom")
        return WorkflowResult(kind=kind)


@dataclass
class FakeLedger:
    """Ledger gateway that records calls and fabricates created objects."""

    fail_on: str | None = None
    calls: list[MoveCall] = field(default_factory=list)

    async def execute(self, signer, call: MoveCall, gas_budget: int) -> ExecutionResult:
        self.calls.append(call)
        if self.fail_on == call.target:
            raise LedgerCallError(f"{call.target} failed: MoveAbort")
        n = len(self.calls)
        return ExecutionResult(
            digest=f"digest{n}",
            created=[
                {"owner": {"AddressOwner": signer.address}, "reference": {"objectId": f"0xentry{n}"}},
                {"owner": {"Shared": {"initial_shared_version": 1}}, "reference": {"objectId": f"0xshared{n}"}},
            ],
        )

    @property
    def targets(self) -> list[str]:
        return [c.target for c in self.calls]


# ---------------------------------------------------------------------------
# Hypothesis strategies (reusable across property tests)
# ---------------------------------------------------------------------------

hosts = st.one_of(
    st.from_regex(r"[a-z]{1,10}(\.[a-z]{2,5}){1,2}", fullmatch=True),
    st.tuples(*[st.integers(min_value=0, max_value=255)] * 4).map(
        lambda parts: ".".join(str(p) for p in parts)
    ),
)
ports = st.integers(min_value=1, max_value=65535).map(str)
credential_parts = st.from_regex(r"[A-Za-z0-9_\-]{1,12}", fullmatch=True)

wallet_labels = st.lists(
    st.from_regex(r"w[a-z0-9]{1,8}", fullmatch=True), min_size=1, max_size=8, unique=True
)
