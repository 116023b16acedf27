"""Calls into the Seal example ``allowlist`` and ``subscription`` modules.

Each method is one ledger step: it submits a single Move call with the
configured gas budget and returns only after local execution, so the
objects it creates exist for the next step.
"""

from __future__ import annotations

import logging
import random

from sealbatch.errors import LedgerResponseError
from sealbatch.ledger.client import LedgerGateway, MoveCall
from sealbatch.wallets.keys import WalletKey

logger = logging.getLogger(__name__)

_ADJECTIVES = ("cool", "awesome", "amazing", "brilliant", "excellent")
_NOUNS = ("project", "creation", "work", "masterpiece", "innovation")


def random_entry_name(rng: random.Random | None = None) -> str:
    """Random ``adjective-noun-NNN`` name for allow-lists and services."""
    rng = rng or random
    return f"{rng.choice(_ADJECTIVES)}-{rng.choice(_NOUNS)}-{rng.randrange(1000)}"


class SealContracts:
    """Allow-list and subscription calls on behalf of one wallet."""

    def __init__(self, ledger: LedgerGateway, signer: WalletKey, gas_budget: int) -> None:
        self._ledger = ledger
        self._signer = signer
        self._gas_budget = gas_budget

    @property
    def address(self) -> str:
        return self._signer.address

    async def create_allowlist(self, name: str) -> tuple[str, str]:
        """Create an allow-list; returns ``(allowlist_id, entry_id)``."""
        logger.info("Creating allowlist with name: %s", name, extra={"wallet": self.address})
        result = await self._ledger.execute(
            self._signer,
            MoveCall("allowlist", "create_allowlist_entry", [name]),
            self._gas_budget,
        )
        entry_id = result.owned_by(self.address)
        allowlist_id = result.shared()
        if not allowlist_id or not entry_id:
            raise LedgerResponseError(
                "Failed to retrieve allowlistId or entryObjectId", digest=result.digest
            )
        logger.info("Allowlist created: %s (entry %s)", allowlist_id, entry_id)
        return allowlist_id, entry_id

    async def add_to_allowlist(self, allowlist_id: str, entry_id: str, address: str) -> None:
        logger.info("Adding %s to allowlist %s", address, allowlist_id)
        await self._ledger.execute(
            self._signer,
            MoveCall("allowlist", "add", [allowlist_id, entry_id, address]),
            self._gas_budget,
        )

    async def publish_to_allowlist(self, allowlist_id: str, entry_id: str, blob_id: str) -> None:
        logger.info("Publishing blob %s to allowlist %s", blob_id, allowlist_id)
        await self._ledger.execute(
            self._signer,
            MoveCall("allowlist", "publish", [allowlist_id, entry_id, blob_id]),
            self._gas_budget,
        )

    async def create_service(self, amount: int, duration_ms: int, name: str) -> tuple[str, str]:
        """Create a subscription service; returns ``(shared_id, entry_id)``."""
        logger.info(
            "Adding service entry: %s (amount=%d, duration=%d)",
            name,
            amount,
            duration_ms,
            extra={"wallet": self.address},
        )
        result = await self._ledger.execute(
            self._signer,
            MoveCall("subscription", "create_service_entry", [amount, duration_ms, name]),
            self._gas_budget,
        )
        entry_id = result.owned_by(self.address)
        shared_id = result.shared()
        if not entry_id or not shared_id:
            raise LedgerResponseError(
                "Failed to retrieve serviceEntryId or sharedObjectId", digest=result.digest
            )
        logger.info("Service entry created: %s (entry %s)", shared_id, entry_id)
        return shared_id, entry_id

    async def publish_to_subscription(self, shared_id: str, entry_id: str, blob_id: str) -> None:
        logger.info("Publishing blob %s to subscription %s", blob_id, shared_id)
        await self._ledger.execute(
            self._signer,
            MoveCall("subscription", "publish", [shared_id, entry_id, blob_id]),
            self._gas_budget,
        )
