"""Sui JSON-RPC client.

Transactions are built by the full node (``unsafe_moveCall``), signed locally
with the wallet key, then executed with ``sui_executeTransactionBlock`` using
the ``WaitForLocalExecution`` request type, so a returned result means the
effects are visible to the next call. Every call carries an explicit gas
budget.
"""

from __future__ import annotations

import base64
import itertools
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from sealbatch.errors import LedgerCallError, LedgerUnavailableError
from sealbatch.logging_config import register_public_ids
from sealbatch.wallets.keys import WalletKey

logger = logging.getLogger(__name__)

_REQUEST_TYPE = "WaitForLocalExecution"


@dataclass(frozen=True)
class MoveCall:
    """A Move function call descriptor."""

    module: str
    function: str
    arguments: list[str | int]
    type_arguments: list[str] = field(default_factory=list)

    @property
    def target(self) -> str:
        return f"{self.module}::{self.function}"


@dataclass(frozen=True)
class ExecutionResult:
    """Effects of an executed transaction that later steps depend on."""

    digest: str
    created: list[dict] = field(default_factory=list)

    def owned_by(self, address: str) -> str | None:
        """Object id of the first created object owned by *address*."""
        for obj in self.created:
            owner = obj.get("owner")
            if isinstance(owner, dict) and owner.get("AddressOwner") == address:
                return (obj.get("reference") or {}).get("objectId")
        return None

    def shared(self) -> str | None:
        """Object id of the first created shared object."""
        for obj in self.created:
            owner = obj.get("owner")
            if isinstance(owner, dict) and "Shared" in owner:
                return (obj.get("reference") or {}).get("objectId")
        return None


class LedgerGateway(Protocol):
    """What the workflow layer needs from a ledger client."""

    async def execute(self, signer: WalletKey, call: MoveCall, gas_budget: int) -> ExecutionResult:
        ...


class SuiRpcClient:
    """JSON-RPC client for a Sui full node.

    Parameters
    ----------
    rpc_url:
        Full node JSON-RPC endpoint.
    package_id:
        Package that hosts the Move modules being called.
    timeout_seconds:
        HTTP timeout for transaction build and execution requests.
    """

    def __init__(self, rpc_url: str, package_id: str, timeout_seconds: float = 60.0) -> None:
        self._rpc_url = rpc_url
        self._package_id = package_id
        self._timeout_seconds = timeout_seconds
        self._ids = itertools.count(1)

    async def _request(self, method: str, params: list[Any], timeout: float | None = None) -> Any:
        """Send one JSON-RPC request and return its ``result``.

        Raises
        ------
        LedgerCallError
            On transport failure, a non-2xx status, or a JSON-RPC error object.
        """
        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    self._rpc_url,
                    json=payload,
                    timeout=timeout or self._timeout_seconds,
                )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as exc:
            raise LedgerCallError(f"{method} request failed: {exc}") from exc
        except ValueError as exc:
            raise LedgerCallError(f"{method} returned a non-JSON response") from exc

        if not isinstance(body, dict):
            raise LedgerCallError(f"{method} returned an unexpected payload")
        if body.get("error"):
            error = body["error"]
            message = error.get("message") if isinstance(error, dict) else str(error)
            raise LedgerCallError(f"{method} error: {message}", rpc_error=error)
        return body.get("result")

    async def check_connection(self, timeout: float = 10.0) -> str:
        """Fetch the latest checkpoint to confirm the node is reachable.

        Raises
        ------
        LedgerUnavailableError
            If the node does not answer within *timeout* seconds.
        """
        try:
            checkpoint = await self._request(
                "sui_getLatestCheckpointSequenceNumber", [], timeout=timeout
            )
        except LedgerCallError as exc:
            raise LedgerUnavailableError(f"Cannot reach {self._rpc_url}: {exc.message}") from exc
        logger.info("Connected to %s (checkpoint %s)", self._rpc_url, checkpoint)
        return str(checkpoint)

    async def execute(self, signer: WalletKey, call: MoveCall, gas_budget: int) -> ExecutionResult:
        """Build, sign and execute a Move call, waiting for local execution."""
        built = await self._request(
            "unsafe_moveCall",
            [
                signer.address,
                self._package_id,
                call.module,
                call.function,
                call.type_arguments,
                [str(arg) if isinstance(arg, int) else arg for arg in call.arguments],
                None,
                str(gas_budget),
            ],
        )
        tx_bytes = (built or {}).get("txBytes")
        if not tx_bytes:
            raise LedgerCallError(f"unsafe_moveCall returned no transaction bytes for {call.target}")

        signature = signer.sign_transaction(base64.b64decode(tx_bytes))
        result = await self._request(
            "sui_executeTransactionBlock",
            [tx_bytes, [signature], {"showEffects": True, "showEvents": True}, _REQUEST_TYPE],
        )

        result = result or {}
        digest = result.get("digest", "")
        effects = result.get("effects") or {}
        status = effects.get("status") or {}
        if status.get("status") != "success":
            raise LedgerCallError(
                f"{call.target} failed: {status.get('error', 'no execution status')}",
                digest=digest,
            )

        created = list(effects.get("created") or [])
        register_public_ids(*((obj.get("reference") or {}).get("objectId") for obj in created))
        logger.debug("Executed %s (digest=%s)", call.target, digest)
        return ExecutionResult(digest=digest, created=created)
