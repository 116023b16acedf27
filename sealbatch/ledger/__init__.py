"""Ledger access: Sui JSON-RPC client and Seal contract calls."""

from sealbatch.ledger.client import ExecutionResult, LedgerGateway, MoveCall, SuiRpcClient
from sealbatch.ledger.seal import SealContracts, random_entry_name

__all__ = [
    "ExecutionResult",
    "LedgerGateway",
    "MoveCall",
    "SealContracts",
    "SuiRpcClient",
    "random_entry_name",
]
