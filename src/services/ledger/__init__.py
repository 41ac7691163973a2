"""Ledger oracle module."""

from src.services.ledger.base import LedgerOracle
from src.services.ledger.factory import get_ledger_oracle
from src.services.ledger.mock import MockLedgerOracle
from src.services.ledger.solana import SolanaRpcOracle

__all__ = [
    "LedgerOracle",
    "MockLedgerOracle",
    "SolanaRpcOracle",
    "get_ledger_oracle",
]
