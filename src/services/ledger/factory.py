"""Factory for creating ledger oracle instances."""

from typing import Optional

from src.config import settings
from src.core.logging import get_logger
from src.core.ownership.errors import LedgerConfigError
from src.services.ledger.base import LedgerOracle
from src.services.ledger.mock import MockLedgerOracle
from src.services.ledger.solana import SolanaRpcOracle

logger = get_logger(__name__)


def get_ledger_oracle(provider_name: Optional[str] = None) -> LedgerOracle:
    """Get a ledger oracle instance.

    Args:
        provider_name: Optional provider name. If not specified,
                      uses LEDGER_PROVIDER from config.

    Returns:
        A LedgerOracle instance.

    Raises:
        LedgerConfigError: If the provider is unknown or missing its endpoint.
            Ownership cannot be verified without an oracle, so this is a
            startup failure rather than a silent fallback.
    """
    name = provider_name or settings.LEDGER_PROVIDER

    if name == "mock":
        logger.warning("Using MockLedgerOracle, on-ledger ownership is simulated")
        return MockLedgerOracle()

    if name == "solana":
        if not settings.SOLANA_RPC_URL:
            raise LedgerConfigError("LEDGER_PROVIDER=solana requires SOLANA_RPC_URL")
        logger.debug("Using SolanaRpcOracle")
        return SolanaRpcOracle(
            rpc_url=settings.SOLANA_RPC_URL,
            commitment=settings.SOLANA_COMMITMENT,
            timeout=settings.LEDGER_TIMEOUT_SECONDS,
        )

    raise LedgerConfigError(f"Unknown ledger provider '{name}'")
