"""Abstract base class for ledger oracles."""

from abc import ABC, abstractmethod
from typing import Optional


class LedgerOracle(ABC):
    """Read-only view of the external ledger.

    All oracles answer one question: who currently holds token T.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the oracle name."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the oracle is configured and usable."""
        ...

    @abstractmethod
    def get_holder(self, token_ref: str) -> Optional[str]:
        """Return the wallet address currently holding token_ref.

        Args:
            token_ref: Ledger token identifier (mint address).

        Returns:
            Holder address, or None when the token has no single holder
            (burned, never minted, ambiguous).

        Raises:
            LedgerError: If the ledger could not be queried.
        """
        ...

    def close(self) -> None:
        """Release network resources. Default: nothing to release."""
        return None
