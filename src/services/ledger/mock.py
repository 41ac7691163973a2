"""In-memory ledger oracle for tests and local development."""

from typing import Optional

from src.core.ownership.errors import LedgerError
from src.services.ledger.base import LedgerOracle


class MockLedgerOracle(LedgerOracle):
    """Ledger oracle backed by a dict.

    Used for testing and as the default when no RPC endpoint is configured.
    Failures can be scripted with fail_next() or fail_always.
    """

    def __init__(self, holders: Optional[dict[str, str]] = None) -> None:
        self._holders: dict[str, str] = dict(holders or {})
        self._pending_failures = 0
        self.fail_always = False
        self.calls = 0

    @property
    def name(self) -> str:
        return "mock"

    def is_available(self) -> bool:
        return True

    def set_holder(self, token_ref: str, holder: str) -> None:
        """Simulate an on-ledger transfer."""
        self._holders[token_ref] = holder

    def burn(self, token_ref: str) -> None:
        self._holders.pop(token_ref, None)

    def fail_next(self, count: int = 1) -> None:
        """Make the next `count` lookups raise LedgerError."""
        self._pending_failures += count

    def get_holder(self, token_ref: str) -> Optional[str]:
        self.calls += 1
        if self.fail_always:
            raise LedgerError("mock ledger unavailable")
        if self._pending_failures > 0:
            self._pending_failures -= 1
            raise LedgerError("mock ledger transient failure")
        return self._holders.get(token_ref)
