"""OwnershipCache: TTL read-through cache in front of the ledger oracle.

Only successful lookups are stored. A failed or empty lookup is returned as
None and leaves the cache untouched so the next call retries immediately.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from src.core.logging import get_logger
from src.core.ownership.address import is_valid_address, short_address
from src.core.ownership.errors import LedgerError

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 60.0


class HolderLookup(Protocol):
    def get_holder(self, token_ref: str) -> Optional[str]: ...


@dataclass(frozen=True)
class CacheEntry:
    holder: str
    observed_at: float


class OwnershipCache:
    """token_ref -> (holder, observed_at), expires after ttl_seconds."""

    def __init__(
        self,
        oracle: HolderLookup,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive: {ttl_seconds}")
        self._oracle = oracle
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def resolve(self, token_ref: str) -> Optional[str]:
        """Current holder of token_ref, or None if it could not be resolved."""
        cached = self.peek(token_ref)
        if cached is not None:
            return cached

        # oracle call happens outside the lock; concurrent misses on the same
        # key may both hit the oracle and the later write wins
        try:
            holder = self._oracle.get_holder(token_ref)
        except LedgerError as exc:
            logger.warning("Ledger lookup failed for %s: %s", short_address(token_ref), exc)
            return None
        except Exception:
            # unresolved, never a crash: callers fail closed on None
            logger.exception("Unexpected ledger lookup error for %s", short_address(token_ref))
            return None

        if holder is None:
            logger.warning("No holder found for %s (burned?)", short_address(token_ref))
            return None

        if not is_valid_address(holder):
            logger.warning(
                "Malformed holder address for %s: %r", short_address(token_ref), holder
            )
            return None

        with self._lock:
            self._entries[token_ref] = CacheEntry(holder=holder, observed_at=self._clock())
        return holder

    def peek(self, token_ref: str) -> Optional[str]:
        """Cached holder without touching the oracle. Drops the entry if expired."""
        with self._lock:
            entry = self._entries.get(token_ref)
            if entry is None:
                return None
            if self._is_expired(entry):
                del self._entries[token_ref]
                return None
            return entry.holder

    def invalidate(self, token_ref: str) -> bool:
        with self._lock:
            return self._entries.pop(token_ref, None) is not None

    def clear(self) -> int:
        """Drop every entry. Returns the number dropped."""
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        logger.info("Ownership cache cleared (%d entries)", count)
        return count

    def prune(self) -> int:
        """Drop expired entries. Returns the number dropped."""
        with self._lock:
            expired = [k for k, e in self._entries.items() if self._is_expired(e)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _is_expired(self, entry: CacheEntry) -> bool:
        return self._clock() - entry.observed_at >= self._ttl
