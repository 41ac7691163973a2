"""OwnershipCache tests (fake clock + MockLedgerOracle)"""

import pytest

from conftest import WALLET_A, WALLET_B, FakeClock
from src.core.ownership.cache import OwnershipCache
from src.services.ledger import MockLedgerOracle


class TestReadThrough:
    def test_miss_calls_oracle_and_stores(self, cache, oracle) -> None:
        oracle.set_holder("T1", WALLET_A)
        assert cache.resolve("T1") == WALLET_A
        assert oracle.calls == 1
        assert len(cache) == 1

    def test_hit_within_ttl_skips_oracle(self, cache, oracle, clock) -> None:
        oracle.set_holder("T1", WALLET_A)
        cache.resolve("T1")
        clock.advance(59.9)
        assert cache.resolve("T1") == WALLET_A
        assert oracle.calls == 1

    def test_expired_entry_refetches(self, cache, oracle, clock) -> None:
        oracle.set_holder("T1", WALLET_A)
        cache.resolve("T1")
        cache.resolve("T1")
        clock.advance(60.0)
        oracle.set_holder("T1", WALLET_B)
        assert cache.resolve("T1") == WALLET_B
        assert oracle.calls == 2

    def test_stale_value_served_until_expiry(self, cache, oracle, clock) -> None:
        """Ledger change inside the TTL window is not seen yet (bounded staleness)"""
        oracle.set_holder("T1", WALLET_A)
        cache.resolve("T1")
        oracle.set_holder("T1", WALLET_B)
        clock.advance(30)
        assert cache.resolve("T1") == WALLET_A

    def test_keys_are_independent(self, cache, oracle) -> None:
        oracle.set_holder("T1", WALLET_A)
        oracle.set_holder("T2", WALLET_B)
        assert cache.resolve("T1") == WALLET_A
        assert cache.resolve("T2") == WALLET_B
        assert oracle.calls == 2


class TestNoNegativeCaching:
    def test_failure_then_success_is_seen_immediately(self, cache, oracle) -> None:
        oracle.set_holder("T1", WALLET_A)
        oracle.fail_next()
        assert cache.resolve("T1") is None
        assert cache.resolve("T1") == WALLET_A
        assert oracle.calls == 2

    def test_no_holder_not_cached(self, cache, oracle) -> None:
        assert cache.resolve("burned") is None
        assert len(cache) == 0
        oracle.set_holder("burned", WALLET_A)
        assert cache.resolve("burned") == WALLET_A

    def test_malformed_address_not_cached(self, cache, oracle) -> None:
        oracle.set_holder("T1", "not-a-wallet")
        assert cache.resolve("T1") is None
        assert len(cache) == 0

    def test_unexpected_oracle_error_is_unresolved(self, cache, oracle, monkeypatch) -> None:
        def broken(token_ref):
            raise AttributeError("'str' object has no attribute 'get'")

        monkeypatch.setattr(oracle, "get_holder", broken)
        assert cache.resolve("T1") is None
        assert len(cache) == 0

    def test_failure_keeps_previous_entry_untouched(self, oracle, clock) -> None:
        cache = OwnershipCache(oracle, ttl_seconds=10, clock=clock)
        oracle.set_holder("T1", WALLET_A)
        cache.resolve("T1")
        clock.advance(10)
        oracle.fail_always = True
        assert cache.resolve("T1") is None
        assert len(cache) == 0


class TestInvalidation:
    def test_clear_drops_everything(self, cache, oracle) -> None:
        oracle.set_holder("T1", WALLET_A)
        oracle.set_holder("T2", WALLET_B)
        cache.resolve("T1")
        cache.resolve("T2")
        assert cache.clear() == 2
        assert len(cache) == 0
        cache.resolve("T1")
        assert oracle.calls == 3

    def test_invalidate_single_key(self, cache, oracle) -> None:
        oracle.set_holder("T1", WALLET_A)
        cache.resolve("T1")
        assert cache.invalidate("T1") is True
        assert cache.invalidate("T1") is False
        assert cache.peek("T1") is None

    def test_prune_removes_only_expired(self, oracle) -> None:
        clock = FakeClock()
        cache = OwnershipCache(oracle, ttl_seconds=60, clock=clock)
        oracle.set_holder("T1", WALLET_A)
        oracle.set_holder("T2", WALLET_B)
        cache.resolve("T1")
        clock.advance(30)
        cache.resolve("T2")
        clock.advance(30)
        assert cache.prune() == 1
        assert cache.peek("T2") == WALLET_B

    def test_peek_never_calls_oracle(self, cache, oracle) -> None:
        oracle.set_holder("T1", WALLET_A)
        assert cache.peek("T1") is None
        assert oracle.calls == 0


def test_ttl_must_be_positive() -> None:
    with pytest.raises(ValueError):
        OwnershipCache(MockLedgerOracle(), ttl_seconds=0)
