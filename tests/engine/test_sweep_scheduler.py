"""SweepScheduler tests"""

import threading

import pytest

from conftest import WALLET_A, WALLET_B, make_record
from src.engine.sweep_scheduler import SweepScheduler


class TestRunOnce:
    def test_run_once_records_report(self, service, store, oracle) -> None:
        store.add(make_record("i1", WALLET_A, token_ref="T1"))
        oracle.set_holder("T1", WALLET_B)
        scheduler = SweepScheduler(service, interval=60, batch_size=10, batch_delay=0)

        report = scheduler.run_once()

        assert report.changed == 1
        assert scheduler.last_report is report
        assert scheduler.runs == 1

    def test_run_once_prunes_expired_cache_entries(self, service, cache, oracle, clock) -> None:
        oracle.set_holder("T9", WALLET_A)
        cache.resolve("T9")
        clock.advance(61)
        scheduler = SweepScheduler(service, interval=60, batch_size=10, batch_delay=0)

        scheduler.run_once()

        assert len(cache) == 0

    def test_run_once_overrides(self, service, store, oracle) -> None:
        for i in range(3):
            store.add(make_record(f"i{i}", WALLET_A, token_ref=f"T{i}"))
            oracle.set_holder(f"T{i}", WALLET_A)
        scheduler = SweepScheduler(service, interval=60, batch_size=10, batch_delay=0)

        report = scheduler.run_once(batch_size=1, batch_delay=0)

        assert report.batches == 3
        assert scheduler.runs == 1

    def test_stopped_scheduler_finishes_current_batch_only(self, service, store, oracle) -> None:
        for i in range(3):
            store.add(make_record(f"i{i}", WALLET_A, token_ref=f"T{i}"))
            oracle.set_holder(f"T{i}", WALLET_A)
        scheduler = SweepScheduler(service, interval=60, batch_size=1, batch_delay=0.5)
        scheduler.stop()

        report = scheduler.run_once()

        assert report.aborted is True
        assert report.batches == 1
        assert report.checked == 1


class TestBackgroundThread:
    def test_thread_runs_and_stops(self, service, store, oracle) -> None:
        store.add(make_record("i1", WALLET_A, token_ref="T1"))
        oracle.set_holder("T1", WALLET_B)
        done = threading.Event()

        scheduler = SweepScheduler(service, interval=0.01, batch_size=10, batch_delay=0)
        original = scheduler.run_once

        def run_and_signal():
            report = original()
            done.set()
            return report

        scheduler.run_once = run_and_signal  # type: ignore[method-assign]
        scheduler.start()
        try:
            assert done.wait(timeout=5)
            assert scheduler.is_running
        finally:
            scheduler.stop(timeout=5)

        assert not scheduler.is_running
        assert store.find_by_id("i1").owner_id == WALLET_B

    def test_start_is_idempotent(self, service) -> None:
        scheduler = SweepScheduler(service, interval=60)
        scheduler.start()
        thread = scheduler._thread
        scheduler.start()
        assert scheduler._thread is thread
        scheduler.stop(timeout=5)


def test_interval_must_be_positive(service) -> None:
    with pytest.raises(ValueError):
        SweepScheduler(service, interval=0)
