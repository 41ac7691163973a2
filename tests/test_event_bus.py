"""EventBus tests"""

import threading

from src.core.event_bus import MAX_DEPTH, EventBus, GameEvent


class TestSubscribeEmit:
    def test_basic_emit(self):
        bus = EventBus()
        received = []
        bus.subscribe("test_event", lambda e: received.append(e))
        bus.emit(GameEvent(event_type="test_event", data={"id": "1"}, source="test"))
        assert len(received) == 1
        assert received[0].data["id"] == "1"

    def test_multiple_handlers(self):
        bus = EventBus()
        results = []
        bus.subscribe("evt", lambda e: results.append("a"))
        bus.subscribe("evt", lambda e: results.append("b"))
        bus.emit(GameEvent(event_type="evt", data={}, source="test"))
        assert results == ["a", "b"]

    def test_no_handlers(self):
        bus = EventBus()
        bus.emit(GameEvent(event_type="no_one_listens", data={}, source="test"))

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        handler = lambda e: received.append(e)  # noqa: E731
        bus.subscribe("evt", handler)
        bus.unsubscribe("evt", handler)
        bus.emit(GameEvent(event_type="evt", data={}, source="test"))
        assert received == []
        assert bus.handler_count == 0

    def test_handler_error_is_contained(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("handler bug")

        bus.subscribe("evt", broken)
        bus.subscribe("evt", received.append)
        bus.emit(GameEvent(event_type="evt", data={}, source="test"))
        assert len(received) == 1


class TestDuplicateSuppression:
    def test_same_subject_blocked_within_chain(self):
        bus = EventBus()
        received = []
        bus.subscribe("evt", received.append)
        bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject="i1"))
        bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject="i1"))
        assert len(received) == 1

    def test_distinct_subjects_delivered(self):
        bus = EventBus()
        received = []
        bus.subscribe("evt", received.append)
        for subject in ("i1", "i2", "i3"):
            bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject=subject))
        assert len(received) == 3

    def test_reset_chain_allows_reemit(self):
        bus = EventBus()
        received = []
        bus.subscribe("evt", received.append)
        bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject="i1"))
        bus.reset_chain()
        bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject="i1"))
        assert len(received) == 2

    def test_reset_inside_handler_keeps_outer_chain(self):
        bus = EventBus()
        received = []

        def resetting(event):
            received.append(event)
            bus.reset_chain()

        bus.subscribe("evt", resetting)
        bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject="i1"))
        bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject="i1"))
        assert len(received) == 1


class TestThreadIsolation:
    def test_chain_is_per_thread(self):
        bus = EventBus()
        received = []
        bus.subscribe("evt", received.append)
        bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject="i1"))

        worker = threading.Thread(
            target=bus.emit,
            args=(GameEvent(event_type="evt", data={}, source="svc", subject="i1"),),
        )
        worker.start()
        worker.join(timeout=5)

        assert len(received) == 2
        bus.emit(GameEvent(event_type="evt", data={}, source="svc", subject="i1"))
        assert len(received) == 2


class TestDepthLimit:
    def test_max_depth_prevents_infinite_loop(self):
        bus = EventBus()
        call_count = 0

        def recursive_handler(event: GameEvent):
            nonlocal call_count
            call_count += 1
            bus.emit(GameEvent(event_type="chain", data={}, source=f"handler_{call_count}"))

        bus.subscribe("chain", recursive_handler)
        bus.emit(GameEvent(event_type="chain", data={}, source="origin"))

        assert call_count == MAX_DEPTH
