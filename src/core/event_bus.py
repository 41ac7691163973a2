"""EventBus - in-process event delivery between services.

Rules:
- services do not call each other directly for side effects
- events carry identifiers and small values only
- propagation depth is capped at MAX_DEPTH
- the same (source, event_type, subject) is emitted at most once per chain
- chain state (depth, emitted keys) is per thread; request handlers and the
  sweep thread share one bus without sharing chains
"""

import threading
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Set

from src.core.logging import get_logger

logger = get_logger(__name__)

MAX_DEPTH = 5  # max propagation depth within one chain


@dataclass
class GameEvent:
    """Event data container

    Args:
        event_type: event type (e.g. "cosmetic_ownership_changed")
        data: event payload (ids and plain values, no heavy objects)
        source: emitting service name
        subject: id the event is about, used for duplicate suppression
    """

    event_type: str
    data: Dict[str, Any]
    source: str
    subject: str = ""

    # internal tracking, not set by callers
    _depth: int = field(default=0, repr=False)


EventHandler = Callable[[GameEvent], None]


class EventBus:
    """Synchronous event bus

    Usage:
        bus = EventBus()
        bus.subscribe("cosmetic_ownership_changed", inventory.handle_transfer)
        bus.emit(GameEvent(event_type="cosmetic_ownership_changed",
                           data={"instance_id": "abc"}, source="ownership_service",
                           subject="abc"))
    """

    def __init__(self) -> None:
        self._handlers: Dict[str, List[EventHandler]] = defaultdict(list)
        self._handlers_lock = threading.Lock()
        self._local = threading.local()

    @property
    def _current_depth(self) -> int:
        return getattr(self._local, "depth", 0)

    @_current_depth.setter
    def _current_depth(self, value: int) -> None:
        self._local.depth = value

    @property
    def _emitted_in_chain(self) -> Set[str]:
        emitted = getattr(self._local, "emitted", None)
        if emitted is None:
            emitted = self._local.emitted = set()
        return emitted

    def subscribe(self, event_type: str, handler: EventHandler) -> None:
        with self._handlers_lock:
            self._handlers[event_type].append(handler)
        logger.debug("EventBus subscribe: %s -> %s", event_type, handler.__qualname__)

    def unsubscribe(self, event_type: str, handler: EventHandler) -> None:
        if event_type in self._handlers:
            try:
                with self._handlers_lock:
                    self._handlers[event_type].remove(handler)
                logger.debug(
                    "EventBus unsubscribe: %s -> %s", event_type, handler.__qualname__
                )
            except ValueError:
                logger.warning(
                    "Handler not registered: %s -> %s", event_type, handler.__qualname__
                )

    def emit(self, event: GameEvent) -> None:
        """Emit an event and call registered handlers synchronously.

        Guards:
        1. events beyond MAX_DEPTH are dropped
        2. a repeated (source, event_type, subject) in the same chain is dropped
        """
        if self._current_depth >= MAX_DEPTH:
            logger.warning(
                "EventBus depth exceeded (%d): %s:%s dropped",
                MAX_DEPTH,
                event.source,
                event.event_type,
            )
            return

        chain_key = f"{event.source}:{event.event_type}:{event.subject}"
        if chain_key in self._emitted_in_chain:
            logger.warning("EventBus duplicate event blocked: %s", chain_key)
            return

        self._emitted_in_chain.add(chain_key)
        event._depth = self._current_depth

        with self._handlers_lock:
            handlers = list(self._handlers.get(event.event_type, []))
        if not handlers:
            logger.debug("EventBus: no subscribers for %s", event.event_type)
            return

        logger.debug(
            "EventBus emit: %s (source=%s, depth=%d, handlers=%d)",
            event.event_type,
            event.source,
            self._current_depth,
            len(handlers),
        )

        self._current_depth += 1
        try:
            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "EventBus handler error: %s (event=%s)",
                        handler.__qualname__,
                        event.event_type,
                    )
        finally:
            self._current_depth -= 1

    def reset_chain(self) -> None:
        """Called when a unit of work ends. Clears duplicate tracking.

        No-op while handlers are still being dispatched, so a unit of work
        started from inside a handler cannot reopen the outer chain.
        """
        if self._current_depth == 0:
            self._emitted_in_chain.clear()

    def clear(self) -> None:
        """Drop all subscriptions and the calling thread's chain (tests)"""
        with self._handlers_lock:
            self._handlers.clear()
        self._emitted_in_chain.clear()
        self._current_depth = 0

    @property
    def handler_count(self) -> int:
        with self._handlers_lock:
            return sum(len(h) for h in self._handlers.values())
