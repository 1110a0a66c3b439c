"""
Event topics.

Components own ``Topic`` objects and publish messages to them instead of
inheriting from an emitter. A distinct topic only delivers a message when it
differs from the previously published one.
"""

import logging
from typing import Any, Callable, Dict, List, Optional


logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]

_UNSET = object()


class Topic:
    """A single named stream of messages."""

    def __init__(self, name: str, *, distinct: bool = False, initial: Any = _UNSET):
        self.name = name
        self.distinct = distinct
        self._listeners: List[Listener] = []
        self._last: Any = initial

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    @property
    def last_value(self) -> Optional[Any]:
        return None if self._last is _UNSET else self._last

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener. Returns a callable that removes it again."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            self.unsubscribe(listener)

        return unsubscribe

    def unsubscribe(self, listener: Listener) -> None:
        self._listeners = [cb for cb in self._listeners if cb != listener]

    def publish(self, message: Any) -> bool:
        """Deliver a message to every listener.

        Returns False when a distinct topic drops the message as a repeat.
        """
        if self.distinct and self._last is not _UNSET and self._last == message:
            return False
        self._last = message

        for listener in list(self._listeners):
            try:
                listener(message)
            except Exception as e:
                logger.error(f"Listener error on topic {self.name}: {e}")
        return True


class EventBus:
    """A set of named topics, created on first use."""

    def __init__(self, names: Optional[List[str]] = None):
        self._topics: Dict[str, Topic] = {}
        for name in names or []:
            self.topic(name)

    def topic(self, name: str) -> Topic:
        if name not in self._topics:
            self._topics[name] = Topic(name)
        return self._topics[name]

    def on(self, name: str, listener: Listener) -> Callable[[], None]:
        return self.topic(name).subscribe(listener)

    def off(self, name: str, listener: Listener) -> None:
        if name in self._topics:
            self._topics[name].unsubscribe(listener)

    def emit(self, name: str, message: Any) -> bool:
        return self.topic(name).publish(message)

    def listener_count(self, name: str) -> int:
        return self._topics[name].listener_count if name in self._topics else 0
