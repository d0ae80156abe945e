"""Broadcast of draft events."""

from __future__ import annotations

from collections import defaultdict
from typing import Any, Awaitable, Callable, DefaultDict, Iterable, Mapping, Protocol

Payload = Mapping[str, Any]
EventListener = Callable[[str, Payload], Awaitable[None]]

ALL_TOPICS = "*"


class BroadcastSink(Protocol):
    async def publish(self, topic: str, payload: Payload) -> None:
        ...


class EventBus(BroadcastSink):
    """In-process async pub-sub; the default broadcast sink.

    Listeners receive the topic along with the payload so one listener can
    serve several topics. Subscribing to ``"*"`` receives every topic.
    """

    def __init__(self) -> None:
        self._listeners: DefaultDict[str, list[EventListener]] = defaultdict(list)

    def subscribe(self, topic: str, listener: EventListener) -> None:
        self._listeners[topic].append(listener)

    def subscribe_many(self, topics: Iterable[str], listener: EventListener) -> None:
        for topic in topics:
            self.subscribe(topic, listener)

    async def publish(self, topic: str, payload: Payload) -> None:
        listeners = [*self._listeners.get(topic, ()), *self._listeners.get(ALL_TOPICS, ())]
        for listener in listeners:
            await listener(topic, payload)

    def clear(self) -> None:
        self._listeners.clear()

    def listeners(self, topic: str) -> Iterable[EventListener]:
        return tuple(self._listeners.get(topic, ()))
