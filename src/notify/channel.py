"""Change event stream from the indexer to rendering collaborators.

Publishers push :class:`ChangeEvent` values; each subscriber owns a queue
and consumes events as an async iterator. Publishing never blocks and never
calls into subscriber code.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

_CLOSED = None


@dataclass(frozen=True)
class ChangeEvent:
    """Targets whose reference set changed after one source update."""

    source_path: str
    targets: frozenset[str]
    deleted: bool = False


class Subscription:
    """One subscriber's view of the event stream."""

    def __init__(self, notifier: ChangeNotifier) -> None:
        self._notifier = notifier
        self._queue: asyncio.Queue[ChangeEvent | None] = asyncio.Queue()
        self._closed = False
        self._close_requested = False

    def put(self, event: ChangeEvent | None) -> None:
        self._queue.put_nowait(event)

    async def get(self) -> ChangeEvent | None:
        """Wait for the next event; None once the stream is closed."""
        if self._closed and self._queue.empty():
            return None
        event = await self._queue.get()
        if event is _CLOSED:
            self._closed = True
        return event

    def drain(self) -> list[ChangeEvent]:
        """Return every event queued so far without waiting."""
        events: list[ChangeEvent] = []
        while not self._queue.empty():
            event = self._queue.get_nowait()
            if event is _CLOSED:
                self._closed = True
                break
            events.append(event)
        return events

    def close(self) -> None:
        """Stop receiving events."""
        self._notifier.unsubscribe(self)
        if not self._close_requested:
            self._close_requested = True
            self.put(_CLOSED)

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> ChangeEvent:
        event = await self.get()
        if event is None:
            raise StopAsyncIteration
        return event


class ChangeNotifier:
    def __init__(self) -> None:
        self._subscriptions: list[Subscription] = []

    def subscribe(self) -> Subscription:
        subscription = Subscription(self)
        self._subscriptions.append(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def publish(self, event: ChangeEvent) -> bool:
        """Deliver an event to every subscriber.

        Events without targets are dropped.

        Returns:
            True if the event was delivered.
        """
        if not event.targets:
            return False
        for subscription in list(self._subscriptions):
            subscription.put(event)
        return True

    def close(self) -> None:
        """End every subscriber's stream."""
        for subscription in list(self._subscriptions):
            subscription.close()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscriptions)


__all__ = ["ChangeEvent", "ChangeNotifier", "Subscription"]
