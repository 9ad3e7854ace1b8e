"""
In-process push channels for job snapshots.

Each consumer (board socket, job socket, tracker stream) holds a Subscription:
a queue of typed events plus a cancellation handle. Publishers never block;
they drop the event into every queue subscribed to the topic.

Topics:
- "board": every job change
- "job:{id}": changes to one job and its history
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Generic, Set, TypeVar
from uuid import UUID

logger = logging.getLogger(__name__)

E = TypeVar("E")

BOARD_TOPIC = "board"

# Per-subscriber backlog; beyond it the oldest pending event is dropped
DEFAULT_QUEUE_SIZE = 64


def job_topic(job_id: UUID | str) -> str:
    return f"job:{job_id}"


class Subscription(Generic[E]):
    """Handle for one consumer's queue on one topic."""

    def __init__(self, hub: "SubscriptionHub[E]", topic: str, maxsize: int = DEFAULT_QUEUE_SIZE):
        self.topic = topic
        self._hub = hub
        self._queue: asyncio.Queue[E] = asyncio.Queue(maxsize=maxsize)
        self.dropped = 0
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def push(self, event: E) -> None:
        """Queue an event; when the consumer lags, the oldest pending event is dropped."""
        if self._cancelled:
            return
        if self._queue.full():
            self._queue.get_nowait()
            self.dropped += 1
            if self.dropped == 1:
                logger.warning(f"Subscriber on {self.topic} is lagging, dropping oldest events")
        self._queue.put_nowait(event)

    async def get(self) -> E:
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()

    def cancel(self) -> None:
        """Unsubscribe immediately; later publishes no longer reach this queue."""
        if self._cancelled:
            return
        self._cancelled = True
        self._hub._remove(self)


class SubscriptionHub(Generic[E]):
    """Topic -> subscriptions registry."""

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._topics: Dict[str, Set[Subscription[E]]] = {}
        self._queue_size = queue_size

    def subscribe(self, topic: str) -> Subscription[E]:
        subscription: Subscription[E] = Subscription(self, topic, self._queue_size)
        self._topics.setdefault(topic, set()).add(subscription)
        return subscription

    def publish(self, topic: str, event: E) -> int:
        """Push an event to every subscriber of a topic; returns the fan-out count."""
        subscribers = list(self._topics.get(topic, ()))
        for subscription in subscribers:
            subscription.push(event)
        if subscribers:
            logger.debug(f"Published to {len(subscribers)} subscriber(s) on {topic}")
        return len(subscribers)

    def _remove(self, subscription: Subscription[E]) -> None:
        subscribers = self._topics.get(subscription.topic)
        if not subscribers:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._topics[subscription.topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    def get_total_subscriptions(self) -> int:
        return sum(len(subs) for subs in self._topics.values())
