# salestrack/core/events.py

"""
In-process fan-out of "sale created" events to streaming clients.

Delivery is best effort: each subscriber has a bounded queue and an event
that does not fit is dropped. Dashboards recompute from a fresh fetch, so a
lost or repeated event never skews the figures.
"""

import asyncio
import logging
import threading

from salestrack.core.access import Action, Actor, Resource, can_access

logger = logging.getLogger("salestrack")

QUEUE_SIZE = 100


class Subscription:
    def __init__(self, actor: Actor, loop: asyncio.AbstractEventLoop):
        self.actor = actor
        self.loop = loop
        self.queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)

    def wants(self, event: dict) -> bool:
        return can_access(self.actor, Action.READ, Resource.SALE, event.get("employee_name"))

    def offer(self, event: dict):
        try:
            self.queue.put_nowait(event)
        except asyncio.QueueFull:
            logger.warning(f"Dropping sale event for {self.actor.username}: queue full")


class SaleEventBroker:
    def __init__(self):
        self._subscriptions: set[Subscription] = set()
        self._lock = threading.Lock()

    def subscribe(self, actor: Actor) -> Subscription:
        subscription = Subscription(actor, asyncio.get_running_loop())
        with self._lock:
            self._subscriptions.add(subscription)
        return subscription

    def unsubscribe(self, subscription: Subscription):
        with self._lock:
            self._subscriptions.discard(subscription)

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, event: dict) -> int:
        """
        Queue ``event`` for every subscriber allowed to see it.

        Safe to call from the threadpool that runs sync route handlers.
        Returns the number of subscribers the event was handed to.
        """
        with self._lock:
            targets = [s for s in self._subscriptions if s.wants(event)]

        delivered = 0
        for subscription in targets:
            try:
                subscription.loop.call_soon_threadsafe(subscription.offer, event)
                delivered += 1
            except RuntimeError:
                # Loop already closed: the client is gone
                self.unsubscribe(subscription)

        return delivered


broker = SaleEventBroker()
