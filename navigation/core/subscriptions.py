"""Subscribe/unsubscribe handles for push-style updates"""
import logging
import threading
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Subscription:
    """
    Handle returned by subscribe()

    unsubscribe() is synchronous and idempotent: once it returns, no new
    delivery to the callback is started by the publisher.
    """

    def __init__(self, publisher: 'SubscriberList', callback: Callable):
        self._publisher = publisher
        self._callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    @property
    def callback(self) -> Callable:
        return self._callback

    def unsubscribe(self):
        if not self._active:
            return
        self._active = False
        self._publisher.remove(self)


class SubscriberList(Generic[T]):
    """Thread-safe list of subscribers that receive published values in order"""

    def __init__(self, name: str = "publisher"):
        self.name = name
        self._subscriptions: List[Subscription] = []
        self._lock = threading.Lock()

    def add(self, callback: Callable[[T], None]) -> Subscription:
        subscription = Subscription(self, callback)
        with self._lock:
            self._subscriptions.append(subscription)
            count = len(self._subscriptions)
        logger.debug(f"{self.name}: subscriber added ({count} total)")
        return subscription

    def remove(self, subscription: Subscription):
        with self._lock:
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)
            count = len(self._subscriptions)
        logger.debug(f"{self.name}: subscriber removed ({count} total)")

    def clear(self):
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            subscription.unsubscribe()

    def __len__(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def publish(self, value: T):
        """
        Deliver a value to every active subscriber

        The subscriber list is copied under the lock and callbacks run outside
        it, so a callback may subscribe or unsubscribe freely. A failing
        subscriber is logged and does not stop delivery to the others.
        """
        with self._lock:
            subscriptions = list(self._subscriptions)
        for subscription in subscriptions:
            if not subscription.active:
                continue
            try:
                subscription.callback(value)
            except Exception as e:
                logger.error(f"{self.name}: subscriber callback failed: {e}", exc_info=True)
