"""In-process live subscriptions with full-snapshot delivery."""

import inspect
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Hashable, List, Optional, Union

logger = logging.getLogger(__name__)

UpdateCallback = Callable[[List[Any]], Union[None, Awaitable[None]]]
ErrorCallback = Callable[[Exception], Union[None, Awaitable[None]]]


async def _invoke(callback: Callable, *args) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result


@dataclass(eq=False)
class Subscription:
    """One registered listener; disposed after its first error."""
    key: Hashable
    on_update: UpdateCallback
    on_error: Optional[ErrorCallback] = None
    active: bool = True

    async def deliver(self, snapshot: List[Any]) -> None:
        if self.active:
            await _invoke(self.on_update, snapshot)

    async def fail(self, error: Exception) -> None:
        if not self.active:
            return
        self.active = False
        if self.on_error is not None:
            await _invoke(self.on_error, error)


class SubscriptionHub:
    """
    Callback lists keyed by query identity.

    Publishing pushes the whole current result to every listener of a key,
    never a diff. Registration returns a disposer.
    """

    def __init__(self):
        self._subscriptions: Dict[Hashable, List[Subscription]] = {}

    def subscribe(
        self,
        key: Hashable,
        on_update: UpdateCallback,
        on_error: Optional[ErrorCallback] = None,
    ) -> Subscription:
        subscription = Subscription(key=key, on_update=on_update, on_error=on_error)
        self._subscriptions.setdefault(key, []).append(subscription)
        logger.debug(f"Subscribed to {key}, {len(self._subscriptions[key])} listener(s)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.active = False
        listeners = self._subscriptions.get(subscription.key)
        if not listeners:
            return
        if subscription in listeners:
            listeners.remove(subscription)
        if not listeners:
            del self._subscriptions[subscription.key]

    def listener_count(self, key: Hashable) -> int:
        return len(self._subscriptions.get(key, []))

    async def publish(self, key: Hashable, snapshot: List[Any]) -> None:
        """Deliver a snapshot to every listener of a key."""
        # Copied, since callbacks may unsubscribe while it is being walked
        listeners = list(self._subscriptions.get(key, []))
        for subscription in listeners:
            try:
                await subscription.deliver(snapshot)
            except Exception as e:
                logger.error(f"Subscriber of {key} failed to handle update: {str(e)}")

    async def fail(self, key: Hashable, error: Exception) -> None:
        """Report an error to every listener of a key and end their subscriptions."""
        listeners = self._subscriptions.pop(key, [])
        for subscription in listeners:
            await subscription.fail(error)


# Global hub for category snapshots, keyed by ("categories", user_id)
category_hub = SubscriptionHub()
