"""
Change notification feed.

Publish/subscribe channel keyed by store name. Every store mutation publishes
an invalidation event; every component holding a cached copy of a store
subscribes and reloads when it sees an event it did not originate.

Delivery is synchronous and in-process. Writers that share a database but
not a ChangeFeed (separate processes) are not notified.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional
import itertools
import logging

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChangeEvent:
    """A store was rewritten."""
    store: str
    origin: Optional[str] = None
    at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


ChangeCallback = Callable[[ChangeEvent], None]


class Subscription:
    """Handle returned by ChangeFeed.subscribe(); call cancel() to stop receiving events."""

    def __init__(self, feed: "ChangeFeed", store: str, token: int):
        self._feed = feed
        self.store = store
        self.token = token
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self._feed._unsubscribe(self.store, self.token)
            self.active = False


class ChangeFeed:
    """In-process change notification channel."""

    def __init__(self):
        self._subscribers: Dict[str, Dict[int, ChangeCallback]] = {}
        self._tokens = itertools.count(1)

    def subscribe(self, store: str, callback: ChangeCallback) -> Subscription:
        """Register callback for events on one store name."""
        token = next(self._tokens)
        self._subscribers.setdefault(store, {})[token] = callback
        return Subscription(self, store, token)

    def _unsubscribe(self, store: str, token: int) -> None:
        callbacks = self._subscribers.get(store)
        if callbacks:
            callbacks.pop(token, None)
            if not callbacks:
                del self._subscribers[store]

    def publish(self, store: str, origin: Optional[str] = None) -> ChangeEvent:
        """Deliver a change event to every subscriber of store."""
        event = ChangeEvent(store=store, origin=origin)
        for callback in list(self._subscribers.get(store, {}).values()):
            try:
                callback(event)
            except Exception:
                # One broken subscriber must not starve the others
                logger.exception(f"Change subscriber failed for store '{store}'")
        return event

    def subscriber_count(self, store: str) -> int:
        return len(self._subscribers.get(store, {}))

    def stores(self) -> List[str]:
        return sorted(self._subscribers)
