"""In-process change bus for single-process deployments and tests."""

import threading
from collections.abc import Iterable
from datetime import UTC, datetime

import structlog

from dispatch.changefeed.port import ChangeBus, ChangeCallback, ChangeSignal, Subscription, validate_tables

logger = structlog.get_logger(__name__)


class InMemoryChangeBus(ChangeBus):
    """Synchronous fan-out to callbacks registered in this process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._subscriptions: dict[str, Subscription] = {}
        self.published: list[ChangeSignal] = []

    def subscribe(self, tables: Iterable[str], callback: ChangeCallback) -> Subscription:
        subscription = Subscription(tables=validate_tables(tables), callback=callback)
        with self._lock:
            self._subscriptions[subscription.subscription_id] = subscription
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        with self._lock:
            self._subscriptions.pop(subscription.subscription_id, None)

    def publish(self, table: str) -> int:
        validate_tables([table])
        signal = ChangeSignal(table=table, signalled_at=datetime.now(UTC))
        with self._lock:
            self.published.append(signal)
            targets = [s for s in self._subscriptions.values() if table in s.tables]

        delivered = 0
        for subscription in targets:
            # The write is already committed; a failing observer is skipped
            try:
                subscription.callback(signal)
                delivered += 1
            except Exception:
                logger.exception(
                    "Change subscriber failed",
                    table=table,
                    subscription_id=subscription.subscription_id,
                )
        return delivered

    @property
    def subscription_count(self) -> int:
        with self._lock:
            return len(self._subscriptions)

    def close(self) -> None:
        with self._lock:
            self._subscriptions.clear()
