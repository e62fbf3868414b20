"""Redis pub/sub change bus for deployments with several API processes.

Each table maps to one Redis channel. Every subscription owns a pubsub
connection drained by a background thread, so callbacks run off the
publishing request's thread.
"""

import json
from collections.abc import Iterable
from datetime import UTC, datetime

import redis
import structlog

from dispatch.changefeed.port import ChangeBus, ChangeCallback, ChangeSignal, Subscription, validate_tables

logger = structlog.get_logger(__name__)

DEFAULT_CHANNEL_PREFIX = "dispatch:changes:"


class RedisChangeBus(ChangeBus):
    def __init__(
        self,
        client: redis.Redis,
        channel_prefix: str = DEFAULT_CHANNEL_PREFIX,
        poll_interval: float = 0.05,
    ) -> None:
        self._client = client
        self._channel_prefix = channel_prefix
        self._poll_interval = poll_interval
        self._listeners: dict[str, tuple] = {}

    @classmethod
    def from_url(cls, url: str, **kwargs) -> "RedisChangeBus":
        return cls(redis.Redis.from_url(url), **kwargs)

    def channel_for(self, table: str) -> str:
        return f"{self._channel_prefix}{table}"

    def publish(self, table: str) -> int:
        validate_tables([table])
        payload = json.dumps({"table": table, "signalled_at": datetime.now(UTC).isoformat()})
        return self._client.publish(self.channel_for(table), payload)

    def subscribe(self, tables: Iterable[str], callback: ChangeCallback) -> Subscription:
        subscription = Subscription(tables=validate_tables(tables), callback=callback)

        def _on_message(message: dict) -> None:
            try:
                data = json.loads(message["data"])
                callback(
                    ChangeSignal(
                        table=data["table"],
                        signalled_at=datetime.fromisoformat(data["signalled_at"]),
                    )
                )
            except Exception:
                logger.exception(
                    "Change subscriber failed",
                    channel=message.get("channel"),
                    subscription_id=subscription.subscription_id,
                )

        pubsub = self._client.pubsub(ignore_subscribe_messages=True)
        pubsub.subscribe(**{self.channel_for(table): _on_message for table in subscription.tables})
        thread = pubsub.run_in_thread(sleep_time=self._poll_interval, daemon=True)
        self._listeners[subscription.subscription_id] = (pubsub, thread)
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        listener = self._listeners.pop(subscription.subscription_id, None)
        if listener is None:
            return
        pubsub, thread = listener
        thread.stop()
        pubsub.close()

    def close(self) -> None:
        for pubsub, thread in self._listeners.values():
            thread.stop()
            pubsub.close()
        self._listeners.clear()
