"""Tests for the Redis pub/sub change bus against a mocked client."""

import json
from unittest.mock import MagicMock, patch

import pytest

from dispatch.changefeed.port import ORDERS, SHOP_PAYMENTS
from dispatch.changefeed.redis_adapter import RedisChangeBus

pytestmark = pytest.mark.fast


@pytest.fixture()
def client():
    return MagicMock()


@pytest.fixture()
def bus(client):
    return RedisChangeBus(client, channel_prefix="test:changes:")


class TestPublish:
    def test_publishes_table_only_payload(self, bus, client):
        client.publish.return_value = 2

        delivered = bus.publish(ORDERS)

        assert delivered == 2
        channel, payload = client.publish.call_args.args
        assert channel == "test:changes:orders"
        data = json.loads(payload)
        assert data["table"] == ORDERS
        assert set(data) == {"table", "signalled_at"}

    def test_unknown_table_rejected(self, bus, client):
        with pytest.raises(ValueError):
            bus.publish("customers")
        client.publish.assert_not_called()


class TestSubscribe:
    def _handler_for(self, client, channel):
        pubsub = client.pubsub.return_value
        return pubsub.subscribe.call_args.kwargs[channel]

    def test_subscribes_each_table_channel(self, bus, client):
        bus.subscribe([ORDERS, SHOP_PAYMENTS], lambda signal: None)

        client.pubsub.assert_called_once_with(ignore_subscribe_messages=True)
        pubsub = client.pubsub.return_value
        assert set(pubsub.subscribe.call_args.kwargs) == {"test:changes:orders", "test:changes:shop_payments"}
        pubsub.run_in_thread.assert_called_once_with(sleep_time=0.05, daemon=True)

    def test_message_becomes_signal(self, bus, client):
        seen = []
        bus.subscribe([ORDERS], seen.append)
        handler = self._handler_for(client, "test:changes:orders")

        handler(
            {
                "channel": b"test:changes:orders",
                "data": json.dumps({"table": ORDERS, "signalled_at": "2026-10-18T10:00:00+00:00"}),
            }
        )

        assert len(seen) == 1
        assert seen[0].table == ORDERS
        assert seen[0].signalled_at.year == 2026

    def test_failing_callback_is_contained(self, bus, client):
        bus.subscribe([ORDERS], MagicMock(side_effect=RuntimeError("observer crashed")))
        handler = self._handler_for(client, "test:changes:orders")

        message = {"table": ORDERS, "signalled_at": "2026-10-18T10:00:00+00:00"}

        handler({"channel": b"test:changes:orders", "data": json.dumps(message)})

    def test_unsubscribe_stops_listener(self, bus, client):
        subscription = bus.subscribe([ORDERS], lambda signal: None)
        pubsub = client.pubsub.return_value
        thread = pubsub.run_in_thread.return_value

        bus.unsubscribe(subscription)
        bus.unsubscribe(subscription)

        thread.stop.assert_called_once()
        pubsub.close.assert_called_once()

    def test_close_stops_all_listeners(self, bus, client):
        bus.subscribe([ORDERS], lambda signal: None)
        bus.subscribe([SHOP_PAYMENTS], lambda signal: None)

        bus.close()

        thread = client.pubsub.return_value.run_in_thread.return_value
        assert thread.stop.call_count == 2


def test_from_url_builds_client():
    with patch("dispatch.changefeed.redis_adapter.redis.Redis.from_url") as from_url:
        bus = RedisChangeBus.from_url("redis://localhost:6379/3")

    from_url.assert_called_once_with("redis://localhost:6379/3")
    assert bus.channel_for(ORDERS) == "dispatch:changes:orders"
