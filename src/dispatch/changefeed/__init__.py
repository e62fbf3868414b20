"""Change bus factory.

Provides get_change_bus() / set_change_bus() to swap implementations:
- InMemoryChangeBus for single-process deployments and testing (default)
- RedisChangeBus when CHANGE_BUS_URL points at a Redis server
"""

import os

from dispatch.changefeed.memory_adapter import InMemoryChangeBus
from dispatch.changefeed.port import ChangeBus

_current_bus: ChangeBus | None = None


def get_change_bus() -> ChangeBus:
    """Return the current change bus, building it from the environment on first use."""
    global _current_bus
    if _current_bus is None:
        url = os.environ.get("CHANGE_BUS_URL")
        if url:
            from dispatch.changefeed.redis_adapter import RedisChangeBus

            _current_bus = RedisChangeBus.from_url(url)
        else:
            _current_bus = InMemoryChangeBus()
    return _current_bus


def set_change_bus(bus: ChangeBus) -> None:
    """Override the active change bus (useful for tests)."""
    global _current_bus
    _current_bus = bus


def reset_change_bus() -> None:
    """Close and forget the active change bus."""
    global _current_bus
    if _current_bus is not None:
        _current_bus.close()
    _current_bus = None


def publish_change(table: str) -> int:
    """Broadcast a table change on the active bus."""
    return get_change_bus().publish(table)
