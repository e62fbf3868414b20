"""Change bus port (abstract interface).

A change signal says only that a table changed. Subscribers never receive
row content; they re-read whatever they display. Delivery is at-least-once
and signals may be duplicated or coalesced, which is harmless because a
re-read is idempotent.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime
from uuid import uuid4

ORDERS = "orders"
ORDER_ASSIGNMENTS = "order_assignments"
SHOP_PAYMENTS = "shop_payments"

TABLES = frozenset({ORDERS, ORDER_ASSIGNMENTS, SHOP_PAYMENTS})


@dataclass(frozen=True)
class ChangeSignal:
    """A table-level "something changed" notification."""

    table: str
    signalled_at: datetime


ChangeCallback = Callable[[ChangeSignal], None]


@dataclass(frozen=True, eq=False)
class Subscription:
    """Handle returned by ChangeBus.subscribe()."""

    tables: frozenset[str]
    callback: ChangeCallback
    subscription_id: str = field(default_factory=lambda: uuid4().hex)


def validate_tables(tables: Iterable[str]) -> frozenset[str]:
    tables = frozenset([tables] if isinstance(tables, str) else tables)
    if not tables:
        raise ValueError("At least one table must be given")
    unknown = tables - TABLES
    if unknown:
        raise ValueError(f"Unknown table(s): {', '.join(sorted(unknown))}")
    return tables


class ChangeBus(ABC):
    """Abstract change-notification channel."""

    @abstractmethod
    def subscribe(self, tables: Iterable[str], callback: ChangeCallback) -> Subscription:
        """Register ``callback`` for signals on any of ``tables``."""
        ...

    @abstractmethod
    def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivering signals to a subscription. Unknown handles are ignored."""
        ...

    @abstractmethod
    def publish(self, table: str) -> int:
        """Broadcast that ``table`` changed. Returns the number of receivers."""
        ...

    def close(self) -> None:
        """Release adapter resources."""
