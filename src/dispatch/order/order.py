"""Order aggregate (CQRS) — a delivery order moving through fulfillment.

State Machine:
    PENDING → ASSIGNED → PICKED_UP → DELIVERED
    {PENDING, ASSIGNED} → CANCELLED

PENDING → ASSIGNED is never applied through the aggregate: the assignment
coordinator claims the order with a conditional row update so that racing
proposals are serialized by the store. The aggregate owns every other edge.
"""

from datetime import UTC, datetime
from enum import Enum
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from dispatch.domain import dispatch
from dispatch.errors import InvalidTransition, TerminalStateViolation
from dispatch.order.events import OrderCancelled, OrderCreated, OrderDelivered, OrderPickedUp


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class OrderStatus(Enum):
    PENDING = "pending"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"


class PaymentMethod(Enum):
    CASH = "cash"
    UPI = "upi"
    CARD = "card"
    OTHER = "other"


# Edges reachable through advance_to(); claiming and cancelling have their own paths
_ADVANCE_TRANSITIONS = {
    OrderStatus.ASSIGNED: {OrderStatus.PICKED_UP},
    OrderStatus.PICKED_UP: {OrderStatus.DELIVERED},
}

_CANCELLABLE_STATUSES = {OrderStatus.PENDING, OrderStatus.ASSIGNED}

# Statuses in which the order must reference a delivery agent
AGENT_BOUND_STATUSES = {OrderStatus.ASSIGNED, OrderStatus.PICKED_UP, OrderStatus.DELIVERED}

TERMINAL_STATUSES = {OrderStatus.DELIVERED, OrderStatus.CANCELLED}


def generate_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(UTC)
    return f"ORD-{now:%Y%m%d}-{uuid4().hex[:6].upper()}"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@dispatch.entity(part_of="Order")
class LineItem:
    """A single product line on the order."""

    name = String(required=True, max_length=255)
    quantity = Integer(required=True, min_value=1)
    unit_price = Float(required=True, min_value=0.0)
    description = String(max_length=500)


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@dispatch.aggregate
class Order:
    order_number = String(max_length=50)
    customer_name = String(required=True, max_length=255)
    customer_phone = String(required=True, max_length=30)
    customer_address = Text(required=True)
    shop_name = String(required=True, max_length=255)
    shop_address = Text()
    shop_phone = String(max_length=30)
    items = HasMany(LineItem)
    total_amount = Float(required=True, min_value=0.0)
    delivery_charge = Float(default=0.0, min_value=0.0)
    commission = Float(default=0.0, min_value=0.0)
    payment_status = String(choices=PaymentStatus, default=PaymentStatus.PENDING.value)
    payment_method = String(choices=PaymentMethod, default=PaymentMethod.CASH.value)
    status = String(choices=OrderStatus, default=OrderStatus.PENDING.value)
    delivery_boy_id = Identifier()
    assigned_at = DateTime()
    picked_up_at = DateTime()
    delivered_at = DateTime()
    cancelled_at = DateTime()
    cancellation_reason = String(max_length=500)
    cancelled_by = String(max_length=100)
    special_instructions = Text()
    created_by = String(max_length=100)
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def delivery_agent_is_set_only_while_bound(self):
        bound = OrderStatus(self.status) in AGENT_BOUND_STATUSES
        if bound and not self.delivery_boy_id:
            raise ValidationError({"delivery_boy_id": [f"An order in {self.status} state needs a delivery agent"]})
        if not bound and self.delivery_boy_id:
            raise ValidationError({"delivery_boy_id": [f"An order in {self.status} state cannot have a delivery agent"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def create(
        cls,
        customer_name: str,
        customer_phone: str,
        customer_address: str,
        shop_name: str,
        items_data: list[dict],
        total_amount: float,
        delivery_charge: float = 0.0,
        commission: float = 0.0,
        payment_method: str | None = None,
        order_number: str | None = None,
        shop_address: str | None = None,
        shop_phone: str | None = None,
        special_instructions: str | None = None,
        created_by: str | None = None,
    ):
        """Create a new order in PENDING state with no delivery agent."""
        if not items_data:
            raise ValidationError({"items": ["An order needs at least one line item"]})

        now = datetime.now(UTC)
        order = cls(
            order_number=order_number or generate_order_number(now),
            customer_name=customer_name,
            customer_phone=customer_phone,
            customer_address=customer_address,
            shop_name=shop_name,
            shop_address=shop_address,
            shop_phone=shop_phone,
            total_amount=total_amount,
            delivery_charge=delivery_charge or 0.0,
            commission=commission or 0.0,
            payment_method=payment_method or PaymentMethod.CASH.value,
            status=OrderStatus.PENDING.value,
            special_instructions=special_instructions,
            created_by=created_by,
            created_at=now,
            updated_at=now,
        )
        for item_data in items_data:
            order.add_items(LineItem(**item_data))

        order.raise_(
            OrderCreated(
                order_id=str(order.id),
                order_number=order.order_number,
                customer_name=customer_name,
                customer_phone=customer_phone,
                shop_name=shop_name,
                total_amount=order.total_amount,
                delivery_charge=order.delivery_charge,
                commission=order.commission,
                item_count=len(items_data),
                created_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # Status progression
    # -------------------------------------------------------------------
    def advance_to(self, target_status: OrderStatus, actor: str | None = None) -> bool:
        """Move the order forward along the delivery path.

        Returns False when the order is already in ``target_status`` so that
        retried requests leave the original timestamp untouched.
        """
        current = OrderStatus(self.status)
        if current == target_status and target_status in (OrderStatus.PICKED_UP, OrderStatus.DELIVERED):
            return False

        if target_status not in _ADVANCE_TRANSITIONS.get(current, set()):
            raise InvalidTransition(
                f"Cannot transition from {current.value} to {target_status.value}",
                order_id=str(self.id),
                current_status=current.value,
                target_status=target_status.value,
            )

        now = datetime.now(UTC)
        self.status = target_status.value
        self.updated_at = now

        if target_status == OrderStatus.PICKED_UP:
            self.picked_up_at = now
            self.raise_(
                OrderPickedUp(
                    order_id=str(self.id),
                    delivery_boy_id=str(self.delivery_boy_id),
                    picked_up_by=actor or "",
                    picked_up_at=now,
                )
            )
        else:
            self.delivered_at = now
            self.raise_(
                OrderDelivered(
                    order_id=str(self.id),
                    delivery_boy_id=str(self.delivery_boy_id),
                    delivered_by=actor or "",
                    shop_name=self.shop_name,
                    commission=self.commission or 0.0,
                    delivery_charge=self.delivery_charge or 0.0,
                    delivered_at=now,
                )
            )
        return True

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str, cancelled_by: str | None = None) -> None:
        """Cancel the order while goods have not left the shop."""
        if not reason:
            raise ValidationError({"reason": ["A cancellation reason is required"]})

        current = OrderStatus(self.status)
        if current not in _CANCELLABLE_STATUSES:
            raise TerminalStateViolation(
                f"Cannot cancel order in {current.value} state",
                order_id=str(self.id),
                current_status=current.value,
            )

        now = datetime.now(UTC)
        previous_agent = self.delivery_boy_id
        with atomic_change(self):
            self.status = OrderStatus.CANCELLED.value
            self.delivery_boy_id = None
            self.cancellation_reason = reason
            self.cancelled_by = cancelled_by
            self.cancelled_at = now
            self.updated_at = now

        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                previous_status=current.value,
                previous_delivery_boy_id=str(previous_agent) if previous_agent else None,
                reason=reason,
                cancelled_by=cancelled_by or "",
                cancelled_at=now,
            )
        )
