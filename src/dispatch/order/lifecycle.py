"""Order status progression — command and handler.

Delivery agents report pickup and delivery through AdvanceOrderStatus.
Repeating a report for a status the order already holds is a no-op.
"""

import structlog
from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.errors import InvalidTransition
from dispatch.order.order import Order, OrderStatus

logger = structlog.get_logger(__name__)


@dispatch.command(part_of="Order")
class AdvanceOrderStatus:
    """Move an order to its next fulfillment status."""

    order_id = Identifier(required=True)
    target_status = String(required=True, max_length=20)
    actor = String(max_length=100)


@dispatch.command_handler(part_of=Order)
class AdvanceOrderStatusHandler:
    @handle(AdvanceOrderStatus)
    def advance_status(self, command):
        try:
            target = OrderStatus(command.target_status)
        except ValueError:
            raise ValidationError({"target_status": [f"Unknown order status '{command.target_status}'"]}) from None

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if target == OrderStatus.CANCELLED:
            raise InvalidTransition(
                "Use CancelOrder to cancel an order",
                order_id=str(order.id),
                current_status=order.status,
                target_status=target.value,
            )

        if not order.advance_to(target, actor=command.actor):
            logger.info(
                "Order already in requested status",
                order_id=str(order.id),
                status=order.status,
                actor=command.actor,
            )
            return order.status

        repo.add(order)
        logger.info(
            "Order status advanced",
            order_id=str(order.id),
            status=order.status,
            actor=command.actor,
        )
        return order.status
