"""Change relays — turn committed aggregate events into table signals.

Event handlers run after the unit of work commits, so observers that
re-read on a signal always see the write that caused it.
"""

from protean.utils.mixins import handle

from dispatch.assignment.assignment import OrderAssignment
from dispatch.assignment.events import AssignmentAccepted, AssignmentProposed, AssignmentRejected
from dispatch.changefeed import publish_change
from dispatch.changefeed.port import ORDER_ASSIGNMENTS, ORDERS, SHOP_PAYMENTS
from dispatch.domain import dispatch
from dispatch.order.events import OrderCancelled, OrderCreated, OrderDelivered, OrderPickedUp
from dispatch.order.order import Order
from dispatch.settlement.events import ShopPaymentAmountAdjusted, ShopPaymentRecorded, ShopPaymentSettled
from dispatch.settlement.shop_payment import ShopPayment


@dispatch.event_handler(part_of=Order)
class OrderChangeRelay:
    @handle(OrderCreated)
    def on_order_created(self, event: OrderCreated) -> None:
        publish_change(ORDERS)

    @handle(OrderPickedUp)
    def on_order_picked_up(self, event: OrderPickedUp) -> None:
        publish_change(ORDERS)

    @handle(OrderDelivered)
    def on_order_delivered(self, event: OrderDelivered) -> None:
        publish_change(ORDERS)

    @handle(OrderCancelled)
    def on_order_cancelled(self, event: OrderCancelled) -> None:
        publish_change(ORDERS)


@dispatch.event_handler(part_of=OrderAssignment)
class AssignmentChangeRelay:
    @handle(AssignmentProposed)
    def on_assignment_proposed(self, event: AssignmentProposed) -> None:
        publish_change(ORDER_ASSIGNMENTS)

    @handle(AssignmentAccepted)
    def on_assignment_accepted(self, event: AssignmentAccepted) -> None:
        publish_change(ORDER_ASSIGNMENTS)

    @handle(AssignmentRejected)
    def on_assignment_rejected(self, event: AssignmentRejected) -> None:
        publish_change(ORDER_ASSIGNMENTS)


@dispatch.event_handler(part_of=ShopPayment)
class ShopPaymentChangeRelay:
    @handle(ShopPaymentRecorded)
    def on_payment_recorded(self, event: ShopPaymentRecorded) -> None:
        publish_change(SHOP_PAYMENTS)

    @handle(ShopPaymentSettled)
    def on_payment_settled(self, event: ShopPaymentSettled) -> None:
        publish_change(SHOP_PAYMENTS)

    @handle(ShopPaymentAmountAdjusted)
    def on_payment_amount_adjusted(self, event: ShopPaymentAmountAdjusted) -> None:
        publish_change(SHOP_PAYMENTS)
