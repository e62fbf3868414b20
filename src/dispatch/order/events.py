"""Order domain events — immutable facts about order lifecycle changes."""

from protean.fields import DateTime, Float, Identifier, Integer, String

from dispatch.domain import dispatch


@dispatch.event(part_of="Order")
class OrderCreated:
    """A new delivery order was placed."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    customer_name = String(required=True)
    customer_phone = String(required=True)
    shop_name = String(required=True)
    total_amount = Float(required=True)
    delivery_charge = Float()
    commission = Float()
    item_count = Integer(required=True)
    created_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderPickedUp:
    """The delivery agent collected the goods from the shop."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivery_boy_id = Identifier(required=True)
    picked_up_by = String()
    picked_up_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderDelivered:
    """The goods reached the customer."""

    __version__ = 1

    order_id = Identifier(required=True)
    delivery_boy_id = Identifier(required=True)
    delivered_by = String()
    shop_name = String(required=True)
    commission = Float()
    delivery_charge = Float()
    delivered_at = DateTime(required=True)


@dispatch.event(part_of="Order")
class OrderCancelled:
    """The order was cancelled before pickup."""

    __version__ = 1

    order_id = Identifier(required=True)
    previous_status = String(required=True)
    previous_delivery_boy_id = Identifier()
    reason = String(required=True)
    cancelled_by = String()
    cancelled_at = DateTime(required=True)
