"""Order creation — command and handler."""

import json

from protean import handle
from protean.exceptions import ValidationError
from protean.fields import Float, String, Text
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.order.order import Order


@dispatch.command(part_of="Order")
class CreateOrder:
    """Place a new delivery order."""

    customer_name = String(required=True, max_length=255)
    customer_phone = String(required=True, max_length=30)
    customer_address = Text(required=True)
    shop_name = String(required=True, max_length=255)
    items = Text(required=True)  # JSON list of line item dicts
    total_amount = Float(required=True)
    delivery_charge = Float(default=0.0)
    commission = Float(default=0.0)
    payment_method = String(max_length=20)
    order_number = String(max_length=50)
    shop_address = Text()
    shop_phone = String(max_length=30)
    special_instructions = Text()
    created_by = String(max_length=100)


@dispatch.command_handler(part_of=Order)
class CreateOrderHandler:
    @handle(CreateOrder)
    def create_order(self, command):
        try:
            items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        except json.JSONDecodeError:
            raise ValidationError({"items": ["Line items must be valid JSON"]}) from None
        if not isinstance(items_data, list):
            raise ValidationError({"items": ["Line items must be a JSON list"]})

        order = Order.create(
            customer_name=command.customer_name,
            customer_phone=command.customer_phone,
            customer_address=command.customer_address,
            shop_name=command.shop_name,
            items_data=items_data,
            total_amount=command.total_amount,
            delivery_charge=command.delivery_charge,
            commission=command.commission,
            payment_method=command.payment_method,
            order_number=command.order_number,
            shop_address=command.shop_address,
            shop_phone=command.shop_phone,
            special_instructions=command.special_instructions,
            created_by=command.created_by,
        )
        current_domain.repository_for(Order).add(order)
        return str(order.id)
