"""Shop settlement domain events."""

from protean.fields import Date, DateTime, Float, Identifier, String

from dispatch.domain import dispatch


@dispatch.event(part_of="ShopPayment")
class ShopPaymentRecorded:
    """A payable obligation to a shop was derived from a delivered order."""

    __version__ = 1

    payment_id = Identifier(required=True)
    order_id = Identifier()
    shop_name = String(required=True)
    payment_type = String(required=True)
    amount = Float(required=True)
    payment_date = Date()
    recorded_at = DateTime(required=True)


@dispatch.event(part_of="ShopPayment")
class ShopPaymentSettled:
    """The obligation was paid out to the shop."""

    __version__ = 1

    payment_id = Identifier(required=True)
    shop_name = String(required=True)
    amount = Float(required=True)
    paid_by = String(required=True)
    transaction_id = String()
    paid_at = DateTime(required=True)


@dispatch.event(part_of="ShopPayment")
class ShopPaymentAmountAdjusted:
    """An unpaid obligation's amount was corrected."""

    __version__ = 1

    payment_id = Identifier(required=True)
    previous_amount = Float(required=True)
    amount = Float(required=True)
    adjusted_at = DateTime(required=True)
