"""Shop payment settlement — commands and handler."""

from protean import handle
from protean.fields import Float, Identifier, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.settlement.shop_payment import ShopPayment


@dispatch.command(part_of="ShopPayment")
class MarkShopPaymentPaid:
    """Record that an obligation was paid out to the shop."""

    payment_id = Identifier(required=True)
    paid_by = String(required=True, max_length=100)
    transaction_id = String(max_length=255)


@dispatch.command(part_of="ShopPayment")
class AdjustShopPaymentAmount:
    """Correct the amount of an unpaid obligation."""

    payment_id = Identifier(required=True)
    amount = Float(required=True)


@dispatch.command_handler(part_of=ShopPayment)
class SettlementHandler:
    @handle(MarkShopPaymentPaid)
    def mark_paid(self, command):
        repo = current_domain.repository_for(ShopPayment)
        payment = repo.get(command.payment_id)
        payment.mark_paid(
            paid_by=command.paid_by,
            transaction_id=command.transaction_id,
        )
        repo.add(payment)

    @handle(AdjustShopPaymentAmount)
    def adjust_amount(self, command):
        repo = current_domain.repository_for(ShopPayment)
        payment = repo.get(command.payment_id)
        payment.adjust_amount(command.amount)
        repo.add(payment)
