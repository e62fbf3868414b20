"""ShopPayment aggregate (CQRS) — one obligation from the platform to a shop.

State Machine:
    PENDING → PAID (terminal)

``settlement_key`` is unique per (order, payment type), which makes
reconciliation idempotent even when two runs race.
"""

from datetime import UTC, date, datetime
from enum import Enum

from protean.exceptions import ValidationError
from protean.fields import Date, DateTime, Float, Identifier, String, Text

from dispatch.domain import dispatch
from dispatch.errors import AlreadySettled
from dispatch.settlement.events import ShopPaymentAmountAdjusted, ShopPaymentRecorded, ShopPaymentSettled


class PaymentType(Enum):
    COMMISSION = "commission"
    DELIVERY_CHARGE = "delivery_charge"
    OTHER = "other"


class SettlementStatus(Enum):
    PENDING = "pending"
    PAID = "paid"


def settlement_key(order_id: str, payment_type: PaymentType) -> str:
    return f"{order_id}:{payment_type.value}"


@dispatch.aggregate
class ShopPayment:
    shop_name = String(required=True, max_length=255)
    amount = Float(required=True, min_value=0.0)
    payment_type = String(required=True, choices=PaymentType)
    order_id = Identifier()
    settlement_key = String(max_length=100, unique=True)
    payment_status = String(choices=SettlementStatus, default=SettlementStatus.PENDING.value)
    payment_date = Date()
    transaction_id = String(max_length=255)
    paid_by = String(max_length=100)
    paid_at = DateTime()
    notes = Text()
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime(default=lambda: datetime.now(UTC))

    @classmethod
    def record_obligation(
        cls,
        order_id: str,
        shop_name: str,
        payment_type: PaymentType,
        amount: float,
        payment_date: date | None = None,
        notes: str | None = None,
    ):
        """Create a pending obligation linked to an order."""
        if amount is None or amount <= 0:
            raise ValidationError({"amount": ["Obligation amount must be greater than zero"]})

        now = datetime.now(UTC)
        payment = cls(
            shop_name=shop_name,
            amount=amount,
            payment_type=payment_type.value,
            order_id=order_id,
            settlement_key=settlement_key(order_id, payment_type),
            payment_status=SettlementStatus.PENDING.value,
            payment_date=payment_date or now.date(),
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        payment.raise_(
            ShopPaymentRecorded(
                payment_id=str(payment.id),
                order_id=order_id,
                shop_name=shop_name,
                payment_type=payment_type.value,
                amount=amount,
                payment_date=payment.payment_date,
                recorded_at=now,
            )
        )
        return payment

    def _assert_pending(self) -> None:
        if SettlementStatus(self.payment_status) == SettlementStatus.PAID:
            raise AlreadySettled(
                "Shop payment has already been paid",
                payment_id=str(self.id),
                paid_by=self.paid_by,
                paid_at=self.paid_at.isoformat() if self.paid_at else None,
            )

    def mark_paid(self, paid_by: str, transaction_id: str | None = None) -> None:
        """Settle the obligation."""
        self._assert_pending()
        if not paid_by:
            raise ValidationError({"paid_by": ["The settling administrator is required"]})

        now = datetime.now(UTC)
        self.payment_status = SettlementStatus.PAID.value
        self.paid_by = paid_by
        self.paid_at = now
        self.transaction_id = transaction_id
        self.updated_at = now
        self.raise_(
            ShopPaymentSettled(
                payment_id=str(self.id),
                shop_name=self.shop_name,
                amount=self.amount,
                paid_by=paid_by,
                transaction_id=transaction_id or "",
                paid_at=now,
            )
        )

    def adjust_amount(self, amount: float) -> None:
        """Correct the amount of an obligation that has not been paid yet."""
        self._assert_pending()
        if amount is None or amount <= 0:
            raise ValidationError({"amount": ["Obligation amount must be greater than zero"]})

        now = datetime.now(UTC)
        previous = self.amount
        self.amount = amount
        self.updated_at = now
        self.raise_(
            ShopPaymentAmountAdjusted(
                payment_id=str(self.id),
                previous_amount=previous,
                amount=amount,
                adjusted_at=now,
            )
        )
