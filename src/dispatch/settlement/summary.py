"""Per-shop settlement totals, recomputed from the payment records on each call."""

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from protean.utils.globals import current_domain

from dispatch.settlement.shop_payment import PaymentType, SettlementStatus, ShopPayment
from dispatch.utils.queries import iter_all

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass
class ShopSettlementSummary:
    """Money owed to and paid to one shop.

    Amounts are two-place decimals so that the per-type figures add up to
    the totals exactly.
    """

    shop_name: str
    pending_commission: Decimal = ZERO
    pending_delivery_charge: Decimal = ZERO
    pending_other: Decimal = ZERO
    paid_commission: Decimal = ZERO
    paid_delivery_charge: Decimal = ZERO
    paid_other: Decimal = ZERO
    payment_count: int = 0
    pending_count: int = 0
    last_payment_date: date | None = None

    @property
    def total_pending(self) -> Decimal:
        return self.pending_commission + self.pending_delivery_charge + self.pending_other

    @property
    def total_paid(self) -> Decimal:
        return self.paid_commission + self.paid_delivery_charge + self.paid_other

    def add(self, payment) -> None:
        status = SettlementStatus(payment.payment_status).value
        attribute = f"{status}_{PaymentType(payment.payment_type).value}"
        setattr(self, attribute, getattr(self, attribute) + to_money(payment.amount))
        self.payment_count += 1
        if status == SettlementStatus.PENDING.value:
            self.pending_count += 1
        if payment.payment_date and (self.last_payment_date is None or payment.payment_date > self.last_payment_date):
            self.last_payment_date = payment.payment_date

    def to_dict(self) -> dict:
        return {
            "shop_name": self.shop_name,
            "total_pending": float(self.total_pending),
            "total_paid": float(self.total_paid),
            "pending_commission": float(self.pending_commission),
            "pending_delivery_charge": float(self.pending_delivery_charge),
            "pending_other": float(self.pending_other),
            "paid_commission": float(self.paid_commission),
            "paid_delivery_charge": float(self.paid_delivery_charge),
            "paid_other": float(self.paid_other),
            "payment_count": self.payment_count,
            "pending_count": self.pending_count,
            "last_payment_date": self.last_payment_date.isoformat() if self.last_payment_date else None,
        }


def summarize_per_shop(shop_name: str | None = None) -> list[ShopSettlementSummary]:
    """Group every shop payment by shop and total it by status and type.

    Shops owed the most come first.
    """
    query = current_domain.repository_for(ShopPayment)._dao.query
    if shop_name:
        query = query.filter(shop_name=shop_name)

    summaries: dict[str, ShopSettlementSummary] = {}
    for payment in iter_all(query.order_by("created_at")):
        summary = summaries.setdefault(payment.shop_name, ShopSettlementSummary(shop_name=payment.shop_name))
        summary.add(payment)

    return sorted(summaries.values(), key=lambda summary: (-summary.total_pending, summary.shop_name))
