"""Derive shop payment obligations from delivered orders.

Each delivered order owes its shop a commission and a delivery charge. The
reconciler scans every delivered order and inserts whichever of those two
obligations is missing and positive. Running it any number of times, or
concurrently, leaves exactly one obligation per (order, payment type): the
existence check skips known rows and the unique ``settlement_key`` rejects
a row another run inserted first.
"""

from dataclasses import asdict, dataclass

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain

from dispatch.order.order import Order, OrderStatus
from dispatch.settlement.shop_payment import PaymentType, ShopPayment
from dispatch.utils.queries import iter_all

logger = structlog.get_logger(__name__)

# Obligation type → the Order field holding its amount
OBLIGATION_SOURCES = {
    PaymentType.COMMISSION: "commission",
    PaymentType.DELIVERY_CHARGE: "delivery_charge",
}


@dataclass
class ReconciliationReport:
    orders_scanned: int = 0
    orders_synced: int = 0
    payments_created: int = 0
    payments_skipped: int = 0

    def to_dict(self) -> dict:
        return asdict(self)


class SettlementReconciler:
    def __init__(self, page_size: int = 100) -> None:
        self.page_size = page_size

    def run(self) -> ReconciliationReport:
        report = ReconciliationReport()
        order_repo = current_domain.repository_for(Order)
        delivered = order_repo._dao.query.filter(status=OrderStatus.DELIVERED.value).order_by("created_at")

        for order in iter_all(delivered, self.page_size):
            report.orders_scanned += 1
            created = self._reconcile_order(order, report)
            if created:
                report.orders_synced += 1

        logger.info("Settlement reconciliation finished", **report.to_dict())
        return report

    def _reconcile_order(self, order, report: ReconciliationReport) -> int:
        payment_repo = current_domain.repository_for(ShopPayment)
        existing = {
            payment.payment_type
            for payment in payment_repo._dao.query.filter(order_id=str(order.id)).all().items
        }

        created = 0
        for payment_type, source_field in OBLIGATION_SOURCES.items():
            amount = getattr(order, source_field) or 0.0
            if amount <= 0:
                continue
            if payment_type.value in existing:
                report.payments_skipped += 1
                continue

            payment = ShopPayment.record_obligation(
                order_id=str(order.id),
                shop_name=order.shop_name,
                payment_type=payment_type,
                amount=amount,
                payment_date=order.created_at.date() if order.created_at else None,
                notes=f"Auto-generated for order {order.order_number}",
            )
            try:
                payment_repo.add(payment)
            except ValidationError as exc:
                if "settlement_key" not in exc.messages:
                    raise
                # Another run inserted it between our check and our insert
                logger.info(
                    "Shop payment already recorded by a concurrent run",
                    order_id=str(order.id),
                    payment_type=payment_type.value,
                )
                report.payments_skipped += 1
                continue

            created += 1
            report.payments_created += 1
            logger.info(
                "Shop payment obligation recorded",
                order_id=str(order.id),
                shop_name=order.shop_name,
                payment_type=payment_type.value,
                amount=amount,
            )
        return created
