"""Application tests for settling shop payments and the per-shop summary."""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from dispatch.errors import AlreadySettled
from dispatch.settlement.reconciler import SettlementReconciler
from dispatch.settlement.settle import AdjustShopPaymentAmount, MarkShopPaymentPaid
from dispatch.settlement.shop_payment import PaymentType, ShopPayment
from dispatch.settlement.summary import summarize_per_shop


def _payments(**filters):
    return current_domain.repository_for(ShopPayment)._dao.query.filter(**filters).all().items


def _mark_paid(payment_id, paid_by="admin", transaction_id=None):
    current_domain.process(
        MarkShopPaymentPaid(payment_id=payment_id, paid_by=paid_by, transaction_id=transaction_id),
        asynchronous=False,
    )


def _summary_for(shop_name):
    (summary,) = summarize_per_shop(shop_name)
    return summary


@pytest.fixture()
def reconciled(deliver_order):
    order_id = deliver_order(commission=50.0, delivery_charge=20.0)
    SettlementReconciler().run()
    return {p.payment_type: str(p.id) for p in _payments(order_id=order_id)}


class TestMarkShopPaymentPaid:
    def test_mark_paid(self, reconciled):
        _mark_paid(reconciled["commission"], transaction_id="UTR-001")

        payment = current_domain.repository_for(ShopPayment).get(reconciled["commission"])
        assert payment.payment_status == "paid"
        assert payment.paid_by == "admin"
        assert payment.paid_at is not None
        assert payment.transaction_id == "UTR-001"

    def test_second_settlement_refused(self, reconciled):
        _mark_paid(reconciled["commission"])
        paid_at = current_domain.repository_for(ShopPayment).get(reconciled["commission"]).paid_at

        with pytest.raises(AlreadySettled):
            _mark_paid(reconciled["commission"], paid_by="another-admin")

        payment = current_domain.repository_for(ShopPayment).get(reconciled["commission"])
        assert payment.paid_by == "admin"
        assert payment.paid_at == paid_at

    def test_unknown_payment(self):
        with pytest.raises(ObjectNotFoundError):
            _mark_paid("missing-payment")


class TestAdjustShopPaymentAmount:
    def test_adjust_pending_amount(self, reconciled):
        current_domain.process(
            AdjustShopPaymentAmount(payment_id=reconciled["delivery_charge"], amount=25.0),
            asynchronous=False,
        )

        payment = current_domain.repository_for(ShopPayment).get(reconciled["delivery_charge"])
        assert payment.amount == 25.0

    def test_adjust_paid_amount_refused(self, reconciled):
        _mark_paid(reconciled["delivery_charge"])

        with pytest.raises(AlreadySettled):
            current_domain.process(
                AdjustShopPaymentAmount(payment_id=reconciled["delivery_charge"], amount=25.0),
                asynchronous=False,
            )

    def test_non_positive_amount_refused(self, reconciled):
        with pytest.raises(ValidationError):
            current_domain.process(
                AdjustShopPaymentAmount(payment_id=reconciled["delivery_charge"], amount=-1.0),
                asynchronous=False,
            )


class TestSummarizePerShop:
    def test_pending_obligations(self, reconciled):
        summary = _summary_for("Fresh Mart")

        assert summary.pending_commission == Decimal("50.00")
        assert summary.pending_delivery_charge == Decimal("20.00")
        assert summary.total_pending == Decimal("70.00")
        assert summary.total_paid == Decimal("0.00")
        assert summary.payment_count == 2
        assert summary.pending_count == 2

    def test_partially_paid(self, reconciled):
        _mark_paid(reconciled["commission"])

        summary = _summary_for("Fresh Mart")

        assert summary.pending_commission == Decimal("0.00")
        assert summary.paid_commission == Decimal("50.00")
        assert summary.total_pending == Decimal("20.00")
        assert summary.total_paid == Decimal("50.00")
        assert summary.pending_count == 1

    def test_groups_by_shop_with_largest_pending_first(self, deliver_order):
        deliver_order(shop_name="Zen Grocers")
        deliver_order(shop_name="Corner Bakery", commission=10.0, delivery_charge=5.0)
        deliver_order(shop_name="Corner Bakery", commission=7.5, delivery_charge=5.0)
        SettlementReconciler().run()

        summaries = summarize_per_shop()

        assert [s.shop_name for s in summaries] == ["Zen Grocers", "Corner Bakery"]
        bakery = summaries[1]
        assert bakery.pending_commission == Decimal("17.50")
        assert bakery.pending_delivery_charge == Decimal("10.00")
        assert bakery.payment_count == 4

    def test_shops_with_equal_pending_sorted_by_name(self, deliver_order):
        deliver_order(shop_name="Zen Grocers")
        deliver_order(shop_name="Corner Bakery")
        SettlementReconciler().run()

        assert [s.shop_name for s in summarize_per_shop()] == ["Corner Bakery", "Zen Grocers"]

    def test_last_payment_date_is_latest(self, reconciled):
        manual = ShopPayment(
            shop_name="Fresh Mart",
            amount=5.0,
            payment_type=PaymentType.OTHER.value,
            settlement_key="manual:fresh-mart:future",
            payment_date=date.today() + timedelta(days=3),
        )
        current_domain.repository_for(ShopPayment).add(manual)

        summary = _summary_for("Fresh Mart")

        assert summary.last_payment_date == manual.payment_date
        assert summary.to_dict()["last_payment_date"] == manual.payment_date.isoformat()

    def test_split_adds_up_to_total_for_every_shop(self, deliver_order):
        for n, (commission, charge) in enumerate([(0.1, 0.2), (0.1, 0.7), (33.33, 16.67), (0.05, 0.15)]):
            deliver_order(shop_name=f"Shop {n % 2}", commission=commission, delivery_charge=charge)
        SettlementReconciler().run()

        for summary in summarize_per_shop():
            assert summary.pending_commission + summary.pending_delivery_charge == summary.total_pending
            assert summary.paid_commission + summary.paid_delivery_charge == summary.total_paid

    def test_other_payments_are_reported_separately(self, reconciled):
        other = ShopPayment(
            shop_name="Fresh Mart",
            amount=15.0,
            payment_type=PaymentType.OTHER.value,
            settlement_key="manual:fresh-mart:1",
            notes="Packaging refund",
        )
        current_domain.repository_for(ShopPayment).add(other)

        summary = _summary_for("Fresh Mart")

        assert summary.pending_other == Decimal("15.00")
        assert summary.total_pending == Decimal("85.00")
        assert summary.payment_count == 3

    def test_reflects_current_state_on_every_call(self, reconciled):
        before = _summary_for("Fresh Mart")
        _mark_paid(reconciled["delivery_charge"])
        after = _summary_for("Fresh Mart")

        assert before.total_pending == Decimal("70.00")
        assert after.total_pending == Decimal("50.00")
        assert after.total_paid == Decimal("20.00")

    def test_unknown_shop_has_no_summary(self, reconciled):
        assert summarize_per_shop("No Such Shop") == []

    def test_to_dict_uses_floats(self, reconciled):
        row = _summary_for("Fresh Mart").to_dict()
        assert row["total_pending"] == 70.0
        assert row["pending_other"] == 0.0
        assert row["pending_count"] == 2
