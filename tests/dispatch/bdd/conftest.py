"""Shared BDD fixtures and step definitions for the Dispatch domain."""

from contextlib import ExitStack
from decimal import Decimal
from unittest.mock import patch

import pytest
from protean import atomic_change
from protean.utils.globals import current_domain
from pytest_bdd import given, parsers, then

from dispatch.assignment.coordinator import AssignmentCoordinator
from dispatch.errors import (
    AlreadySettled,
    CompensationFailure,
    InvalidTransition,
    OrderNoLongerAvailable,
    TerminalStateViolation,
)
from dispatch.order.events import OrderCancelled, OrderCreated, OrderDelivered, OrderPickedUp
from dispatch.order.order import Order, OrderStatus
from dispatch.settlement.summary import summarize_per_shop

# Map event name strings to classes for dynamic lookup
_ORDER_EVENT_CLASSES = {
    "OrderCreated": OrderCreated,
    "OrderPickedUp": OrderPickedUp,
    "OrderDelivered": OrderDelivered,
    "OrderCancelled": OrderCancelled,
}


def _assigned(agent_id):
    order = _new_order()
    with atomic_change(order):
        order.status = OrderStatus.ASSIGNED.value
        order.delivery_boy_id = agent_id
    order._events.clear()
    return order


def _new_order():
    return Order.create(
        customer_name="Asha Rao",
        customer_phone="+91-98450-00001",
        customer_address="12 MG Road, Bengaluru",
        shop_name="Fresh Mart",
        items_data=[{"name": "Milk 1L", "quantity": 2, "unit_price": 60.0}],
        total_amount=500.0,
        delivery_charge=20.0,
        commission=50.0,
    )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured errors."""
    return {"exc": None}


@pytest.fixture()
def context():
    """Scenario state: stored ids keyed by role or name."""
    return {"agents": {}, "assignments": {}}


@pytest.fixture()
def patches():
    with ExitStack() as stack:
        yield stack


@pytest.fixture()
def coordinator():
    return AssignmentCoordinator()


# ---------------------------------------------------------------------------
# Given steps — Order aggregate
# ---------------------------------------------------------------------------
@given("a pending order", target_fixture="order")
def pending_order():
    order = _new_order()
    order._events.clear()
    return order


@given(parsers.cfparse('an order assigned to agent "{agent_id}"'), target_fixture="order")
def assigned_order(agent_id):
    return _assigned(agent_id)


@given("a delivered order", target_fixture="order")
def delivered_order(context):
    order = _assigned("agent-1")
    order.advance_to(OrderStatus.PICKED_UP)
    order.advance_to(OrderStatus.DELIVERED)
    order._events.clear()
    context["delivered_at"] = order.delivered_at
    return order


# ---------------------------------------------------------------------------
# Given steps — stored records
# ---------------------------------------------------------------------------
@given("a pending order in the store")
def stored_pending_order(context, create_order):
    context["order_id"] = create_order()


@given(parsers.cfparse('an active agent "{name}"'))
def active_agent(context, register_agent, name):
    context["agents"][name] = register_agent(name=name)


@given(parsers.cfparse('the order was proposed to "{name}"'))
def order_was_proposed(context, coordinator, name):
    assignment = coordinator.propose(context["order_id"], context["agents"][name])
    context["assignments"][name] = str(assignment.id)


@given("recording assignments fails")
def recording_fails(patches):
    patches.enter_context(
        patch.object(AssignmentCoordinator, "_record_assignment", side_effect=RuntimeError("insert failed"))
    )


@given("releasing orders fails")
def releasing_fails(patches):
    patches.enter_context(
        patch.object(AssignmentCoordinator, "_release_order", side_effect=ConnectionError("store unreachable"))
    )


@given(
    parsers.cfparse(
        'a delivered order for "{shop_name}" with commission {commission:g} and delivery charge {charge:g}'
    )
)
def stored_delivered_order(deliver_order, shop_name, commission, charge):
    deliver_order(shop_name=shop_name, commission=float(commission), delivery_charge=float(charge))


# ---------------------------------------------------------------------------
# Then steps — Order aggregate
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then("the order has a delivered timestamp")
def order_has_delivered_timestamp(order):
    assert order.delivered_at is not None


@then("the delivered timestamp is unchanged")
def delivered_timestamp_unchanged(order, context):
    assert order.delivered_at == context["delivered_at"]


@then("the order has no delivery agent")
def order_has_no_agent(order):
    assert order.delivery_boy_id is None


@then(parsers.cfparse("a {event_type} order event is raised"))
def order_event_raised(order, event_type):
    event_cls = _ORDER_EVENT_CLASSES[event_type]
    assert any(isinstance(e, event_cls) for e in order._events)


@then("the action fails with an invalid transition")
def fails_with_invalid_transition(error):
    assert isinstance(error["exc"], InvalidTransition)


@then("the action fails with a terminal state violation")
def fails_with_terminal_state_violation(error):
    assert isinstance(error["exc"], TerminalStateViolation)


# ---------------------------------------------------------------------------
# Then steps — stored records
# ---------------------------------------------------------------------------
@then(parsers.cfparse('the stored order is "{status}" to "{name}"'))
def stored_order_assigned_to(context, status, name):
    order = current_domain.repository_for(Order).get(context["order_id"])
    assert order.status == status
    assert order.delivery_boy_id == context["agents"][name]


@then(parsers.cfparse('the stored order is "{status}" with no agent'))
def stored_order_without_agent(context, status):
    order = current_domain.repository_for(Order).get(context["order_id"])
    assert order.status == status
    assert order.delivery_boy_id is None


@then(parsers.cfparse("the order has {count:d} pending assignment"))
@then(parsers.cfparse("the order has {count:d} pending assignments"))
def pending_assignment_count(context, coordinator, count):
    assert len(coordinator.pending_assignments_for(context["order_id"])) == count


@then("the proposal fails")
def proposal_fails(error):
    assert error["exc"] is not None


@then("the proposal fails because the order is no longer available")
def proposal_fails_unavailable(error):
    assert isinstance(error["exc"], OrderNoLongerAvailable)


@then("the proposal fails with a compensation failure")
def proposal_fails_with_compensation_failure(error):
    assert isinstance(error["exc"], CompensationFailure)


@then(parsers.cfparse('the pending total for "{shop_name}" is {amount:g}'))
def pending_total_is(shop_name, amount):
    (summary,) = summarize_per_shop(shop_name)
    assert summary.total_pending == Decimal(str(amount)).quantize(Decimal("0.01"))


@then(parsers.cfparse('the paid total for "{shop_name}" is {amount:g}'))
def paid_total_is(shop_name, amount):
    (summary,) = summarize_per_shop(shop_name)
    assert summary.total_paid == Decimal(str(amount)).quantize(Decimal("0.01"))


@then(parsers.cfparse('"{shop_name}" has {count:d} pending payments'))
def pending_payment_count(shop_name, count):
    (summary,) = summarize_per_shop(shop_name)
    assert summary.pending_count == count


@then("the settlement fails because it was already settled")
def settlement_already_settled(error):
    assert isinstance(error["exc"], AlreadySettled)
