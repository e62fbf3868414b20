import json

import pytest


@pytest.fixture(scope="session")
def _dispatch_domain(request):
    """Initialize the dispatch domain once per session."""
    from dispatch.domain import dispatch

    dispatch.init()
    return dispatch


@pytest.fixture(scope="session", autouse=True)
def setup_db(_dispatch_domain):
    from dispatch.utils.db import drop_db, setup_db

    setup_db(_dispatch_domain)

    yield

    drop_db(_dispatch_domain)


@pytest.fixture(autouse=True)
def run_around_tests(_dispatch_domain):
    """Push domain context and a fresh change bus before each test, cleanup after."""
    from dispatch.changefeed import reset_change_bus, set_change_bus
    from dispatch.changefeed.memory_adapter import InMemoryChangeBus

    ctx = _dispatch_domain.domain_context()
    ctx.push()
    set_change_bus(InMemoryChangeBus())

    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    for _, broker in current_domain.brokers.items():
        broker._data_reset()

    current_domain.event_store.store._data_reset()
    reset_change_bus()
    ctx.pop()


@pytest.fixture()
def change_bus():
    """The in-memory bus installed for the current test."""
    from dispatch.changefeed import get_change_bus

    return get_change_bus()


# ---------------------------------------------------------------------------
# Shared builders
# ---------------------------------------------------------------------------
DEFAULT_ITEMS = [
    {"name": "Milk 1L", "quantity": 2, "unit_price": 60.0},
    {"name": "Bread", "quantity": 1, "unit_price": 45.0},
]


def _order_details(**overrides) -> dict:
    defaults = {
        "customer_name": "Asha Rao",
        "customer_phone": "+91-98450-00001",
        "customer_address": "12 MG Road, Bengaluru",
        "shop_name": "Fresh Mart",
        "items": json.dumps(DEFAULT_ITEMS),
        "total_amount": 500.0,
        "delivery_charge": 20.0,
        "commission": 50.0,
    }
    defaults.update(overrides)
    return defaults


@pytest.fixture()
def order_details():
    """Builder for valid CreateOrder keyword arguments."""
    return _order_details


@pytest.fixture()
def create_order():
    """Place an order through CreateOrder and return its id."""
    from protean.utils.globals import current_domain

    from dispatch.order.creation import CreateOrder

    def _create(**overrides) -> str:
        return current_domain.process(CreateOrder(**_order_details(**overrides)), asynchronous=False)

    return _create


@pytest.fixture()
def register_agent():
    """Register a delivery agent and return its id."""
    from protean.utils.globals import current_domain

    from dispatch.delivery_boy.delivery_boy import DeliveryBoy

    def _register(**overrides) -> str:
        defaults = {"name": "Ravi Kumar", "phone": "+91-90000-00001", "vehicle_type": "bike"}
        defaults.update(overrides)
        agent = DeliveryBoy(**defaults)
        current_domain.repository_for(DeliveryBoy).add(agent)
        return str(agent.id)

    return _register


@pytest.fixture()
def deliver_order(create_order, register_agent):
    """Take a fresh order through proposal, acceptance, pickup and delivery."""
    from protean.utils.globals import current_domain

    from dispatch.assignment.coordinator import AssignmentCoordinator
    from dispatch.order.lifecycle import AdvanceOrderStatus

    def _deliver(**overrides) -> str:
        order_id = create_order(**overrides)
        agent_id = register_agent()
        coordinator = AssignmentCoordinator()
        assignment = coordinator.propose(order_id, agent_id)
        coordinator.respond(str(assignment.id), "accepted")
        for status in ("picked_up", "delivered"):
            current_domain.process(
                AdvanceOrderStatus(order_id=order_id, target_status=status, actor=agent_id),
                asynchronous=False,
            )
        return order_id

    return _deliver
