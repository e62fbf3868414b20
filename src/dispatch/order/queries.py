"""Order reads for the consoles."""

from protean.utils.globals import current_domain

from dispatch.order.order import Order
from dispatch.utils.queries import iter_all


def get_order(order_id: str) -> Order:
    return current_domain.repository_for(Order).get(order_id)


def list_orders(
    status: str | None = None,
    shop_name: str | None = None,
    delivery_boy_id: str | None = None,
) -> list[Order]:
    """Newest first, optionally narrowed by status, shop or agent."""
    filters = {
        key: value
        for key, value in (("status", status), ("shop_name", shop_name), ("delivery_boy_id", delivery_boy_id))
        if value
    }
    query = current_domain.repository_for(Order)._dao.query
    if filters:
        query = query.filter(**filters)
    return list(iter_all(query.order_by("-created_at")))
