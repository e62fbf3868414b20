"""Shop payment reads for the admin console."""

from protean.utils.globals import current_domain

from dispatch.settlement.shop_payment import ShopPayment
from dispatch.utils.queries import iter_all


def list_shop_payments(
    shop_name: str | None = None,
    payment_status: str | None = None,
    payment_type: str | None = None,
    order_id: str | None = None,
) -> list[ShopPayment]:
    filters = {
        key: value
        for key, value in (
            ("shop_name", shop_name),
            ("payment_status", payment_status),
            ("payment_type", payment_type),
            ("order_id", order_id),
        )
        if value
    }
    query = current_domain.repository_for(ShopPayment)._dao.query
    if filters:
        query = query.filter(**filters)
    return list(iter_all(query.order_by("-created_at")))
