"""Dispatch domain API package."""

from dispatch.api.errors import register_dispatch_error_handlers
from dispatch.api.routes import assignment_router, delivery_boy_router, order_router, shop_payment_router

__all__ = [
    "order_router",
    "assignment_router",
    "delivery_boy_router",
    "shop_payment_router",
    "register_dispatch_error_handlers",
]
