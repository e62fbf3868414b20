"""Pydantic request/response schemas for the Dispatch API."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, Field

# --- Order Request Schemas ---


class LineItemSchema(BaseModel):
    name: str = Field(..., max_length=255)
    quantity: int = Field(..., ge=1)
    unit_price: float = Field(..., ge=0)
    description: str | None = Field(None, max_length=500)


class CreateOrderRequest(BaseModel):
    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "customer_name": "Asha Rao",
                    "customer_phone": "+91-98450-00001",
                    "customer_address": "12 MG Road, Bengaluru",
                    "shop_name": "Fresh Mart",
                    "items": [
                        {"name": "Milk 1L", "quantity": 2, "unit_price": 60.0},
                        {"name": "Bread", "quantity": 1, "unit_price": 45.0},
                    ],
                    "total_amount": 500.0,
                    "delivery_charge": 20.0,
                    "commission": 50.0,
                    "payment_method": "cash",
                }
            ]
        }
    }

    customer_name: str = Field(..., max_length=255)
    customer_phone: str = Field(..., max_length=30)
    customer_address: str
    shop_name: str = Field(..., max_length=255)
    items: list[LineItemSchema]
    total_amount: float
    delivery_charge: float = 0.0
    commission: float = 0.0
    payment_method: str | None = Field(None, max_length=20)
    shop_address: str | None = None
    shop_phone: str | None = Field(None, max_length=30)
    special_instructions: str | None = None
    created_by: str | None = Field(None, max_length=100)


class AdvanceStatusRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"target_status": "picked_up", "actor": "agent-007"}]}}

    target_status: str = Field(..., max_length=20)
    actor: str | None = Field(None, max_length=100)


class CancelOrderRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"reason": "Customer unreachable", "cancelled_by": "admin"}]}}

    reason: str = Field(..., max_length=500)
    cancelled_by: str | None = Field(None, max_length=100)


# --- Assignment Request Schemas ---


class ProposeAssignmentRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"delivery_boy_id": "agent-007", "notes": "Fragile items"}]}}

    delivery_boy_id: str
    notes: str | None = Field(None, max_length=1000)


class RespondToAssignmentRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"decision": "accepted"}]}}

    decision: str


# --- Shop Payment Request Schemas ---


class MarkPaidRequest(BaseModel):
    model_config = {"json_schema_extra": {"examples": [{"paid_by": "admin", "transaction_id": "UTR-20261018-001"}]}}

    paid_by: str = Field(..., max_length=100)
    transaction_id: str | None = Field(None, max_length=255)


class AdjustAmountRequest(BaseModel):
    amount: float


# --- Response Schemas ---


class OrderIdResponse(BaseModel):
    order_id: str


class StatusResponse(BaseModel):
    status: str = "ok"


class OrderStatusResponse(BaseModel):
    order_id: str
    status: str


class LineItemResponse(BaseModel):
    name: str
    quantity: int
    unit_price: float
    description: str | None = None


class OrderResponse(BaseModel):
    order_id: str
    order_number: str | None = None
    customer_name: str
    customer_phone: str
    customer_address: str
    shop_name: str
    shop_address: str | None = None
    shop_phone: str | None = None
    items: list[LineItemResponse] = []
    total_amount: float
    delivery_charge: float
    commission: float
    payment_status: str
    payment_method: str
    status: str
    delivery_boy_id: str | None = None
    assigned_at: datetime | None = None
    picked_up_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None
    special_instructions: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> OrderResponse:
        return cls(
            order_id=str(order.id),
            order_number=order.order_number,
            customer_name=order.customer_name,
            customer_phone=order.customer_phone,
            customer_address=order.customer_address,
            shop_name=order.shop_name,
            shop_address=order.shop_address,
            shop_phone=order.shop_phone,
            items=[
                LineItemResponse(
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    description=item.description,
                )
                for item in order.items
            ],
            total_amount=order.total_amount,
            delivery_charge=order.delivery_charge or 0.0,
            commission=order.commission or 0.0,
            payment_status=order.payment_status,
            payment_method=order.payment_method,
            status=order.status,
            delivery_boy_id=str(order.delivery_boy_id) if order.delivery_boy_id else None,
            assigned_at=order.assigned_at,
            picked_up_at=order.picked_up_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
            cancellation_reason=order.cancellation_reason,
            special_instructions=order.special_instructions,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class AssignmentResponse(BaseModel):
    assignment_id: str
    order_id: str
    delivery_boy_id: str
    status: str
    notes: str | None = None
    assigned_at: datetime | None = None
    responded_at: datetime | None = None

    @classmethod
    def from_assignment(cls, assignment) -> AssignmentResponse:
        return cls(
            assignment_id=str(assignment.id),
            order_id=str(assignment.order_id),
            delivery_boy_id=str(assignment.delivery_boy_id),
            status=assignment.status,
            notes=assignment.notes,
            assigned_at=assignment.assigned_at,
            responded_at=assignment.responded_at,
        )


class ShopPaymentResponse(BaseModel):
    payment_id: str
    shop_name: str
    amount: float
    payment_type: str
    order_id: str | None = None
    payment_status: str
    payment_date: date | None = None
    transaction_id: str | None = None
    paid_by: str | None = None
    paid_at: datetime | None = None
    notes: str | None = None

    @classmethod
    def from_payment(cls, payment) -> ShopPaymentResponse:
        return cls(
            payment_id=str(payment.id),
            shop_name=payment.shop_name,
            amount=payment.amount,
            payment_type=payment.payment_type,
            order_id=str(payment.order_id) if payment.order_id else None,
            payment_status=payment.payment_status,
            payment_date=payment.payment_date,
            transaction_id=payment.transaction_id,
            paid_by=payment.paid_by,
            paid_at=payment.paid_at,
            notes=payment.notes,
        )


class ReconciliationResponse(BaseModel):
    orders_scanned: int
    orders_synced: int
    payments_created: int
    payments_skipped: int


class ShopSummaryResponse(BaseModel):
    shop_name: str
    total_pending: float
    total_paid: float
    pending_commission: float
    pending_delivery_charge: float
    pending_other: float
    paid_commission: float
    paid_delivery_charge: float
    paid_other: float
    payment_count: int
    pending_count: int
    last_payment_date: date | None = None
