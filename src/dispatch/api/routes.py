"""FastAPI endpoints for the Dispatch domain."""

import json

from fastapi import APIRouter
from protean.utils.globals import current_domain

from dispatch.api.schemas import (
    AdjustAmountRequest,
    AdvanceStatusRequest,
    AssignmentResponse,
    CancelOrderRequest,
    CreateOrderRequest,
    MarkPaidRequest,
    OrderIdResponse,
    OrderResponse,
    OrderStatusResponse,
    ProposeAssignmentRequest,
    ReconciliationResponse,
    RespondToAssignmentRequest,
    ShopPaymentResponse,
    ShopSummaryResponse,
    StatusResponse,
)
from dispatch.assignment.coordinator import AssignmentCoordinator
from dispatch.order.cancellation import CancelOrder
from dispatch.order.creation import CreateOrder
from dispatch.order.lifecycle import AdvanceOrderStatus
from dispatch.order.queries import get_order, list_orders
from dispatch.settlement.queries import list_shop_payments
from dispatch.settlement.reconciler import SettlementReconciler
from dispatch.settlement.settle import AdjustShopPaymentAmount, MarkShopPaymentPaid
from dispatch.settlement.summary import summarize_per_shop

order_router = APIRouter(prefix="/orders", tags=["orders"])
assignment_router = APIRouter(prefix="/assignments", tags=["assignments"])
delivery_boy_router = APIRouter(prefix="/delivery-boys", tags=["delivery-boys"])
shop_payment_router = APIRouter(prefix="/shop-payments", tags=["shop-payments"])


# --- Order endpoints ---


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def create_order(body: CreateOrderRequest) -> OrderIdResponse:
    command = CreateOrder(
        customer_name=body.customer_name,
        customer_phone=body.customer_phone,
        customer_address=body.customer_address,
        shop_name=body.shop_name,
        items=json.dumps([item.model_dump(exclude_none=True) for item in body.items]),
        total_amount=body.total_amount,
        delivery_charge=body.delivery_charge,
        commission=body.commission,
        payment_method=body.payment_method,
        shop_address=body.shop_address,
        shop_phone=body.shop_phone,
        special_instructions=body.special_instructions,
        created_by=body.created_by,
    )
    result = current_domain.process(command, asynchronous=False)
    return OrderIdResponse(order_id=result)


@order_router.get("", response_model=list[OrderResponse])
async def get_orders(
    status: str | None = None,
    shop_name: str | None = None,
    delivery_boy_id: str | None = None,
) -> list[OrderResponse]:
    orders = list_orders(status=status, shop_name=shop_name, delivery_boy_id=delivery_boy_id)
    return [OrderResponse.from_order(order) for order in orders]


@order_router.get("/{order_id}", response_model=OrderResponse)
async def get_order_detail(order_id: str) -> OrderResponse:
    return OrderResponse.from_order(get_order(order_id))


@order_router.put("/{order_id}/status", response_model=OrderStatusResponse)
async def advance_order_status(order_id: str, body: AdvanceStatusRequest) -> OrderStatusResponse:
    command = AdvanceOrderStatus(
        order_id=order_id,
        target_status=body.target_status,
        actor=body.actor,
    )
    status = current_domain.process(command, asynchronous=False)
    return OrderStatusResponse(order_id=order_id, status=status)


@order_router.put("/{order_id}/cancel", response_model=StatusResponse)
async def cancel_order(order_id: str, body: CancelOrderRequest) -> StatusResponse:
    command = CancelOrder(
        order_id=order_id,
        reason=body.reason,
        cancelled_by=body.cancelled_by,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@order_router.post("/{order_id}/assignments", status_code=201, response_model=AssignmentResponse)
async def propose_assignment(order_id: str, body: ProposeAssignmentRequest) -> AssignmentResponse:
    assignment = AssignmentCoordinator().propose(order_id, body.delivery_boy_id, notes=body.notes)
    return AssignmentResponse.from_assignment(assignment)


@order_router.get("/{order_id}/assignments", response_model=list[AssignmentResponse])
async def get_order_assignments(order_id: str) -> list[AssignmentResponse]:
    assignments = AssignmentCoordinator().assignments_for_order(order_id)
    return [AssignmentResponse.from_assignment(assignment) for assignment in assignments]


# --- Assignment endpoints ---


@assignment_router.put("/{assignment_id}/respond", response_model=AssignmentResponse)
async def respond_to_assignment(assignment_id: str, body: RespondToAssignmentRequest) -> AssignmentResponse:
    assignment = AssignmentCoordinator().respond(assignment_id, body.decision)
    return AssignmentResponse.from_assignment(assignment)


@delivery_boy_router.get("/{delivery_boy_id}/assignments", response_model=list[AssignmentResponse])
async def get_agent_assignments(delivery_boy_id: str, status: str | None = None) -> list[AssignmentResponse]:
    assignments = AssignmentCoordinator().assignments_for_agent(delivery_boy_id, status=status)
    return [AssignmentResponse.from_assignment(assignment) for assignment in assignments]


# --- Shop payment endpoints ---


@shop_payment_router.post("/reconcile", response_model=ReconciliationResponse)
async def reconcile_shop_payments() -> ReconciliationResponse:
    report = SettlementReconciler().run()
    return ReconciliationResponse(**report.to_dict())


@shop_payment_router.get("", response_model=list[ShopPaymentResponse])
async def get_shop_payments(
    shop_name: str | None = None,
    payment_status: str | None = None,
    payment_type: str | None = None,
    order_id: str | None = None,
) -> list[ShopPaymentResponse]:
    payments = list_shop_payments(
        shop_name=shop_name,
        payment_status=payment_status,
        payment_type=payment_type,
        order_id=order_id,
    )
    return [ShopPaymentResponse.from_payment(payment) for payment in payments]


@shop_payment_router.get("/summary", response_model=list[ShopSummaryResponse])
async def get_shop_summary(shop_name: str | None = None) -> list[ShopSummaryResponse]:
    return [ShopSummaryResponse(**summary.to_dict()) for summary in summarize_per_shop(shop_name)]


@shop_payment_router.put("/{payment_id}/paid", response_model=StatusResponse)
async def mark_shop_payment_paid(payment_id: str, body: MarkPaidRequest) -> StatusResponse:
    command = MarkShopPaymentPaid(
        payment_id=payment_id,
        paid_by=body.paid_by,
        transaction_id=body.transaction_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse()


@shop_payment_router.put("/{payment_id}/amount", response_model=StatusResponse)
async def adjust_shop_payment_amount(payment_id: str, body: AdjustAmountRequest) -> StatusResponse:
    command = AdjustShopPaymentAmount(payment_id=payment_id, amount=body.amount)
    current_domain.process(command, asynchronous=False)
    return StatusResponse()
