"""Assignment Coordinator — proposes orders to agents and records their answers.

A proposal touches two records, the Order and a new OrderAssignment, and
the store gives no atomicity across them. The coordinator therefore runs
each write on its own and pairs the forward steps with a compensating
step:

    1. guard read     order must be PENDING with no agent
    2. claim          conditional UPDATE ... WHERE status=pending AND agent IS NULL
    3. record         insert the PENDING OrderAssignment
    4. release        on failure of 3, conditional revert of 2

The claim is the only concurrency control: of two racing proposals the
loser's conditional update matches zero rows and it reports
OrderNoLongerAvailable. If both the record and the release fail, the order
is left claimed without an assignment and CompensationFailure is raised.

Every step commits on its own, so the coordinator runs outside any
command handler unit of work.
"""

from datetime import UTC, datetime

import structlog
from protean.exceptions import ValidationError
from protean.utils.globals import current_domain
from protean.utils.query import Q

from dispatch.assignment.assignment import AssignmentStatus, OrderAssignment
from dispatch.changefeed import publish_change
from dispatch.changefeed.port import ORDERS
from dispatch.delivery_boy.delivery_boy import DeliveryBoy
from dispatch.errors import CompensationFailure, OrderNoLongerAvailable
from dispatch.order.order import Order, OrderStatus
from dispatch.utils.queries import iter_all

logger = structlog.get_logger(__name__)


class AssignmentCoordinator:
    # -------------------------------------------------------------------
    # Proposal
    # -------------------------------------------------------------------
    def propose(self, order_id: str, delivery_boy_id: str, notes: str | None = None) -> OrderAssignment:
        """Offer a pending order to an active delivery agent."""
        order = current_domain.repository_for(Order).get(order_id)
        if OrderStatus(order.status) != OrderStatus.PENDING or order.delivery_boy_id:
            raise OrderNoLongerAvailable(
                "Order is not available for assignment",
                order_id=str(order.id),
                current_status=order.status,
                delivery_boy_id=str(order.delivery_boy_id) if order.delivery_boy_id else None,
            )

        agent = current_domain.repository_for(DeliveryBoy).get(delivery_boy_id)
        if not agent.is_active:
            raise ValidationError({"delivery_boy_id": ["Delivery agent is not active"]})

        assigned_at = datetime.now(UTC)
        self._claim_order(str(order.id), str(agent.id), assigned_at)

        try:
            assignment = self._record_assignment(str(order.id), str(agent.id), notes, assigned_at)
        except Exception as exc:
            self._compensate(str(order.id), str(agent.id), exc)
            raise

        logger.info(
            "Assignment proposed",
            order_id=str(order.id),
            delivery_boy_id=str(agent.id),
            assignment_id=str(assignment.id),
        )
        return assignment

    def _claim_order(self, order_id: str, delivery_boy_id: str, assigned_at: datetime) -> None:
        claimed = current_domain.repository_for(Order)._dao._update_all(
            Q(id=order_id, status=OrderStatus.PENDING.value, delivery_boy_id__isnull=True),
            status=OrderStatus.ASSIGNED.value,
            delivery_boy_id=delivery_boy_id,
            assigned_at=assigned_at,
            updated_at=assigned_at,
        )
        if not claimed:
            raise OrderNoLongerAvailable(
                "Order was claimed by another proposal",
                order_id=order_id,
                delivery_boy_id=delivery_boy_id,
            )
        publish_change(ORDERS)

    def _record_assignment(
        self, order_id: str, delivery_boy_id: str, notes: str | None, assigned_at: datetime
    ) -> OrderAssignment:
        assignment = OrderAssignment.propose(order_id, delivery_boy_id, notes=notes, assigned_at=assigned_at)
        current_domain.repository_for(OrderAssignment).add(assignment)
        return assignment

    def _release_order(self, order_id: str, delivery_boy_id: str) -> int:
        """Undo a claim, but only while the order still holds that claim."""
        released = current_domain.repository_for(Order)._dao._update_all(
            Q(id=order_id, status=OrderStatus.ASSIGNED.value, delivery_boy_id=delivery_boy_id),
            status=OrderStatus.PENDING.value,
            delivery_boy_id=None,
            assigned_at=None,
            updated_at=datetime.now(UTC),
        )
        if released:
            publish_change(ORDERS)
        return released

    def _compensate(self, order_id: str, delivery_boy_id: str, cause: Exception) -> None:
        try:
            self._release_order(order_id, delivery_boy_id)
        except Exception as exc:
            logger.critical(
                "Assignment compensation failed, order left claimed without an assignment",
                order_id=order_id,
                delivery_boy_id=delivery_boy_id,
                cause=repr(cause),
                compensation_error=repr(exc),
            )
            raise CompensationFailure(
                "Order is assigned without an assignment record and needs manual repair",
                cause=cause,
                compensation_error=exc,
                order_id=order_id,
                delivery_boy_id=delivery_boy_id,
            ) from exc

        logger.warning(
            "Assignment record failed, order released",
            order_id=order_id,
            delivery_boy_id=delivery_boy_id,
            cause=repr(cause),
        )

    # -------------------------------------------------------------------
    # Response
    # -------------------------------------------------------------------
    def respond(self, assignment_id: str, decision: str) -> OrderAssignment:
        """Record the agent's answer to a proposal.

        Accepting confirms a claim the proposal already made. Rejecting
        re-opens the order for another proposal.
        """
        try:
            decision_status = AssignmentStatus(decision)
        except ValueError:
            decision_status = None
        if decision_status not in (AssignmentStatus.ACCEPTED, AssignmentStatus.REJECTED):
            raise ValidationError({"decision": ["Decision must be 'accepted' or 'rejected'"]})

        repo = current_domain.repository_for(OrderAssignment)
        assignment = repo.get(assignment_id)
        order_id = str(assignment.order_id)
        delivery_boy_id = str(assignment.delivery_boy_id)

        if decision_status == AssignmentStatus.ACCEPTED:
            changed = assignment.accept()
            order = current_domain.repository_for(Order).get(order_id)
            if not order.delivery_boy_id or str(order.delivery_boy_id) != delivery_boy_id:
                raise OrderNoLongerAvailable(
                    "Order is no longer assigned to this agent",
                    order_id=order_id,
                    assignment_id=str(assignment.id),
                    current_status=order.status,
                )
            if changed:
                repo.add(assignment)
            logger.info("Assignment accepted", assignment_id=str(assignment.id), order_id=order_id)
            return assignment

        if assignment.reject():
            repo.add(assignment)

        # Retried rejections still re-open the order unless it was proposed again
        if self._is_latest_proposal(assignment):
            self._release_order(order_id, delivery_boy_id)

        logger.info("Assignment rejected", assignment_id=str(assignment.id), order_id=order_id)
        return assignment

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def _is_latest_proposal(self, assignment: OrderAssignment) -> bool:
        proposals = self.assignments_for_order(str(assignment.order_id))
        return bool(proposals) and str(proposals[-1].id) == str(assignment.id)

    def pending_assignments_for(self, order_id: str) -> list[OrderAssignment]:
        return (
            current_domain.repository_for(OrderAssignment)
            ._dao.query.filter(order_id=order_id, status=AssignmentStatus.PENDING.value)
            .all()
            .items
        )

    def assignments_for_order(self, order_id: str) -> list[OrderAssignment]:
        query = current_domain.repository_for(OrderAssignment)._dao.query.filter(order_id=order_id)
        return list(iter_all(query.order_by("assigned_at")))

    def assignments_for_agent(self, delivery_boy_id: str, status: str | None = None) -> list[OrderAssignment]:
        query = current_domain.repository_for(OrderAssignment)._dao.query.filter(delivery_boy_id=delivery_boy_id)
        if status:
            query = query.filter(status=status)
        return list(iter_all(query.order_by("-assigned_at")))
