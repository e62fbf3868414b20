"""OrderAssignment aggregate (CQRS) — one proposal of an order to an agent.

State Machine:
    PENDING → ACCEPTED
    PENDING → REJECTED

A responded proposal is immutable. Repeating the same response is accepted
as a retry and changes nothing.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import DateTime, Identifier, String

from dispatch.assignment.events import AssignmentAccepted, AssignmentProposed, AssignmentRejected
from dispatch.domain import dispatch
from dispatch.errors import InvalidTransition


class AssignmentStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


@dispatch.aggregate
class OrderAssignment:
    order_id = Identifier(required=True)
    delivery_boy_id = Identifier(required=True)
    status = String(choices=AssignmentStatus, default=AssignmentStatus.PENDING.value)
    notes = String(max_length=1000)
    assigned_at = DateTime()
    responded_at = DateTime()

    @classmethod
    def propose(cls, order_id: str, delivery_boy_id: str, notes: str | None = None, assigned_at: datetime | None = None):
        now = assigned_at or datetime.now(UTC)
        assignment = cls(
            order_id=order_id,
            delivery_boy_id=delivery_boy_id,
            status=AssignmentStatus.PENDING.value,
            notes=notes,
            assigned_at=now,
        )
        assignment.raise_(
            AssignmentProposed(
                assignment_id=str(assignment.id),
                order_id=order_id,
                delivery_boy_id=delivery_boy_id,
                notes=notes or "",
                assigned_at=now,
            )
        )
        return assignment

    def _respond(self, decision: AssignmentStatus) -> bool:
        current = AssignmentStatus(self.status)
        if current == decision:
            return False
        if current != AssignmentStatus.PENDING:
            raise InvalidTransition(
                f"Assignment was already {current.value}",
                assignment_id=str(self.id),
                current_status=current.value,
                target_status=decision.value,
            )
        self.status = decision.value
        self.responded_at = datetime.now(UTC)
        return True

    def accept(self) -> bool:
        """Accept the proposal. Returns False if it was already accepted."""
        if not self._respond(AssignmentStatus.ACCEPTED):
            return False
        self.raise_(
            AssignmentAccepted(
                assignment_id=str(self.id),
                order_id=str(self.order_id),
                delivery_boy_id=str(self.delivery_boy_id),
                responded_at=self.responded_at,
            )
        )
        return True

    def reject(self) -> bool:
        """Reject the proposal. Returns False if it was already rejected."""
        if not self._respond(AssignmentStatus.REJECTED):
            return False
        self.raise_(
            AssignmentRejected(
                assignment_id=str(self.id),
                order_id=str(self.order_id),
                delivery_boy_id=str(self.delivery_boy_id),
                responded_at=self.responded_at,
            )
        )
        return True
