"""Assignment domain events."""

from protean.fields import DateTime, Identifier, String

from dispatch.domain import dispatch


@dispatch.event(part_of="OrderAssignment")
class AssignmentProposed:
    """An order was offered to a delivery agent."""

    __version__ = 1

    assignment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    delivery_boy_id = Identifier(required=True)
    notes = String()
    assigned_at = DateTime(required=True)


@dispatch.event(part_of="OrderAssignment")
class AssignmentAccepted:
    """The delivery agent accepted the proposal."""

    __version__ = 1

    assignment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    delivery_boy_id = Identifier(required=True)
    responded_at = DateTime(required=True)


@dispatch.event(part_of="OrderAssignment")
class AssignmentRejected:
    """The delivery agent declined the proposal."""

    __version__ = 1

    assignment_id = Identifier(required=True)
    order_id = Identifier(required=True)
    delivery_boy_id = Identifier(required=True)
    responded_at = DateTime(required=True)
