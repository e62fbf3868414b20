"""DeliveryBoy aggregate — a fulfillment agent.

Agents are registered and edited by the back-office CRUD screens; the
dispatch core only checks that an agent exists and is active before a
proposal is made.
"""

from datetime import UTC, datetime
from enum import Enum

from protean.fields import Boolean, DateTime, String

from dispatch.domain import dispatch


class VehicleType(Enum):
    BIKE = "bike"
    BICYCLE = "bicycle"
    CAR = "car"
    SCOOTER = "scooter"


@dispatch.aggregate
class DeliveryBoy:
    name = String(required=True, max_length=255)
    phone = String(required=True, max_length=30)
    email = String(max_length=255)
    vehicle_type = String(choices=VehicleType)
    vehicle_number = String(max_length=50)
    is_active = Boolean(default=True)
    current_location = String(max_length=500)
    created_at = DateTime(default=lambda: datetime.now(UTC))
    updated_at = DateTime(default=lambda: datetime.now(UTC))
