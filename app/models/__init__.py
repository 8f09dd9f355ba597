from app.models.availability import AppointmentSegment, AvailabilitySlot, TimeBucket
from app.models.booking import BookingRequest, BookingResult, Customer
from app.models.catalog import Money, Service, TeamMember

__all__ = [
    "AppointmentSegment",
    "AvailabilitySlot",
    "TimeBucket",
    "BookingRequest",
    "BookingResult",
    "Customer",
    "Money",
    "Service",
    "TeamMember",
]
