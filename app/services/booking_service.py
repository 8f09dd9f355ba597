import logging
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from app.core.config import settings
from app.core.exceptions import BadRequestError, ConflictError, NotFoundError, UpstreamError
from app.core.timeutils import parse_timestamp, to_rfc3339
from app.models.booking import BookingRequest, BookingResult, Customer
from app.services.availability_service import find_available_team_member, is_slot_available
from app.services.catalog_service import load_catalog
from app.services.square_client import SquareClient, parse_upstream

logger = logging.getLogger(__name__)

# Latest start whose availability window still fits in a datetime
LATEST_START = datetime.max.replace(tzinfo=UTC) - timedelta(minutes=settings.slot_window_minutes)


async def ensure_customer(
    client: SquareClient,
    first_name: str,
    last_name: str,
    email: str | None = None,
    phone: str | None = None,
) -> str:
    """Return the id of the customer with this exact email, creating one if needed."""
    if email:
        customers = await client.search_customers({"filter": {"email_address": {"exact": email}}})
        if customers:
            return parse_upstream(Customer, customers[0], "customer").id
    fields = {
        "given_name": first_name,
        "family_name": last_name,
        "email_address": email,
        "phone_number": phone,
    }
    created = await client.create_customer({k: v for k, v in fields.items() if v is not None})
    if not created.get("id"):
        raise UpstreamError("Square did not return a customer id")
    customer = parse_upstream(Customer, created, "customer")
    logger.info("Created Square customer %s", customer.id)
    return customer.id


async def create_booking(client: SquareClient, request: BookingRequest) -> BookingResult:
    start_at = parse_timestamp(request.start_at, "Invalid startAt date specified")
    if start_at > LATEST_START:
        raise BadRequestError("Invalid startAt date specified")

    services, members = await load_catalog(client)

    service = services.get(request.service_name)
    if service is None:
        raise BadRequestError("Service not found")

    if request.team_member_name:
        member = members.get(request.team_member_name)
        if member is None:
            raise NotFoundError("Team member not found")
        if not service.offered_by(member.id):
            raise BadRequestError("Team member does not offer this service")
        if not await is_slot_available(client, service.variation_id, start_at, member.id):
            raise ConflictError("Team member is busy at the requested time")
        team_member_id = member.id
    else:
        team_member_id = await find_available_team_member(
            client, service.variation_id, start_at, service.team_member_ids
        )
        if team_member_id is None:
            raise ConflictError("No team member is available for that service at the requested time")

    # A customer created here is not rolled back if the booking call fails
    customer_id = await ensure_customer(
        client, request.first_name, request.last_name, request.email, request.phone
    )

    booking = {
        "location_id": settings.square_location_id,
        "customer_id": customer_id,
        "start_at": to_rfc3339(start_at),
        "appointment_segments": [
            {
                "team_member_id": team_member_id,
                "service_variation_id": service.variation_id,
                "service_variation_version": service.version,
            }
        ],
    }
    if request.customer_note:
        booking["customer_note"] = request.customer_note

    created = await client.create_booking(booking, idempotency_key=str(uuid4()))
    if not created.get("id"):
        raise UpstreamError("Square did not return a booking id")
    logger.info(
        "Booked %s with team member %s at %s (booking %s)",
        service.name, team_member_id, booking["start_at"], created["id"],
    )
    return BookingResult(
        booking_id=created["id"],
        status=created.get("status"),
        start_at=created.get("start_at", booking["start_at"]),
    )
