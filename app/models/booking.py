from pydantic import BaseModel, ConfigDict


class BookingRequest(BaseModel):
    first_name: str
    last_name: str
    service_name: str
    start_at: str  # RFC 3339, as sent by the client
    email: str | None = None
    phone: str | None = None
    team_member_name: str | None = None
    customer_note: str | None = None


class Customer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    given_name: str | None = None
    family_name: str | None = None
    email_address: str | None = None
    phone_number: str | None = None


class BookingResult(BaseModel):
    booking_id: str
    status: str | None = None
    start_at: str | None = None
