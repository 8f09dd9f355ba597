from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from app.models.availability import TimeBucket
from app.models.booking import BookingRequest

T = TypeVar("T")


class Envelope(BaseModel, Generic[T]):
    success: bool = True
    data: T
    count: int | None = None
    message: str | None = None


class AppointmentRequest(BaseModel):
    """Booking payload as sent by the client application (camelCase)."""

    model_config = ConfigDict(populate_by_name=True)

    first_name: str = Field(alias="firstName", min_length=1)
    last_name: str = Field(alias="lastName", min_length=1)
    email: EmailStr | None = None
    phone: str | None = None
    team_member_name: str | None = Field(default=None, alias="teamMemberName")
    customer_note: str | None = Field(default=None, alias="customerNote")
    service_name: str = Field(alias="serviceName", min_length=1)
    start_at: str = Field(alias="startAt", min_length=1)  # RFC 3339

    def to_booking_request(self) -> BookingRequest:
        return BookingRequest(
            first_name=self.first_name,
            last_name=self.last_name,
            email=str(self.email) if self.email else None,
            phone=self.phone,
            team_member_name=self.team_member_name,
            customer_note=self.customer_note,
            service_name=self.service_name,
            start_at=self.start_at,
        )


class BookingCreated(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    booking_id: str = Field(alias="bookingId")
    status: str | None = None
    start_at: str | None = Field(default=None, alias="startAt")


class Provider(BaseModel):
    id: str
    name: str


class ServiceInfo(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    service_variation_id: str
    name: str
    pricing_type: str | None = None
    pricing_currency: str | None = None
    description: str = " "
    image_url: str = Field(default="", alias="imageUrl")
    pricing_amount: float = 0.0
    providers: list[Provider]


class ServiceList(BaseModel):
    services: list[ServiceInfo]


class ServiceNames(BaseModel):
    services: list[str]


class TeamMemberInfo(BaseModel):
    id: str
    name: str


class AvailabilityArrayRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    service_name: str = Field(alias="serviceName", min_length=1)
    timezone: str | None = None


class TimeBuckets(BaseModel):
    result: list[TimeBucket]


class ParsedDateTime(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    iso_date: str = Field(alias="isoDate")
