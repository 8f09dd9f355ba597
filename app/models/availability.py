from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class AppointmentSegment(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    duration_minutes: int | None = None
    team_member_id: str
    service_variation_id: str
    service_variation_version: int | None = None


class AvailabilitySlot(BaseModel):
    """A candidate start time as returned by Square's availability search."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    start_at: datetime
    location_id: str | None = None
    appointment_segments: list[AppointmentSegment] = Field(default_factory=list)


class TimeBucket(BaseModel):
    category: Literal["morning", "afternoon", "night"]
    times: list[str]
