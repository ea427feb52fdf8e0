from __future__ import annotations

import re
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from collective.application.use_cases.join_community import JoinRequest
from collective.application.use_cases.update_profile import ProfileUpdate
from collective.application.utils.event_time import parse_event_date, parse_time_of_day
from collective.domain.entities.booking import BookingRequest

BOOKING_REQUIRED_FIELDS = ("firstName", "lastName", "email", "businessName", "eventTitle", "eventDate")
JOIN_REQUIRED_FIELDS = ("firstName", "lastName", "email")

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def missing_fields(payload: dict[str, Any], required: tuple[str, ...]) -> list[str]:
    missing = []
    for name in required:
        value = payload.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            missing.append(name)
    return missing


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", str_strip_whitespace=True)


class BookingRequestSchema(_CamelModel):
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    business_name: str = Field(alias="businessName")
    event_title: str = Field(alias="eventTitle")
    event_date: str = Field(alias="eventDate")
    phone: str | None = None
    opt_in: bool = Field(False, alias="optIn")
    event_id: str | None = Field(None, alias="eventId")
    event_start_time: str | None = Field(None, alias="eventStartTime")
    event_end_time: str | None = Field(None, alias="eventEndTime")
    event_location: str | None = Field(None, alias="eventLocation")
    event_venue: str | None = Field(None, alias="eventVenue")
    calendar_id: str | None = Field(None, alias="calendarId")

    @field_validator("event_date")
    @classmethod
    def _valid_date(cls, value: str) -> str:
        parse_event_date(value)
        return value

    @field_validator("event_start_time", "event_end_time")
    @classmethod
    def _valid_time(cls, value: str | None) -> str | None:
        if value:
            parse_time_of_day(value, default=value)
        return value or None

    def to_entity(self) -> BookingRequest:
        return BookingRequest(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            business_name=self.business_name,
            event_title=self.event_title,
            event_date=self.event_date,
            phone=self.phone or None,
            opt_in=self.opt_in,
            event_id=self.event_id,
            event_start_time=self.event_start_time,
            event_end_time=self.event_end_time,
            event_location=self.event_location,
            event_venue=self.event_venue,
            calendar_id=self.calendar_id or None,
        )


class CancelRequestSchema(_CamelModel):
    appointment_id: str | None = Field(None, alias="appointmentId")
    contact_id: str | None = Field(None, alias="contactId")
    reason: str | None = None
    comments: str | None = None


class JoinRequestSchema(_CamelModel):
    first_name: str = Field(alias="firstName")
    last_name: str = Field(alias="lastName")
    email: str
    phone: str | None = None
    business_name: str | None = Field(None, alias="businessName")
    opt_in: bool = Field(False, alias="optIn")

    def to_entity(self) -> JoinRequest:
        return JoinRequest(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone or None,
            business_name=self.business_name or None,
            opt_in=self.opt_in,
        )


class ProfileUpdateSchema(_CamelModel):
    contact_id: str | None = Field(None, alias="contactId")
    sector: str | None = None
    stage: str | None = None
    team_size: str | None = Field(None, alias="teamSize")
    postcode: str | None = None

    def to_entity(self) -> ProfileUpdate:
        return ProfileUpdate(
            contact_id=self.contact_id or "",
            sector=self.sector,
            stage=self.stage,
            team_size=self.team_size,
            postcode=self.postcode,
        )
