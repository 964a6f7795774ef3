"""
Pydantic models for event data.

``EventBase`` contains the fields shared by requests and responses;
``EventCreate`` normalizes the dates, ``EventUpdate`` makes every
field optional for partial updates and ``EventRead`` /
``EventDetail`` describe what the API returns.

Date-times with a timezone are converted to naive UTC so that stored
values always compare with each other.  The ``end_date >= start_date``
rule is enforced by ``EventService`` for create and update alike.
Titles are stripped before their length is checked.
"""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .material import MaterialRead
from .participant import ParticipantRead


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class EventBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255, examples=["Team offsite"])
    description: Optional[str] = Field(None, examples=["Two days of planning and hiking"])
    location: Optional[str] = Field(None, max_length=255, examples=["Lisbon"])
    start_date: datetime = Field(..., examples=["2025-09-01T09:00:00"])
    end_date: datetime = Field(..., examples=["2025-09-02T18:00:00"])

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v


class EventCreate(EventBase):
    """Schema for creating an event."""

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: datetime) -> datetime:
        return to_naive_utc(v)


class EventUpdate(BaseModel):
    """Schema for updating an event.

    All fields are optional; only fields present in the request body
    are written.  ``title``, ``start_date`` and ``end_date`` may be
    omitted but not set to null; the service checks that, together with
    the date order against the stored values.
    """

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None

    @field_validator("title", mode="before")
    @classmethod
    def strip_title(cls, v):
        return v.strip() if isinstance(v, str) else v

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_dates(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(v)


class EventRead(EventBase):
    """Schema for reading an event from the API."""

    id: int
    owner_id: int
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class EventDetail(EventRead):
    """An event together with its participants and materials."""

    participants: List[ParticipantRead] = []
    materials: List[MaterialRead] = []
