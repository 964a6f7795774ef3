"""
Pydantic schemas for event participants.

A participant is an invitee identified by email.  Status moves freely
between the four values of ``ParticipantStatus``; there is no enforced
transition order.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, EmailStr, Field, field_validator, model_validator

from .mail import MailDispatchRead


ParticipantStatus = Literal["invited", "confirmed", "declined", "attended"]


class ParticipantCreate(BaseModel):
    email: EmailStr = Field(..., examples=["guest@example.com"])
    name: str = Field(..., min_length=1, max_length=255, examples=["Ada Lovelace"])
    status: ParticipantStatus = "invited"

    @field_validator("name", mode="before")
    @classmethod
    def strip_name(cls, v):
        return v.strip() if isinstance(v, str) else v


class ParticipantInvite(BaseModel):
    """Bulk invitation: ``emails[i]`` is invited under ``names[i]``."""

    emails: List[EmailStr] = Field(..., min_length=1)
    names: List[str] = Field(..., min_length=1)

    @model_validator(mode="after")
    def check_pairs(self) -> "ParticipantInvite":
        if len(self.emails) != len(self.names):
            raise ValueError("emails and names must have the same length")
        for name in self.names:
            if not name.strip() or len(name) > 255:
                raise ValueError("every name must be 1 to 255 characters long")
        return self


class ParticipantUpdate(BaseModel):
    status: Optional[ParticipantStatus] = None


class ParticipantRead(BaseModel):
    id: int
    event_id: int
    email: str
    name: str
    status: ParticipantStatus
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class InviteResult(BaseModel):
    """Created participants plus one queued invitation per participant."""

    participants: List[ParticipantRead]
    dispatches: List[MailDispatchRead]
