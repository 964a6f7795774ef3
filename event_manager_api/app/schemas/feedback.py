"""
Pydantic schemas for post-event feedback.

A participant leaves at most one feedback entry per event.  Submitting
again updates the existing entry; only the fields present in the new
request overwrite stored values.
"""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from .mail import MailDispatchRead


class FeedbackCreate(BaseModel):
    participant_id: int = Field(..., description="Participant leaving the feedback")
    rating: Optional[int] = Field(None, ge=1, le=5, description="Rating from 1 to 5")
    comments: Optional[str] = Field(None, description="Free text comments")

    @field_validator("comments")
    @classmethod
    def strip_comments(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v is not None else None


class FeedbackRead(BaseModel):
    id: int
    event_id: int
    participant_id: int
    rating: Optional[int] = None
    comments: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }


class FeedbackRequestResult(BaseModel):
    message: str
    dispatches: List[MailDispatchRead]
