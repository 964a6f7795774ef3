"""
Pydantic schema for mail dispatch records.

Each invitation or feedback request produces one record.  It starts as
``queued`` and ends as ``sent`` or ``failed`` once the background
delivery has run, so callers can see which recipients were reached.
"""

from typing import Literal, Optional

from pydantic import BaseModel


MailKind = Literal["invitation", "feedback_request"]
DispatchStatus = Literal["queued", "sent", "failed"]


class MailDispatchRead(BaseModel):
    id: int
    event_id: int
    participant_id: Optional[int] = None
    email: str
    kind: MailKind
    status: DispatchStatus
    error_message: Optional[str] = None
    created_at: Optional[str] = None
    sent_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
