"""Pydantic schema for shared event materials."""

from typing import Optional

from pydantic import BaseModel


class MaterialRead(BaseModel):
    id: int
    event_id: int
    name: str
    file_path: str
    file_type: Optional[str] = None
    file_size: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    model_config = {
        "from_attributes": True,
    }
