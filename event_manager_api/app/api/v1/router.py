"""
Top‑level router for version 1 of the API.

This router aggregates the domain routers (events, participants,
materials, feedback).  When new domains are introduced, update this
file to include their routers.
"""

from fastapi import APIRouter

from .endpoints import events, feedback, materials, participants


router = APIRouter()

router.include_router(events.router, prefix="/events", tags=["events"])
# The routers below define full paths themselves because they are
# addressed both under an event (/events/{id}/...) and directly by id.
router.include_router(participants.router, tags=["participants"])
router.include_router(materials.router, tags=["materials"])
router.include_router(feedback.router, tags=["feedback"])
