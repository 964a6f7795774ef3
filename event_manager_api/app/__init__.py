"""
Application package initializer.

Organizers create events, invite participants by email, share
materials and collect feedback once the event is over.  Each domain
(events, participants, materials, feedback) has its own service in
``services`` and its own router in ``api/v1/endpoints``.
"""

from .main import app  # noqa: F401
