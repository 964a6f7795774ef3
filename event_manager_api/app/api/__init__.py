"""
API package containing versioned routes.

``v1.router`` aggregates the events, participants, materials and
feedback endpoints and is mounted under ``/api``.
"""
