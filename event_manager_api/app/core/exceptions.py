"""
Service-layer exceptions.

Services raise these instead of ``HTTPException`` so they stay usable
outside a request.  ``main.py`` registers a single handler that turns
any ``ServiceError`` into a JSON response with the matching status
code.
"""

from typing import Dict, List, Optional

from fastapi import status


class ServiceError(Exception):
    """Base class for errors surfaced to API clients."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message}


class ValidationError(ServiceError):
    """Input failed a rule that cannot be expressed in the request schema."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY

    def __init__(self, message: str, errors: Optional[Dict[str, List[str]]] = None) -> None:
        super().__init__(message)
        self.errors = errors or {}

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, {field: [message]})

    def to_dict(self) -> dict:
        return {"message": self.message, "errors": self.errors}


class AuthorizationError(ServiceError):
    """The acting user may not touch the event.  Carries no detail."""

    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self) -> None:
        super().__init__("Unauthorized")


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND


class StorageError(ServiceError):
    """The blob store failed; database metadata was left untouched."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
