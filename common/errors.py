"""
Error taxonomy shared by all services.

Every user-facing failure is a NexusError. The service factory installs a
handler that turns these into a JSON body carrying a toast (title,
description, variant) so the front end can display it as-is.
"""

from typing import Optional

from fastapi import status


class NexusError(Exception):
    """Base class for errors surfaced to the user as a toast."""

    kind = "error"
    status_code = status.HTTP_400_BAD_REQUEST
    title = "Error"

    def __init__(self, message: str, *, title: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if title is not None:
            self.title = title

    def to_dict(self) -> dict:
        return {
            "detail": self.message,
            "kind": self.kind,
            "toast": {
                "title": self.title,
                "description": self.message,
                "variant": "destructive",
            },
        }


class ValidationFailed(NexusError):
    """Local validation error; raised before any network call."""

    kind = "validation"
    status_code = status.HTTP_400_BAD_REQUEST
    title = "Validation Error"


class DuplicateComplaint(NexusError):
    """Unique-constraint conflict on the complaint tracking id."""

    kind = "conflict"
    status_code = status.HTTP_409_CONFLICT
    title = "Submission Failed"


class InvalidReference(NexusError):
    """Foreign-key violation, e.g. an unknown department."""

    kind = "referential"
    status_code = 422
    title = "Submission Failed"


class AuthenticationFailed(NexusError):
    kind = "auth"
    status_code = status.HTTP_401_UNAUTHORIZED
    title = "Authentication Failed"


class NotAuthorized(NexusError):
    kind = "forbidden"
    status_code = status.HTTP_403_FORBIDDEN
    title = "Access Denied"


class BackendError(NexusError):
    """Unclassified error from the hosted backend; message kept verbatim."""

    kind = "backend"
    status_code = status.HTTP_502_BAD_GATEWAY
    title = "Error"
