"""
Error hierarchy for quota accounting and event attendance

Every error carries a stable code and the HTTP status a handler should map it
to. All errors except StoreConflict are deterministic outcomes of the stored
state and must not be retried.
"""

from typing import Any, Dict


class CoreError(Exception):
    """Base exception for quota and attendance failures"""

    code = "core_error"
    http_status = 500
    retryable = False

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_response(self) -> Dict[str, Any]:
        """Convert to a REST error envelope"""
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "details": self.details,
            }
        }


class QuotaExceeded(CoreError):
    """Creation denied, the role's limit for this resource type is reached"""

    code = "quota_exceeded"
    http_status = 403


class EventFull(CoreError):
    """RSVP to 'going' denied, the event has reached maximum capacity"""

    code = "event_full"
    http_status = 400


class EventInactive(CoreError):
    """Event no longer accepts RSVPs"""

    code = "event_inactive"
    http_status = 400


class AttendeeNotFound(CoreError):
    code = "attendee_not_found"
    http_status = 404


class EventNotFound(CoreError):
    code = "event_not_found"
    http_status = 404


class UserNotFound(CoreError):
    code = "user_not_found"
    http_status = 404


class InvalidResourceType(CoreError):
    code = "invalid_resource_type"


class InvalidStatusTransition(CoreError):
    code = "invalid_status_transition"


class InvalidRole(CoreError):
    code = "invalid_role"


class StoreConflict(CoreError):
    """
    The store could not serialise the operation (lock timeout, serialization
    failure). The whole atomic operation may be re-attempted from scratch.
    """

    code = "store_conflict"
    http_status = 409
    retryable = True
