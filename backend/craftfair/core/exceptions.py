"""
Typed failures raised by the registration lifecycle.

Every expected, locally detectable condition has its own class carrying a
stable machine-readable ``code``, the HTTP status the API layer maps it to,
and a human message safe to show to the caller. The API registers a single
handler for ``RegistrationError`` that renders ``{"error", "detail"}``.
"""

from fastapi import status


class RegistrationError(Exception):
    code = "registration_error"
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Registration request failed"

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class NotFoundError(RegistrationError):
    code = "not_found"
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class UnauthorizedError(RegistrationError):
    code = "unauthorized"
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "You are not allowed to perform this action"


class InvalidStateError(RegistrationError):
    code = "invalid_state"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Transition is not allowed from the current status"


class CapacityExceededError(RegistrationError):
    code = "capacity_exceeded"
    status_code = status.HTTP_409_CONFLICT
    default_message = "Event has reached maximum capacity"


class DeadlinePassedError(RegistrationError):
    code = "deadline_passed"
    default_message = "Registration deadline has passed"


class EventAlreadyStartedError(RegistrationError):
    code = "event_already_started"
    default_message = "Cannot unregister from an event that has already started"


class EventNotYetEndedError(RegistrationError):
    code = "event_not_yet_ended"
    default_message = "Cannot submit feedback before event ends"


class DuplicateRegistrationError(RegistrationError):
    code = "duplicate_registration"
    status_code = status.HTTP_409_CONFLICT
    default_message = "You are already registered for this event"


class ValidationError(RegistrationError):
    code = "validation_error"
    status_code = 422
    default_message = "Invalid input"


class PersistenceError(RegistrationError):
    """Storage failure. The message never includes driver details."""

    code = "internal_error"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "The request could not be completed. Please try again later."
