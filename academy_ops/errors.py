"""
Domain error taxonomy.

Services raise these; ``main.py`` maps them to JSON responses with a stable
``error`` code so clients can tell a booking conflict from a generic failure.
"""

from typing import Optional


class AcademyError(Exception):
    """Base class for errors surfaced to API callers"""

    code = "error"
    status_code = 400

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code


class ValidationError(AcademyError):
    """Malformed input or a request the current record state cannot accept"""

    code = "validation_error"
    status_code = 400


class NotFoundError(AcademyError):
    code = "not_found"
    status_code = 404


class ConflictError(AcademyError):
    """The request raced with, or contradicts, existing state"""

    code = "conflict"
    status_code = 409


class SlotFullError(ConflictError):
    code = "slot_full"
    status_code = 409


class SlotClosedError(ConflictError):
    code = "slot_closed"
    status_code = 410


class DuplicateReservationError(ConflictError):
    code = "duplicate_reservation"
    status_code = 409


class InvalidTransitionError(ConflictError):
    code = "invalid_transition"
    status_code = 409


class TriggerDispatchError(Exception):
    """Gateway dispatch failure. Logged by the trigger runner, never returned to callers."""

    def __init__(self, kind: str, error: str):
        super().__init__(f"{kind}: {error}")
        self.kind = kind
        self.error = error
