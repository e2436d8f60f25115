"""
Admission status state machine and workflow stage derivation

Applicant statuses: waiting → reserved → reserved_confirmed → consult_done → approved → enrolled
rejected is reachable from every state before enrolled.

The workflow stage shown to staff is never stored. ``derive_stage`` computes it
from the stored status plus the checklist snapshot, so every listing, detail
view and checklist response agrees on it and replays cannot desynchronize it.
"""

from typing import Mapping

WAITING = "waiting"
RESERVED = "reserved"
RESERVED_CONFIRMED = "reserved_confirmed"
CONSULT_DONE = "consult_done"
APPROVED = "approved"
ENROLLED = "enrolled"
REJECTED = "rejected"

STATUSES = (WAITING, RESERVED, RESERVED_CONFIRMED, CONSULT_DONE, APPROVED, ENROLLED, REJECTED)

# Statuses that leave the active pipeline
CLOSED_STATUSES = (ENROLLED, REJECTED)

# Checklist keys the stage depends on
CONSULTATION_CONFIRMED_KEY = "consultation_confirmed"
ADMISSION_CONFIRMED_KEY = "admission_confirmed"
FINALIZE_KEYS = ("docs_submitted", "step3_completed")

# Manual (staff) transitions. waiting → reserved is written by the booking
# engine and → enrolled by finalize, so neither appears here.
ALLOWED_TRANSITIONS = {
    WAITING: [REJECTED],
    RESERVED: [RESERVED_CONFIRMED, CONSULT_DONE, REJECTED],
    RESERVED_CONFIRMED: [CONSULT_DONE, REJECTED],
    CONSULT_DONE: [APPROVED, REJECTED],
    APPROVED: [REJECTED],
    ENROLLED: [],  # Terminal state
    REJECTED: [],  # Terminal state
}

STAGE_LABEL = {
    WAITING: "Waiting for consultation",
    RESERVED: "Consultation reserved",
    RESERVED_CONFIRMED: "Consultation confirmed",
    CONSULT_DONE: "Consultation done",
    APPROVED: "Admission approved",
    ENROLLED: "Enrolled",
    REJECTED: "Rejected",
}

STAGE_PROGRESS = {
    WAITING: 10,
    RESERVED: 30,
    RESERVED_CONFIRMED: 40,
    CONSULT_DONE: 50,
    APPROVED: 70,
    ENROLLED: 100,
    REJECTED: 0,
}


def validate_status_transition(current_status: str, new_status: str) -> bool:
    """
    Validate if a manual applicant status transition is allowed

    Args:
        current_status: Current applicant status
        new_status: Desired new status

    Returns:
        bool: True if transition is valid, False otherwise
    """
    # Allow same status (no-op)
    if current_status == new_status:
        return True

    return new_status in ALLOWED_TRANSITIONS.get(current_status, [])


def derive_stage(status: str, checklist: Mapping[str, bool]) -> str:
    """
    Derive the workflow stage from a status and a checklist snapshot.

    Pure and deterministic: the same ``(status, checklist)`` always yields the
    same stage, whatever order the checklist writes arrived in.

    Args:
        status: Stored applicant status
        checklist: step_key → checked (missing keys count as unchecked)

    Returns:
        str: One of STATUSES
    """
    if status in CLOSED_STATUSES:
        return status

    if any(checklist.get(key) for key in FINALIZE_KEYS):
        return ENROLLED

    if checklist.get(ADMISSION_CONFIRMED_KEY):
        return APPROVED

    if checklist.get(CONSULTATION_CONFIRMED_KEY) and status == RESERVED:
        return RESERVED_CONFIRMED

    return status if status in STATUSES else WAITING
