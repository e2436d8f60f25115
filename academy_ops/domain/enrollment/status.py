"""
Post-enrollment status state machine

active → on-leave-review → on-leave → active
active → withdrawal-review → withdrawn

Review states are held until staff explicitly confirm or cancel them.
"""

ACTIVE = "active"
ON_LEAVE_REVIEW = "on-leave-review"
ON_LEAVE = "on-leave"
WITHDRAWAL_REVIEW = "withdrawal-review"
WITHDRAWN = "withdrawn"

STUDENT_STATUSES = (ACTIVE, ON_LEAVE_REVIEW, ON_LEAVE, WITHDRAWAL_REVIEW, WITHDRAWN)

LEAVE = "leave"
WITHDRAWAL = "withdrawal"
REVIEW_KINDS = (LEAVE, WITHDRAWAL)

REVIEW_OPEN = "open"
REVIEW_CONFIRMED = "confirmed"
REVIEW_CANCELLED = "cancelled"

REFUND_OPTIONS = ("none", "prorated", "full")

# kind → (review status, terminal status)
REVIEW_FLOW = {
    LEAVE: (ON_LEAVE_REVIEW, ON_LEAVE),
    WITHDRAWAL: (WITHDRAWAL_REVIEW, WITHDRAWN),
}

ALLOWED_TRANSITIONS = {
    ACTIVE: [ON_LEAVE_REVIEW, WITHDRAWAL_REVIEW],
    ON_LEAVE_REVIEW: [ON_LEAVE, ACTIVE],
    ON_LEAVE: [ACTIVE],
    WITHDRAWAL_REVIEW: [WITHDRAWN, ACTIVE],
    WITHDRAWN: [],  # Terminal state
}


def validate_student_transition(current_status: str, new_status: str) -> bool:
    return new_status in ALLOWED_TRANSITIONS.get(current_status, [])
