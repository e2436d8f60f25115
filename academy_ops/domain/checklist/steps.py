"""
Onboarding checklist catalogue

Seven ordered phases. Order is for display only: any step may be toggled at
any time, and only the keys bound in ``triggers.TRIGGERS`` have side effects.
"""

PHASES = [
    {
        "id": "reservation",
        "title": "STEP 1. Consultation booking",
        "items": [
            {"key": "schedule_check", "label": "Check available consultation days/times", "role": "admin"},
            {"key": "director_calendar", "label": "Check director's calendar", "role": "admin"},
            {"key": "consultation_confirmed", "label": "Confirm consultation schedule", "role": "admin"},
            {"key": "consultation_msg", "label": "Send consultation notice", "role": "admin"},
            {"key": "calendar_record", "label": "Record on calendar", "role": "admin"},
        ],
    },
    {
        "id": "decision",
        "title": "STEP 2. Admission decision",
        "items": [
            {"key": "admission_confirmed", "label": "Confirm admission", "role": "director"},
            {"key": "admission_date", "label": "Enter planned admission date", "role": "admin"},
            {"key": "homeroom_assign", "label": "Assign homeroom teacher", "role": "vice_director"},
            {"key": "native_assign", "label": "Share with native teacher", "role": "vice_director"},
            {"key": "transfer_list", "label": "Update transfer student list", "role": "admin"},
        ],
    },
    {
        "id": "documents",
        "title": "STEP 3. Admission document package",
        "items": [
            {"key": "docs_submitted", "label": "Parent documents submitted", "role": "admin"},
        ],
    },
    {
        "id": "preparation",
        "title": "STEP 4. Admission preparation",
        "items": [
            {"key": "textbook_list", "label": "Prepare textbook list", "role": "homeroom"},
            {"key": "supplies_check", "label": "Check supplies list", "role": "homeroom"},
            {"key": "native_share", "label": "Share with native teacher", "role": "homeroom"},
            {"key": "smartstore_msg", "label": "Send online store notice", "role": "admin"},
            {"key": "uniform_msg", "label": "Send uniform order notice", "role": "admin"},
            {"key": "milk_msg", "label": "Send milk subscription notice", "role": "admin"},
        ],
    },
    {
        "id": "transport",
        "title": "STEP 5. Transport",
        "items": [
            {"key": "transport_choice", "label": "Bus or self commute chosen", "role": "admin"},
            {"key": "transport_fix", "label": "Confirm bus time and route", "role": "transport"},
            {"key": "transport_notice", "label": "Post bus group notice", "role": "admin"},
            {"key": "transport_call", "label": "Log call with bus teacher", "role": "transport"},
        ],
    },
    {
        "id": "pre_admission",
        "title": "STEP 6. Day before admission",
        "items": [
            {"key": "band_invite", "label": "Send class group invite link", "role": "admin"},
            {"key": "final_notice", "label": "Send final admission notice", "role": "admin"},
            {"key": "time_notice", "label": "Re-send admission time", "role": "admin"},
        ],
    },
    {
        "id": "post_admission",
        "title": "STEP 7. Admission day and follow-up",
        "items": [
            {"key": "first_greeting", "label": "Homeroom greeting", "role": "homeroom"},
            {"key": "photo_taken", "label": "Photo taken", "role": "teacher"},
            {"key": "happy_call_1", "label": "First follow-up call", "role": "homeroom"},
            {"key": "happy_call_2_reserve", "label": "Schedule second follow-up call", "role": "admin"},
            {"key": "band_check", "label": "Confirm class group access", "role": "admin"},
        ],
    },
]

# Older clients send the phase completion key instead of docs_submitted
STEP_ALIASES = {"step3_completed": "docs_submitted"}

STEPS = {item["key"]: {**item, "phase": phase["id"]} for phase in PHASES for item in phase["items"]}


def is_known_step(step_key: str) -> bool:
    return step_key in STEPS or step_key in STEP_ALIASES
