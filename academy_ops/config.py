import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./academy_ops.db")

# Staff API tokens: "token:actor,token2:actor2"
# The actor id is recorded on checklist writes and status reviews
STAFF_API_TOKENS = os.getenv("STAFF_API_TOKENS", "")

# Notification / calendar gateway (fire-and-forget webhooks)
NOTIFICATION_WEBHOOK_URL = os.getenv("NOTIFICATION_WEBHOOK_URL")
CALENDAR_WEBHOOK_URL = os.getenv("CALENDAR_WEBHOOK_URL")
GATEWAY_TIMEOUT_SECONDS = float(os.getenv("GATEWAY_TIMEOUT_SECONDS", "10"))

# Invite link sent to parents the day before admission
BAND_INVITE_URL = os.getenv("BAND_INVITE_URL", "")

# Consultation slot defaults
# Weekday slots run hourly 10:00-20:00 unless overridden ("10:00,11:00,...")
DEFAULT_SLOT_TIMES = [
    t.strip()
    for t in os.getenv(
        "DEFAULT_SLOT_TIMES", ",".join(f"{h:02d}:00" for h in range(10, 21))
    ).split(",")
    if t.strip()
]
DEFAULT_SLOT_CAPACITY = int(os.getenv("DEFAULT_SLOT_CAPACITY", "1"))
MONTH_INIT_SLOT_CAPACITY = int(os.getenv("MONTH_INIT_SLOT_CAPACITY", "5"))
CONSULTATION_DURATION_MINUTES = int(os.getenv("CONSULTATION_DURATION_MINUTES", "60"))

# Rate limiting for the public booking endpoint
RATE_LIMIT_ENABLED = os.getenv("RATE_LIMIT_ENABLED", "true").lower() == "true"
BOOKING_RATE_LIMIT = int(os.getenv("BOOKING_RATE_LIMIT", "30"))
BOOKING_RATE_WINDOW_SECONDS = int(os.getenv("BOOKING_RATE_WINDOW_SECONDS", "60"))

# CORS
ALLOWED_ORIGINS = os.getenv(
    "ALLOWED_ORIGINS",
    "http://localhost:3000,http://localhost:5173",
).split(",")

# Campus directory used in consultation messages
DEFAULT_CAMPUS = "International"
CAMPUS_CONFIG = {
    "International": {
        "name": "Frage Academy International Campus",
        "address": "45 Suseong-ro 54-gil, Suseong-gu, Daegu",
        "contact_phone": "053-754-0577",
    },
    "Andover": {
        "name": "Frage Academy Andover Campus",
        "address": "2482 Dalgubeol-daero, Suseong-gu, Daegu",
        "contact_phone": "053-759-0533",
    },
    "Platz": {
        "name": "Frage Academy Platz Campus",
        "address": "175 Beomeocheon-ro, Suseong-gu, Daegu",
        "contact_phone": "053-218-0577",
    },
    "Atheneum": {
        "name": "Frage Academy Atheneum Campus",
        "address": "3F Jinyoung Bldg, 167 Beomeocheon-ro, Suseong-gu, Daegu",
        "contact_phone": "053-216-0577",
    },
}


def get_campus(campus: str | None) -> dict:
    """Campus directory entry, falling back to the default campus"""
    return CAMPUS_CONFIG.get(campus or DEFAULT_CAMPUS, CAMPUS_CONFIG[DEFAULT_CAMPUS])
