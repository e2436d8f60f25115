"""
Google Calendar template links

Staff open the link to add the consultation to the director's calendar.
"""

from datetime import date, datetime, timedelta
from typing import Optional
from urllib.parse import urlencode

GOOGLE_CALENDAR_TEMPLATE_URL = "https://calendar.google.com/calendar/render"


def format_calendar_dates(
    event_date: date, event_time: Optional[str] = None, duration_minutes: int = 60
) -> str:
    """
    Google Calendar ``dates`` parameter.

    Timed events use local wall-clock ``YYYYMMDDTHHMMSS/YYYYMMDDTHHMMSS``;
    without a time the event is all-day ``YYYYMMDD/YYYYMMDD``.
    """
    if not event_time:
        day = event_date.strftime("%Y%m%d")
        return f"{day}/{day}"

    start = datetime.combine(event_date, datetime.strptime(event_time, "%H:%M").time())
    end = start + timedelta(minutes=duration_minutes)
    return f"{start.strftime('%Y%m%dT%H%M%S')}/{end.strftime('%Y%m%dT%H%M%S')}"


def build_calendar_link(title: str, details: str, dates: str) -> str:
    params = {"action": "TEMPLATE", "text": title, "details": details, "dates": dates}
    return f"{GOOGLE_CALENDAR_TEMPLATE_URL}?{urlencode(params, safe='/')}"
