"""
Checklist trigger table

Maps a checklist step key to the effects fired when that step becomes
checked. Each effect kind has a payload builder; kinds listed in
``DISPATCHED_KINDS`` are delivered through the gateway after the response,
the rest are handled in-process by the workflow service.
"""

from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from ...config import BAND_INVITE_URL, CONSULTATION_DURATION_MINUTES, get_campus
from ...models import Applicant
from ...models_slots import Reservation
from ...services.calendar_links import build_calendar_link, format_calendar_dates
from .steps import STEP_ALIASES

CALENDAR_EVENT = "calendar_event"
DOCUMENT_PACKAGE_OPENED = "document_package_opened"
PARENT_NOTIFICATION = "parent_notification"
CONSULTATION_MESSAGE = "consultation_message"
INVITE_LINK = "invite_link"
FINALIZE = "finalize"

TRIGGERS: dict[str, tuple[str, ...]] = {
    "consultation_confirmed": (CALENDAR_EVENT,),
    "admission_confirmed": (DOCUMENT_PACKAGE_OPENED,),
    "consultation_msg": (PARENT_NOTIFICATION, CONSULTATION_MESSAGE),
    "band_invite": (INVITE_LINK,),
    "docs_submitted": (FINALIZE,),
}

DISPATCHED_KINDS = (CALENDAR_EVENT, PARENT_NOTIFICATION, CONSULTATION_MESSAGE, INVITE_LINK)


@dataclass
class TriggerContext:
    applicant: Applicant
    reservation: Optional[Reservation]
    today: date


def effects_for(step_key: str) -> tuple[str, ...]:
    """Effect kinds bound to a step (aliases resolve to their canonical key)"""
    return TRIGGERS.get(STEP_ALIASES.get(step_key, step_key), ())


def _calendar_event(ctx: TriggerContext) -> dict:
    applicant = ctx.applicant
    reservation = ctx.reservation

    if reservation:
        event_date, event_time = reservation.date, reservation.time
    else:
        event_date, event_time = ctx.today, None

    title = f"[New consultation] {applicant.student_name} ({applicant.parent_name or 'parent'})"
    details = f"Contact: {applicant.phone or 'none'}"
    dates = format_calendar_dates(event_date, event_time, CONSULTATION_DURATION_MINUTES)

    return {
        "applicant_id": applicant.id,
        "title": title,
        "details": details,
        "date": event_date.isoformat(),
        "time": event_time,
        "all_day": event_time is None,
        "duration_minutes": CONSULTATION_DURATION_MINUTES if event_time else None,
        "calendar_link": build_calendar_link(title, details, dates),
    }


def _document_package_opened(ctx: TriggerContext) -> dict:
    return {"applicant_id": ctx.applicant.id}


def _parent_notification(ctx: TriggerContext) -> dict:
    reservation = ctx.reservation
    if reservation:
        message = (
            f"Consultation notice: your consultation on {reservation.date.isoformat()} "
            f"at {reservation.time} is confirmed."
        )
    else:
        message = "Consultation notice has been sent."
    return {"applicant_id": ctx.applicant.id, "phone": ctx.applicant.phone, "message": message}


def _consultation_message(ctx: TriggerContext) -> dict:
    applicant = ctx.applicant
    reservation = ctx.reservation
    campus = get_campus(applicant.campus)
    return {
        "message_type": "consultation_confirm",
        "applicant_id": applicant.id,
        "student_name": applicant.student_name,
        "parent_name": applicant.parent_name,
        "phone": applicant.phone,
        "date": reservation.date.isoformat() if reservation else None,
        "time": reservation.time if reservation else None,
        "campus_name": campus["name"],
        "address": campus["address"],
        "contact_phone": campus["contact_phone"],
    }


def _invite_link(ctx: TriggerContext) -> dict:
    return {
        "applicant_id": ctx.applicant.id,
        "phone": ctx.applicant.phone,
        "parent_name": ctx.applicant.parent_name,
        "invite_url": BAND_INVITE_URL,
    }


def _finalize(ctx: TriggerContext) -> dict:
    return {"applicant_id": ctx.applicant.id}


EFFECT_BUILDERS: dict[str, Callable[[TriggerContext], dict]] = {
    CALENDAR_EVENT: _calendar_event,
    DOCUMENT_PACKAGE_OPENED: _document_package_opened,
    PARENT_NOTIFICATION: _parent_notification,
    CONSULTATION_MESSAGE: _consultation_message,
    INVITE_LINK: _invite_link,
    FINALIZE: _finalize,
}


def build_payload(kind: str, ctx: TriggerContext) -> dict:
    return EFFECT_BUILDERS[kind](ctx)
