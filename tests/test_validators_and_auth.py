from __future__ import annotations

from datetime import date

import pytest

from academy_ops.auth import parse_staff_tokens, resolve_actor
from academy_ops.config import get_campus
from academy_ops.services.calendar_links import build_calendar_link, format_calendar_dates
from academy_ops.shared.validators import (
    normalize_phone,
    student_natural_key,
    validate_slot_time,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("010-1234-5678", "01012345678"),
        ("+82 10 1234 5678", "01012345678"),
        ("053.754.0577", "0537540577"),
    ],
)
def test_normalize_phone(raw: str, expected: str) -> None:
    assert normalize_phone(raw) == expected


def test_normalize_phone_rejects_short_numbers() -> None:
    with pytest.raises(ValueError):
        normalize_phone("1234")


def test_validate_slot_time_pads_single_digit_hours() -> None:
    assert validate_slot_time("9:00") == "09:00"
    assert validate_slot_time(" 14:30 ") == "14:30"
    with pytest.raises(ValueError):
        validate_slot_time("25:00")


def test_natural_key_ignores_formatting() -> None:
    assert student_natural_key("010-1234-5678", "Kim  Minji") == student_natural_key(
        "01012345678", "kim minji"
    )


def test_staff_tokens_resolve_to_actor() -> None:
    tokens = parse_staff_tokens("abc:staff1, def:director ,broken,:nobody")

    assert tokens == {"abc": "staff1", "def": "director"}
    assert resolve_actor("def", tokens) == "director"
    assert resolve_actor("zzz", tokens) is None


def test_unknown_campus_falls_back_to_default() -> None:
    assert get_campus("Nowhere")["name"] == "Frage Academy International Campus"
    assert get_campus(None) == get_campus("International")


def test_calendar_dates_timed_and_all_day() -> None:
    assert format_calendar_dates(date(2025, 3, 10), "23:30", 60) == "20250310T233000/20250311T003000"
    assert format_calendar_dates(date(2025, 3, 10)) == "20250310/20250310"


def test_calendar_link_encodes_title() -> None:
    link = build_calendar_link("[New consultation] Kim", "Contact: 010", "20250310/20250310")

    assert link.startswith("https://calendar.google.com/calendar/render?action=TEMPLATE")
    assert "text=%5BNew+consultation%5D+Kim" in link
    assert "dates=20250310/20250310" in link
