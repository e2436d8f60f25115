from __future__ import annotations

from datetime import date

import pytest

from academy_ops.config import DEFAULT_SLOT_TIMES
from academy_ops.domain.slots.service import BookingService, SlotService
from academy_ops.errors import ConflictError, ValidationError
from academy_ops.models_slots import ConsultationSlot


def test_create_slot_rejects_duplicate_date_time(db) -> None:
    service = SlotService(db)
    service.create_slot(date(2025, 3, 10), "10:00", capacity=3)

    with pytest.raises(ConflictError):
        service.create_slot(date(2025, 3, 10), "10:00", capacity=1)


def test_capacity_cannot_drop_below_occupied(db, make_applicant, make_slot) -> None:
    slot = make_slot(capacity=3)
    for _ in range(2):
        BookingService(db).book(make_applicant().id, slot.id)
    service = SlotService(db)

    with pytest.raises(ConflictError):
        service.update_slot(slot.id, capacity=1)

    updated = service.update_slot(slot.id, capacity=2, note="director only")
    assert updated.capacity == 2
    assert updated.occupied == 2
    assert updated.note == "director only"


def test_delete_refused_while_reserved(db, make_applicant, make_slot) -> None:
    slot = make_slot(capacity=2)
    applicant = make_applicant()
    BookingService(db).book(applicant.id, slot.id)
    service = SlotService(db)

    with pytest.raises(ConflictError):
        service.delete_slot(slot.id)

    BookingService(db).release(applicant.id)
    service.delete_slot(slot.id)
    assert db.query(ConsultationSlot).count() == 0


def test_ensure_default_slots_fills_weekdays_only(db) -> None:
    service = SlotService(db)

    monday = service.ensure_default_slots(date(2025, 3, 10))
    again = service.ensure_default_slots(date(2025, 3, 10))
    saturday = service.ensure_default_slots(date(2025, 3, 15))

    assert [s.time for s in monday] == DEFAULT_SLOT_TIMES
    assert len(again) == len(monday)
    assert saturday == []


def test_init_month_is_idempotent(db, make_slot) -> None:
    make_slot(date(2025, 3, 3), "10:00", capacity=1)
    service = SlotService(db)

    first = service.init_month(2025, 3)
    second = service.init_month(2025, 3)

    weekdays = sum(1 for d in range(1, 32) if date(2025, 3, d).weekday() < 5)
    assert first == {"initialized": False, "created": weekdays * len(DEFAULT_SLOT_TIMES) - 1}
    assert second == {"initialized": True, "created": 0}
    assert db.query(ConsultationSlot).count() == weekdays * len(DEFAULT_SLOT_TIMES)


def test_init_month_rejects_bad_month(db) -> None:
    with pytest.raises(ValidationError):
        SlotService(db).init_month(2025, 13)


def test_list_slots_orders_and_filters(db, make_slot) -> None:
    make_slot(date(2025, 3, 11), "11:00", capacity=1, occupied=1)
    make_slot(date(2025, 3, 11), "09:00", capacity=1)
    make_slot(date(2025, 3, 10), "15:00", capacity=2)
    make_slot(date(2025, 3, 12), "10:00", capacity=2, is_open=False)
    service = SlotService(db)

    ranged = service.list_slots(range_start=date(2025, 3, 10), range_end=date(2025, 3, 11))
    available = service.list_slots(available_only=True)

    assert [(s.date.day, s.time) for s in ranged] == [(10, "15:00"), (11, "09:00"), (11, "11:00")]
    assert [(s.date.day, s.time) for s in available] == [(10, "15:00"), (11, "09:00")]

    with pytest.raises(ValidationError):
        service.list_slots(range_start=date(2025, 3, 12), range_end=date(2025, 3, 10))


def test_cleanup_keeps_referenced_past_slots(db, make_applicant, make_slot) -> None:
    referenced = make_slot(date(2025, 3, 3), "10:00", capacity=1)
    make_slot(date(2025, 3, 3), "11:00", capacity=1)
    make_slot(date(2025, 3, 20), "10:00", capacity=1)
    BookingService(db).book(make_applicant().id, referenced.id)

    deleted = SlotService(db).cleanup_past_slots(today=date(2025, 3, 10))

    remaining = {(s.date.day, s.time) for s in db.query(ConsultationSlot).all()}
    assert deleted == 1
    assert remaining == {(3, "10:00"), (20, "10:00")}
