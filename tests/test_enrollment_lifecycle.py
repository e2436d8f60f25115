from __future__ import annotations

from datetime import date

import pytest

from academy_ops.domain.enrollment.service import EnrollmentService
from academy_ops.errors import InvalidTransitionError, NotFoundError, ValidationError


@pytest.fixture
def student(db, make_applicant):
    applicant = make_applicant(status="approved", student_name="Lee Jiwoo")
    return EnrollmentService(db).finalize(applicant.id, "staff1").student


def test_finalize_unknown_applicant(db) -> None:
    with pytest.raises(NotFoundError):
        EnrollmentService(db).finalize(9999, "staff1")


def test_finalize_rejected_applicant(db, make_applicant) -> None:
    applicant = make_applicant(status="rejected")

    with pytest.raises(ValidationError):
        EnrollmentService(db).finalize(applicant.id, "staff1")


def test_finalize_copies_applicant_fields(db, make_applicant) -> None:
    applicant = make_applicant(
        student_name="Park Seoyeon",
        english_name="Sophie",
        birth_date=date(2018, 5, 1),
        campus="Andover",
    )

    result = EnrollmentService(db).finalize(applicant.id, "staff1")

    db.refresh(applicant)
    assert result.already_finalized is False
    assert result.student.name == "Park Seoyeon"
    assert result.student.english_name == "Sophie"
    assert result.student.birth_date == date(2018, 5, 1)
    assert result.student.campus == "Andover"
    assert applicant.status == "enrolled"
    assert applicant.archived_at is not None


def test_leave_review_needs_explicit_confirm(db, student) -> None:
    service = EnrollmentService(db)

    reviewed = service.open_review(student.id, "leave", "staff1", reason="Family travel")
    assert reviewed.status == "on-leave-review"

    # No effective date yet
    with pytest.raises(ValidationError):
        service.confirm_review(student.id, "director")
    assert service.get_student(student.id).status == "on-leave-review"

    confirmed = service.confirm_review(student.id, "director", effective_date=date(2025, 4, 1))
    assert confirmed.status == "on-leave"
    [review] = confirmed.reviews
    assert review.state == "confirmed"
    assert review.resolved_by == "director"
    assert review.effective_date == date(2025, 4, 1)

    returned = service.return_from_leave(student.id, "staff1")
    assert returned.status == "active"


def test_withdrawal_review_confirm(db, student) -> None:
    service = EnrollmentService(db)
    service.open_review(
        student.id,
        "withdrawal",
        "staff1",
        reason="Moving abroad",
        effective_date=date(2025, 5, 1),
        refund_option="prorated",
    )

    withdrawn = service.confirm_review(student.id, "director")

    assert withdrawn.status == "withdrawn"
    with pytest.raises(InvalidTransitionError):
        service.open_review(student.id, "leave", "staff1")


def test_cancel_review_returns_to_active(db, student) -> None:
    service = EnrollmentService(db)
    service.open_review(student.id, "withdrawal", "staff1")

    cancelled = service.cancel_review(student.id, "director")

    assert cancelled.status == "active"
    assert cancelled.reviews[0].state == "cancelled"


def test_review_rules(db, student) -> None:
    service = EnrollmentService(db)

    with pytest.raises(ValidationError):
        service.open_review(student.id, "sabbatical", "staff1")
    with pytest.raises(InvalidTransitionError):
        service.confirm_review(student.id, "director")
    with pytest.raises(InvalidTransitionError):
        service.return_from_leave(student.id, "staff1")

    service.open_review(student.id, "leave", "staff1")
    with pytest.raises(InvalidTransitionError):
        service.open_review(student.id, "withdrawal", "staff1")


def test_list_students_filters(db, make_applicant) -> None:
    service = EnrollmentService(db)
    for campus in ("International", "Andover", "Andover"):
        service.finalize(make_applicant(campus=campus).id, "staff1")

    assert len(service.list_students()) == 3
    assert len(service.list_students(campus="Andover")) == 2
    assert len(service.list_students(campus="All", status="active")) == 3

    with pytest.raises(ValidationError):
        service.list_students(status="graduated")
