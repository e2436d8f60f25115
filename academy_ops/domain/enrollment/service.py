"""Enrollment service - finalize applicants and manage the enrolled student lifecycle"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...errors import ConflictError, InvalidTransitionError, NotFoundError, ValidationError
from ...models_enrollment import EnrolledStudent, StudentStatusReview
from ...shared.validators import student_natural_key
from ..applicants import status as applicant_status
from ..applicants.repository import ApplicantRepository
from . import status as student_status
from .repository import EnrollmentRepository

logger = logging.getLogger(__name__)

UNASSIGNED_CLASS = "unassigned"


@dataclass
class FinalizeResult:
    student: EnrolledStudent
    already_finalized: bool


class EnrollmentService:
    """Service layer for enrolled students"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = EnrollmentRepository()
        self.applicants = ApplicantRepository()

    def finalize(self, applicant_id: int, actor: Optional[str] = None) -> FinalizeResult:
        """
        Promote an applicant to an enrolled student.

        Runs in its own transaction. Calling it again for the same applicant,
        or for another applicant with the same phone and name, returns the
        student created the first time.

        Raises:
            NotFoundError: Unknown applicant
            ValidationError: Applicant was rejected
        """
        db = self.db
        try:
            applicant = self.applicants.get_applicant_for_update(db, applicant_id)
            if not applicant:
                raise NotFoundError("Applicant not found")
            if applicant.status == applicant_status.REJECTED:
                raise ValidationError(f"Applicant {applicant_id} was rejected and cannot be enrolled")

            natural_key = student_natural_key(applicant.phone, applicant.student_name)
            student = self.repo.find_existing(db, applicant_id, natural_key)
            already_finalized = student is not None

            if student is None:
                student = EnrolledStudent(
                    applicant_id=applicant_id,
                    natural_key=natural_key,
                    name=applicant.student_name,
                    english_name=applicant.english_name,
                    birth_date=applicant.birth_date,
                    phone=applicant.phone,
                    parent_name=applicant.parent_name,
                    campus=applicant.campus,
                    class_name=UNASSIGNED_CLASS,
                    address=applicant.address,
                    status=student_status.ACTIVE,
                )
                db.add(student)
                db.flush()

            if applicant.status != applicant_status.ENROLLED:
                applicant.status = applicant_status.ENROLLED
            if applicant.archived_at is None:
                applicant.archived_at = datetime.utcnow()

            db.commit()
        except IntegrityError as e:
            # A concurrent finalize inserted the row first
            db.rollback()
            logger.warning(f"Finalize race for applicant {applicant_id}: {e}")
            return self._resolve_existing(applicant_id)
        except Exception:
            db.rollback()
            raise

        db.refresh(student)
        if already_finalized:
            logger.info(f"Applicant {applicant_id} already finalized as student {student.id}")
        else:
            logger.info(f"Applicant {applicant_id} finalized as student {student.id} by {actor}")
        return FinalizeResult(student=student, already_finalized=already_finalized)

    def _resolve_existing(self, applicant_id: int) -> FinalizeResult:
        db = self.db
        applicant = self.applicants.get_applicant(db, applicant_id)
        natural_key = student_natural_key(applicant.phone, applicant.student_name)
        student = self.repo.find_existing(db, applicant_id, natural_key)
        if not student:
            raise ConflictError("Enrollment changed by a concurrent request, please retry")

        if applicant.status != applicant_status.ENROLLED or applicant.archived_at is None:
            applicant.status = applicant_status.ENROLLED
            applicant.archived_at = applicant.archived_at or datetime.utcnow()
            db.commit()
        return FinalizeResult(student=student, already_finalized=True)

    def get_student(self, student_id: int) -> EnrolledStudent:
        student = self.repo.get_student(self.db, student_id)
        if not student:
            raise NotFoundError("Student not found")
        return student

    def list_students(self, campus: Optional[str] = None, status: Optional[str] = None) -> list[EnrolledStudent]:
        if status and status not in student_status.STUDENT_STATUSES:
            raise ValidationError(f"Unknown student status: {status}")
        return self.repo.list_students(self.db, campus, status)

    # ------------------------------------------------------------------
    # Leave / withdrawal reviews
    # ------------------------------------------------------------------

    def open_review(
        self,
        student_id: int,
        kind: str,
        actor: str,
        reason: Optional[str] = None,
        effective_date: Optional[date] = None,
        refund_option: Optional[str] = None,
    ) -> EnrolledStudent:
        """Move an active student into leave or withdrawal review"""
        if kind not in student_status.REVIEW_KINDS:
            raise ValidationError(f"Unknown review kind: {kind}")
        if refund_option and refund_option not in student_status.REFUND_OPTIONS:
            raise ValidationError(f"Unknown refund option: {refund_option}")

        review_status, _ = student_status.REVIEW_FLOW[kind]

        def apply(student: EnrolledStudent):
            self.db.add(
                StudentStatusReview(
                    student_id=student.id,
                    kind=kind,
                    reason=reason,
                    effective_date=effective_date,
                    refund_option=refund_option,
                    state=student_status.REVIEW_OPEN,
                    opened_by=actor,
                )
            )

        return self._transition(student_id, review_status, actor, apply)

    def confirm_review(
        self,
        student_id: int,
        actor: str,
        reason: Optional[str] = None,
        effective_date: Optional[date] = None,
        refund_option: Optional[str] = None,
    ) -> EnrolledStudent:
        """
        Confirm the open review, moving the student to on-leave or withdrawn.

        Reason and effective date must be on the review by now; they can be
        supplied here if they were not given when the review was opened.
        """
        if refund_option and refund_option not in student_status.REFUND_OPTIONS:
            raise ValidationError(f"Unknown refund option: {refund_option}")

        student = self.get_student(student_id)
        review = self._require_open_review(student)
        _, terminal_status = student_status.REVIEW_FLOW[review.kind]

        def apply(student: EnrolledStudent):
            if reason:
                review.reason = reason
            if effective_date:
                review.effective_date = effective_date
            if refund_option:
                review.refund_option = refund_option
            if not (review.reason or "").strip() or review.effective_date is None:
                raise ValidationError("Reason and effective date are required to confirm")
            review.state = student_status.REVIEW_CONFIRMED
            review.resolved_by = actor
            review.resolved_at = datetime.utcnow()

        return self._transition(student_id, terminal_status, actor, apply)

    def cancel_review(self, student_id: int, actor: str) -> EnrolledStudent:
        """Drop the open review and return the student to active"""
        student = self.get_student(student_id)
        review = self._require_open_review(student)

        def apply(student: EnrolledStudent):
            review.state = student_status.REVIEW_CANCELLED
            review.resolved_by = actor
            review.resolved_at = datetime.utcnow()

        return self._transition(student_id, student_status.ACTIVE, actor, apply)

    def return_from_leave(self, student_id: int, actor: str) -> EnrolledStudent:
        student = self.get_student(student_id)
        if student.status != student_status.ON_LEAVE:
            raise InvalidTransitionError(f"Student is {student.status}, not on leave")
        return self._transition(student_id, student_status.ACTIVE, actor)

    def _require_open_review(self, student: EnrolledStudent) -> StudentStatusReview:
        if student.status not in (student_status.ON_LEAVE_REVIEW, student_status.WITHDRAWAL_REVIEW):
            raise InvalidTransitionError(f"Student is {student.status}, no review in progress")
        review = self.repo.get_open_review(self.db, student.id)
        if not review:
            raise NotFoundError("No open review for this student")
        return review

    def _transition(self, student_id: int, new_status: str, actor: str, apply=None) -> EnrolledStudent:
        db = self.db
        try:
            student = self.repo.get_student(db, student_id, for_update=True)
            if not student:
                raise NotFoundError("Student not found")

            current = student.status
            if not student_status.validate_student_transition(current, new_status):
                raise InvalidTransitionError(f"Cannot move student from {current} to {new_status}")

            if apply:
                apply(student)
            student.status = new_status
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Student {student_id} transitioned: {current} → {new_status} by {actor}")
        db.refresh(student)
        return student
