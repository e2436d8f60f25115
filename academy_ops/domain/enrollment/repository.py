"""Enrollment repository - Database operations for enrolled students"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models_enrollment import EnrolledStudent, StudentStatusReview
from . import status as student_status


class EnrollmentRepository:
    """Repository for enrolled student database operations"""

    @staticmethod
    def get_student(db: Session, student_id: int, for_update: bool = False) -> Optional[EnrolledStudent]:
        query = db.query(EnrolledStudent).filter(EnrolledStudent.id == student_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        return query.first()

    @staticmethod
    def find_existing(db: Session, applicant_id: int, natural_key: str) -> Optional[EnrolledStudent]:
        """Student already created for this applicant or this natural key"""
        student = (
            db.query(EnrolledStudent)
            .filter(EnrolledStudent.applicant_id == applicant_id)
            .first()
        )
        if student:
            return student
        return (
            db.query(EnrolledStudent)
            .filter(EnrolledStudent.natural_key == natural_key)
            .first()
        )

    @staticmethod
    def list_students(
        db: Session, campus: Optional[str] = None, status: Optional[str] = None
    ) -> list[EnrolledStudent]:
        query = db.query(EnrolledStudent)
        if campus and campus != "All":
            query = query.filter(EnrolledStudent.campus == campus)
        if status:
            query = query.filter(EnrolledStudent.status == status)
        return query.order_by(EnrolledStudent.name.asc(), EnrolledStudent.id.asc()).all()

    @staticmethod
    def get_open_review(db: Session, student_id: int) -> Optional[StudentStatusReview]:
        return (
            db.query(StudentStatusReview)
            .filter(
                StudentStatusReview.student_id == student_id,
                StudentStatusReview.state == student_status.REVIEW_OPEN,
            )
            .order_by(StudentStatusReview.id.desc())
            .first()
        )
