"""Enrollment domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class ReviewOpenRequest(BaseModel):
    kind: str
    reason: Optional[str] = None
    effectiveDate: Optional[date] = None
    refundOption: Optional[str] = None


class ReviewConfirmRequest(BaseModel):
    reason: Optional[str] = None
    effectiveDate: Optional[date] = None
    refundOption: Optional[str] = None


class ReviewResponse(BaseModel):
    id: int
    kind: str
    reason: Optional[str] = None
    effectiveDate: Optional[date] = None
    refundOption: Optional[str] = None
    state: str
    openedBy: Optional[str] = None
    openedAt: Optional[datetime] = None
    resolvedBy: Optional[str] = None
    resolvedAt: Optional[datetime] = None

    @classmethod
    def from_review(cls, review) -> "ReviewResponse":
        return cls(
            id=review.id,
            kind=review.kind,
            reason=review.reason,
            effectiveDate=review.effective_date,
            refundOption=review.refund_option,
            state=review.state,
            openedBy=review.opened_by,
            openedAt=review.opened_at,
            resolvedBy=review.resolved_by,
            resolvedAt=review.resolved_at,
        )


class StudentResponse(BaseModel):
    id: int
    applicantId: Optional[int] = None
    name: str
    englishName: Optional[str] = None
    birthDate: Optional[date] = None
    phone: str
    parentName: Optional[str] = None
    campus: Optional[str] = None
    className: str
    status: str
    reviews: list[ReviewResponse] = []

    @classmethod
    def from_student(cls, student, with_reviews: bool = False) -> "StudentResponse":
        return cls(
            id=student.id,
            applicantId=student.applicant_id,
            name=student.name,
            englishName=student.english_name,
            birthDate=student.birth_date,
            phone=student.phone,
            parentName=student.parent_name,
            campus=student.campus,
            className=student.class_name,
            status=student.status,
            reviews=[ReviewResponse.from_review(r) for r in student.reviews] if with_reviews else [],
        )
