"""Enrollment router - FastAPI endpoints for enrolled students"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_actor
from ...database import get_db
from .schemas import ReviewConfirmRequest, ReviewOpenRequest, StudentResponse
from .service import EnrollmentService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/students", tags=["Students"])


def get_enrollment_service(db: Session = Depends(get_db)) -> EnrollmentService:
    """Dependency injection for EnrollmentService"""
    return EnrollmentService(db)


@router.get("", response_model=list[StudentResponse])
async def list_students(
    campus: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    actor: str = Depends(get_current_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    return [StudentResponse.from_student(s) for s in service.list_students(campus, status)]


@router.get("/{student_id}", response_model=StudentResponse)
async def get_student(
    student_id: int,
    actor: str = Depends(get_current_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    return StudentResponse.from_student(service.get_student(student_id), with_reviews=True)


@router.post("/{student_id}/reviews", response_model=StudentResponse)
async def open_review(
    student_id: int,
    data: ReviewOpenRequest,
    actor: str = Depends(get_current_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    """Start a leave or withdrawal review"""
    student = service.open_review(
        student_id,
        data.kind,
        actor,
        reason=data.reason,
        effective_date=data.effectiveDate,
        refund_option=data.refundOption,
    )
    return StudentResponse.from_student(student, with_reviews=True)


@router.post("/{student_id}/reviews/confirm", response_model=StudentResponse)
async def confirm_review(
    student_id: int,
    data: ReviewConfirmRequest,
    actor: str = Depends(get_current_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    """Confirm the open review (reason and effective date required)"""
    student = service.confirm_review(
        student_id,
        actor,
        reason=data.reason,
        effective_date=data.effectiveDate,
        refund_option=data.refundOption,
    )
    return StudentResponse.from_student(student, with_reviews=True)


@router.post("/{student_id}/reviews/cancel", response_model=StudentResponse)
async def cancel_review(
    student_id: int,
    actor: str = Depends(get_current_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    student = service.cancel_review(student_id, actor)
    return StudentResponse.from_student(student, with_reviews=True)


@router.post("/{student_id}/return", response_model=StudentResponse)
async def return_from_leave(
    student_id: int,
    actor: str = Depends(get_current_actor),
    service: EnrollmentService = Depends(get_enrollment_service),
):
    student = service.return_from_leave(student_id, actor)
    return StudentResponse.from_student(student, with_reviews=True)
