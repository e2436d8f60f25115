"""Applicant router - FastAPI endpoints for the admission pipeline"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_actor
from ...database import get_db
from ..slots.schemas import ReleaseResponse, ReservationResponse
from ..slots.service import BookingService
from .schemas import ApplicantCreate, ApplicantResponse, PipelineEntry, StatusTransitionRequest
from .service import ApplicantService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/applicants", tags=["Applicants"])


def get_applicant_service(db: Session = Depends(get_db)) -> ApplicantService:
    """Dependency injection for ApplicantService"""
    return ApplicantService(db)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    return BookingService(db)


def to_pipeline_entry(entry: dict) -> PipelineEntry:
    reservation = entry["reservation"]
    return PipelineEntry(
        applicant=ApplicantResponse.from_applicant(entry["applicant"]),
        stage=entry["stage"],
        stageLabel=entry["stage_label"],
        progress=entry["progress"],
        checklist=entry["checklist"],
        reservation=ReservationResponse.from_reservation(reservation) if reservation else None,
    )


@router.post("", response_model=ApplicantResponse, status_code=201)
async def create_applicant(
    data: ApplicantCreate,
    service: ApplicantService = Depends(get_applicant_service),
):
    """Signup: register a new applicant (status waiting)"""
    applicant = service.create_applicant(data)
    return ApplicantResponse.from_applicant(applicant)


@router.get("/pipeline", response_model=list[PipelineEntry])
async def get_pipeline(
    campus: Optional[str] = Query(None),
    stage: Optional[str] = Query(None),
    actor: str = Depends(get_current_actor),
    service: ApplicantService = Depends(get_applicant_service),
):
    """Applicants still in the pipeline with derived stage and active reservation"""
    return [to_pipeline_entry(e) for e in service.pipeline(campus, stage)]


@router.get("/{applicant_id}", response_model=PipelineEntry)
async def get_applicant(
    applicant_id: int,
    actor: str = Depends(get_current_actor),
    service: ApplicantService = Depends(get_applicant_service),
):
    applicant = service.get_applicant(applicant_id)
    return to_pipeline_entry(service.describe(applicant))


@router.post("/{applicant_id}/status", response_model=ApplicantResponse)
async def transition_status(
    applicant_id: int,
    data: StatusTransitionRequest,
    actor: str = Depends(get_current_actor),
    service: ApplicantService = Depends(get_applicant_service),
):
    """Staff-driven status change (validated against the admission state machine)"""
    applicant = service.transition_status(applicant_id, data.status, actor)
    return ApplicantResponse.from_applicant(applicant)


@router.delete("/{applicant_id}/reservation", response_model=ReleaseResponse)
async def release_reservation(
    applicant_id: int,
    actor: str = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    """Release the applicant's slot; releasing twice is a no-op"""
    released = service.release(applicant_id)
    logger.info(f"Release for applicant {applicant_id} by {actor}: released={released}")
    return ReleaseResponse(released=released)
