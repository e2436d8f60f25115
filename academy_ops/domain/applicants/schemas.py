"""Applicant domain schemas - Pydantic models for validation"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, field_validator

from ...config import CAMPUS_CONFIG
from ...shared.validators import normalize_phone
from ..slots.schemas import ReservationResponse
from .status import STATUSES


class ApplicantCreate(BaseModel):
    """Schema for a signup (new applicant)"""

    studentName: str
    phone: str
    parentName: Optional[str] = None
    englishName: Optional[str] = None
    campus: Optional[str] = None
    birthDate: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[str] = None

    @field_validator("studentName")
    @classmethod
    def validate_name(cls, v):
        v = " ".join(v.split())
        if not v:
            raise ValueError("Student name is required")
        return v

    @field_validator("phone")
    @classmethod
    def validate_phone(cls, v):
        phone = normalize_phone(v)
        if not phone:
            raise ValueError("Phone number is required")
        return phone

    @field_validator("campus")
    @classmethod
    def validate_campus(cls, v):
        if v and v not in CAMPUS_CONFIG:
            raise ValueError(f"Unknown campus: {v}")
        return v


class StatusTransitionRequest(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in STATUSES:
            raise ValueError(f"Unknown status: {v}")
        return v


class ApplicantResponse(BaseModel):
    id: int
    publicId: str
    studentName: str
    englishName: Optional[str] = None
    parentName: Optional[str] = None
    phone: str
    campus: Optional[str] = None
    birthDate: Optional[date] = None
    gender: Optional[str] = None
    status: str
    createdAt: Optional[datetime] = None
    archivedAt: Optional[datetime] = None

    @classmethod
    def from_applicant(cls, applicant) -> "ApplicantResponse":
        return cls(
            id=applicant.id,
            publicId=applicant.public_id,
            studentName=applicant.student_name,
            englishName=applicant.english_name,
            parentName=applicant.parent_name,
            phone=applicant.phone,
            campus=applicant.campus,
            birthDate=applicant.birth_date,
            gender=applicant.gender,
            status=applicant.status,
            createdAt=applicant.created_at,
            archivedAt=applicant.archived_at,
        )


class PipelineEntry(BaseModel):
    """Applicant with derived stage and active reservation"""

    applicant: ApplicantResponse
    stage: str
    stageLabel: str
    progress: int
    checklist: dict[str, bool]
    reservation: Optional[ReservationResponse] = None
