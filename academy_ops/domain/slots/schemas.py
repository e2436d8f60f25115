"""Slot domain schemas - Pydantic models for validation"""

from datetime import date
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ...shared.validators import validate_slot_time


class SlotCreate(BaseModel):
    """Schema for creating a slot by hand"""

    date: date
    time: str
    capacity: int = Field(default=5, ge=1)
    isOpen: bool = True
    note: Optional[str] = None

    @field_validator("time")
    @classmethod
    def validate_time(cls, v):
        return validate_slot_time(v)


class SlotUpdate(BaseModel):
    """Schema for updating slot settings (occupancy is not writable)"""

    capacity: Optional[int] = Field(default=None, ge=1)
    isOpen: Optional[bool] = None
    note: Optional[str] = None


class SlotToggleRequest(BaseModel):
    isOpen: bool


class SlotResponse(BaseModel):
    id: int
    date: date
    time: str
    capacity: int
    occupied: int
    remaining: int
    isOpen: bool
    note: Optional[str] = None

    @classmethod
    def from_slot(cls, slot) -> "SlotResponse":
        return cls(
            id=slot.id,
            date=slot.date,
            time=slot.time,
            capacity=slot.capacity,
            occupied=slot.occupied,
            remaining=max(0, slot.capacity - slot.occupied),
            isOpen=slot.is_open,
            note=slot.note,
        )


class BookSlotRequest(BaseModel):
    """Public booking request, keyed on the public id returned at signup"""

    publicId: str


class ReservationResponse(BaseModel):
    applicantId: int
    slotId: int
    date: date
    time: str

    @classmethod
    def from_reservation(cls, reservation) -> "ReservationResponse":
        return cls(
            applicantId=reservation.applicant_id,
            slotId=reservation.slot_id,
            date=reservation.date,
            time=reservation.time,
        )


class BookSlotResponse(BaseModel):
    reservation: ReservationResponse


class ReleaseResponse(BaseModel):
    released: bool


class MonthInitRequest(BaseModel):
    year: int = Field(ge=2000, le=2100)
    month: int = Field(ge=1, le=12)
    weekdaysOnly: bool = True
    capacity: Optional[int] = Field(default=None, ge=1)


class MonthInitResponse(BaseModel):
    initialized: bool
    created: int
