"""Slot router - FastAPI endpoints for consultation slots and booking"""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import get_current_actor
from ...config import BOOKING_RATE_LIMIT, BOOKING_RATE_WINDOW_SECONDS
from ...database import get_db
from ...rate_limiter import create_rate_limiter
from .schemas import (
    BookSlotRequest,
    BookSlotResponse,
    MonthInitRequest,
    MonthInitResponse,
    ReservationResponse,
    SlotCreate,
    SlotResponse,
    SlotToggleRequest,
    SlotUpdate,
)
from .service import BookingService, SlotService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/slots", tags=["Slots"])

booking_rate_limit = create_rate_limiter(
    limit=BOOKING_RATE_LIMIT, window_seconds=BOOKING_RATE_WINDOW_SECONDS, key_prefix="booking"
)


def get_booking_service(db: Session = Depends(get_db)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(db)


def get_slot_service(db: Session = Depends(get_db)) -> SlotService:
    """Dependency injection for SlotService"""
    return SlotService(db)


# ============================================================================
# READS
# ============================================================================


@router.get("", response_model=list[SlotResponse])
async def list_slots(
    date: Optional[date] = Query(None),
    campus: Optional[str] = Query(None),
    rangeStart: Optional[date] = Query(None),
    rangeEnd: Optional[date] = Query(None),
    availableOnly: bool = Query(False),
    service: SlotService = Depends(get_slot_service),
):
    """List slots with occupancy (slots are shared by all campuses)"""
    slots = service.list_slots(date, rangeStart, rangeEnd, availableOnly)
    return [SlotResponse.from_slot(s) for s in slots]


@router.get("/available", response_model=list[SlotResponse])
async def list_available_slots(
    date: date = Query(...),
    service: SlotService = Depends(get_slot_service),
):
    """
    Bookable slots for a date (parent-facing).
    A weekday without any slots gets its default hourly slots first.
    """
    service.ensure_default_slots(date)
    slots = service.list_slots(slot_date=date, available_only=True)
    return [SlotResponse.from_slot(s) for s in slots]


# ============================================================================
# BOOKING
# ============================================================================


@router.post("/{slot_id}/book", response_model=BookSlotResponse)
async def book_slot(
    slot_id: int,
    data: BookSlotRequest,
    _: None = Depends(booking_rate_limit),
    service: BookingService = Depends(get_booking_service),
):
    """Book a slot for an applicant (409 slot_full, 410 slot_closed, 404 not_found)"""
    reservation = service.book_by_public_id(data.publicId, slot_id)
    return BookSlotResponse(reservation=ReservationResponse.from_reservation(reservation))


# ============================================================================
# ADMINISTRATION
# ============================================================================


@router.post("/{slot_id}/open", response_model=SlotResponse)
async def toggle_slot_open(
    slot_id: int,
    data: SlotToggleRequest,
    actor: str = Depends(get_current_actor),
    service: BookingService = Depends(get_booking_service),
):
    """Open or close a slot for new bookings"""
    slot = service.toggle_open(slot_id, data.isOpen)
    return SlotResponse.from_slot(slot)


@router.post("", response_model=SlotResponse, status_code=201)
async def create_slot(
    data: SlotCreate,
    actor: str = Depends(get_current_actor),
    service: SlotService = Depends(get_slot_service),
):
    slot = service.create_slot(data.date, data.time, data.capacity, data.isOpen, data.note)
    return SlotResponse.from_slot(slot)


@router.patch("/{slot_id}", response_model=SlotResponse)
async def update_slot(
    slot_id: int,
    data: SlotUpdate,
    actor: str = Depends(get_current_actor),
    service: SlotService = Depends(get_slot_service),
):
    slot = service.update_slot(slot_id, data.capacity, data.isOpen, data.note)
    return SlotResponse.from_slot(slot)


@router.delete("/{slot_id}")
async def delete_slot(
    slot_id: int,
    actor: str = Depends(get_current_actor),
    service: SlotService = Depends(get_slot_service),
):
    service.delete_slot(slot_id)
    return {"ok": True}


@router.post("/init-month", response_model=MonthInitResponse)
async def init_month(
    data: MonthInitRequest,
    actor: str = Depends(get_current_actor),
    service: SlotService = Depends(get_slot_service),
):
    """Create the default slots for a whole month (no-op if already initialized)"""
    result = service.init_month(data.year, data.month, data.weekdaysOnly, data.capacity)
    logger.info(f"Month init {data.year}-{data.month:02d} by {actor}: {result}")
    return MonthInitResponse(**result)
