"""Slot services - booking engine and slot administration

The booking engine is the only writer of ``ConsultationSlot.occupied``. Each
mutation runs in one transaction: the seat is taken with a conditional UPDATE
(re-checked at write time, so two requests for the last seat cannot both
win), the previous reservation is repointed under its own conditional UPDATE,
and nothing is committed unless every step succeeded.
"""

import calendar
import logging
from datetime import date
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ...config import DEFAULT_SLOT_CAPACITY, DEFAULT_SLOT_TIMES, MONTH_INIT_SLOT_CAPACITY
from ...errors import (
    ConflictError,
    DuplicateReservationError,
    NotFoundError,
    SlotClosedError,
    SlotFullError,
    ValidationError,
)
from ...models import Applicant
from ...models_slots import ConsultationSlot, Reservation
from ..applicants import status as applicant_status
from ..applicants.repository import ApplicantRepository
from .repository import SlotRepository

logger = logging.getLogger(__name__)


class BookingService:
    """Booking engine: book, release and open/close consultation slots"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SlotRepository()
        self.applicants = ApplicantRepository()

    def book(self, applicant_id: int, slot_id: int) -> Reservation:
        """
        Reserve ``slot_id`` for an applicant.

        A previous reservation on another slot is superseded and that slot's
        seat is given back in the same transaction. Booking the slot the
        applicant already holds returns the existing reservation.

        Raises:
            NotFoundError: Unknown applicant or slot
            ValidationError: Applicant already left the pipeline
            SlotClosedError: Slot is closed for booking
            SlotFullError: No seat left at commit time
            DuplicateReservationError: A concurrent booking for the same applicant won
        """
        db = self.db
        try:
            applicant = self.applicants.get_applicant_for_update(db, applicant_id)
            if not applicant:
                raise NotFoundError("Applicant not found")
            if applicant.archived_at or applicant.status in applicant_status.CLOSED_STATUSES:
                raise ValidationError(
                    f"Applicant {applicant_id} is {applicant.status} and cannot book a slot"
                )

            slot = self.repo.get_slot(db, slot_id)
            if not slot:
                raise NotFoundError("Slot not found")

            current = self.repo.get_reservation(db, applicant_id)
            if current and current.slot_id == slot_id:
                db.commit()
                logger.info(f"Applicant {applicant_id} already holds slot {slot_id}")
                return current

            if not self.repo.try_increment(db, slot_id):
                self._raise_unavailable(slot_id)

            if current:
                old_slot_id = current.slot_id
                if not self.repo.repoint_reservation(db, applicant_id, old_slot_id, slot):
                    raise DuplicateReservationError(
                        "Reservation changed by a concurrent request, please retry"
                    )
                self.repo.decrement(db, old_slot_id)
                reservation = current
            else:
                reservation = self.repo.insert_reservation(db, applicant_id, slot)
                old_slot_id = None

            if applicant.status == applicant_status.WAITING:
                applicant.status = applicant_status.RESERVED

            db.commit()
        except IntegrityError as e:
            db.rollback()
            logger.warning(f"Duplicate active reservation for applicant {applicant_id}: {e}")
            raise DuplicateReservationError(
                "Applicant already has an active reservation, please retry"
            ) from e
        except Exception:
            db.rollback()
            raise

        if old_slot_id:
            logger.info(
                f"Applicant {applicant_id} moved reservation: slot {old_slot_id} → slot {slot_id}"
            )
        else:
            logger.info(f"Applicant {applicant_id} booked slot {slot_id}")

        db.refresh(reservation)
        return reservation

    def book_by_public_id(self, public_id: str, slot_id: int) -> Reservation:
        """
        Public booking entry point: the applicant is named by the public id
        handed out at signup, never by its row id.

        Raises:
            NotFoundError: Unknown public id (plus everything ``book`` raises)
        """
        applicant = self.applicants.get_applicant_by_public_id(self.db, public_id)
        if not applicant:
            raise NotFoundError("Applicant not found")
        return self.book(applicant.id, slot_id)

    def _raise_unavailable(self, slot_id: int):
        """Explain why the conditional seat update matched no row"""
        slot = self.repo.get_slot(self.db, slot_id, fresh=True)
        if not slot:
            raise NotFoundError("Slot not found")
        if not slot.is_open:
            logger.warning(f"Booking rejected: slot {slot_id} is closed")
            raise SlotClosedError("Slot is closed for booking")
        logger.warning(f"Booking rejected: slot {slot_id} is full ({slot.occupied}/{slot.capacity})")
        raise SlotFullError("Slot is full")

    def release(self, applicant_id: int) -> bool:
        """
        Release the applicant's active reservation.

        Idempotent: returns False when there is nothing to release.
        """
        db = self.db
        try:
            applicant = self.applicants.get_applicant_for_update(db, applicant_id)
            if not applicant:
                raise NotFoundError("Applicant not found")

            released = self.release_in_transaction(applicant)
            db.commit()
        except Exception:
            db.rollback()
            raise

        return released

    def release_in_transaction(self, applicant: Applicant) -> bool:
        """Release without committing; the caller owns the transaction"""
        current = self.repo.get_reservation(self.db, applicant.id)
        if not current:
            logger.debug(f"No reservation to release for applicant {applicant.id}")
            return False

        slot_id = current.slot_id
        if not self.repo.delete_reservation(self.db, applicant.id, slot_id):
            # Released (or moved) by a concurrent request
            return False

        self.repo.decrement(self.db, slot_id)
        if applicant.status in (applicant_status.RESERVED, applicant_status.RESERVED_CONFIRMED):
            applicant.status = applicant_status.WAITING

        logger.info(f"Released slot {slot_id} held by applicant {applicant.id}")
        return True

    def toggle_open(self, slot_id: int, is_open: bool) -> ConsultationSlot:
        """Open or close a slot; existing reservations are kept"""
        db = self.db
        try:
            slot = self.repo.get_slot(db, slot_id)
            if not slot:
                raise NotFoundError("Slot not found")

            slot.is_open = is_open
            db.commit()
        except Exception:
            db.rollback()
            raise

        db.refresh(slot)
        logger.info(f"Slot {slot_id} {'opened' if is_open else 'closed'}")
        return slot

    def get_reservation(self, applicant_id: int) -> Optional[Reservation]:
        return self.repo.get_reservation(self.db, applicant_id)


class SlotService:
    """Slot administration: listing, manual CRUD and bulk generation"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = SlotRepository()

    def get_slot(self, slot_id: int) -> ConsultationSlot:
        slot = self.repo.get_slot(self.db, slot_id)
        if not slot:
            raise NotFoundError("Slot not found")
        return slot

    def list_slots(
        self,
        slot_date: Optional[date] = None,
        range_start: Optional[date] = None,
        range_end: Optional[date] = None,
        available_only: bool = False,
    ) -> list[ConsultationSlot]:
        if range_start and range_end and range_start > range_end:
            raise ValidationError("rangeStart must not be after rangeEnd")
        return self.repo.list_slots(self.db, slot_date, range_start, range_end, available_only)

    def create_slot(
        self,
        slot_date: date,
        time: str,
        capacity: int,
        is_open: bool = True,
        note: Optional[str] = None,
    ) -> ConsultationSlot:
        if self.repo.find_slot(self.db, slot_date, time):
            raise ConflictError(f"A slot already exists on {slot_date} at {time}")

        try:
            slot = self.repo.add_slot(
                self.db,
                date=slot_date,
                time=time,
                capacity=capacity,
                occupied=0,
                is_open=is_open,
                note=note,
            )
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError(f"A slot already exists on {slot_date} at {time}") from e

        self.db.refresh(slot)
        logger.info(f"Created slot {slot.id} on {slot_date} at {time} (capacity {capacity})")
        return slot

    def update_slot(
        self,
        slot_id: int,
        capacity: Optional[int] = None,
        is_open: Optional[bool] = None,
        note: Optional[str] = None,
    ) -> ConsultationSlot:
        """Update slot settings; occupancy is never written here"""
        slot = self.get_slot(slot_id)

        try:
            if capacity is not None and not self.repo.set_capacity(self.db, slot_id, capacity):
                raise ConflictError(
                    f"Capacity {capacity} is below the {slot.occupied} booking(s) already held"
                )
            if is_open is not None:
                slot.is_open = is_open
            if note is not None:
                slot.note = note
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(slot)
        return slot

    def delete_slot(self, slot_id: int) -> None:
        self.get_slot(slot_id)

        try:
            deleted = self.repo.delete_slot(self.db, slot_id)
            if not deleted:
                raise ConflictError("Slot has reservations and cannot be deleted")
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Slot has reservations and cannot be deleted") from e
        except Exception:
            self.db.rollback()
            raise

        logger.info(f"Deleted slot {slot_id}")

    def ensure_default_slots(self, slot_date: date) -> list[ConsultationSlot]:
        """
        Make sure a weekday has its default hourly slots.

        Only a date with no slots at all is filled; weekends are left empty.
        Returns every slot on that date.
        """
        existing = self.repo.list_slots(self.db, slot_date=slot_date)
        if existing or slot_date.weekday() >= 5:
            return existing

        try:
            for time in DEFAULT_SLOT_TIMES:
                self.repo.add_slot(
                    self.db,
                    date=slot_date,
                    time=time,
                    capacity=DEFAULT_SLOT_CAPACITY,
                    occupied=0,
                    is_open=True,
                )
            self.db.commit()
            logger.info(f"Created {len(DEFAULT_SLOT_TIMES)} default slots for {slot_date}")
        except IntegrityError:
            # Another request filled the same date first
            self.db.rollback()
            logger.info(f"Default slots for {slot_date} were created concurrently")

        return self.repo.list_slots(self.db, slot_date=slot_date)

    def init_month(
        self,
        year: int,
        month: int,
        weekdays_only: bool = True,
        capacity: Optional[int] = None,
    ) -> dict:
        """
        Bulk-create the default slots for every (week)day of a month.

        Returns:
            dict: ``initialized`` (True when the month had already been set up)
            and ``created`` (number of slots added by this call)
        """
        if not 1 <= month <= 12:
            raise ValidationError("month must be between 1 and 12")
        capacity = capacity or MONTH_INIT_SLOT_CAPACITY

        if self.repo.get_month_init(self.db, year, month):
            return {"initialized": True, "created": 0}

        last_day = calendar.monthrange(year, month)[1]
        start, end = date(year, month, 1), date(year, month, last_day)
        existing = self.repo.existing_times(self.db, start, end)

        created = 0
        try:
            for day in range(1, last_day + 1):
                current = date(year, month, day)
                if weekdays_only and current.weekday() >= 5:
                    continue
                for time in DEFAULT_SLOT_TIMES:
                    if (current, time) in existing:
                        continue
                    self.repo.add_slot(
                        self.db,
                        date=current,
                        time=time,
                        capacity=capacity,
                        occupied=0,
                        is_open=True,
                    )
                    created += 1

            self.repo.add_month_init(self.db, year, month)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info(f"Month {year}-{month:02d} was initialized concurrently")
            return {"initialized": True, "created": 0}

        logger.info(f"Initialized {year}-{month:02d}: created {created} slots")
        return {"initialized": False, "created": created}

    def cleanup_past_slots(self, today: Optional[date] = None) -> int:
        """Delete slots dated before today that no reservation references"""
        today = today or date.today()
        try:
            deleted = self.repo.delete_unreferenced_before(self.db, today)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        if deleted:
            logger.info(f"Cleaned up {deleted} past consultation slot(s) before {today}")
        return deleted
