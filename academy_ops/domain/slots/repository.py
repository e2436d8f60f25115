"""Slot repository - Database operations for consultation slots and reservations

The occupancy primitives here are conditional UPDATE/DELETE statements whose
row count tells the caller whether the guarded state still held at write time.
They never commit; the booking engine owns the transaction.
"""

from datetime import date
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ...models_slots import ConsultationSlot, Reservation, SlotMonthInit


class SlotRepository:
    """Repository for slot and reservation database operations"""

    @staticmethod
    def get_slot(db: Session, slot_id: int, fresh: bool = False) -> Optional[ConsultationSlot]:
        """Get a slot by ID; ``fresh`` reloads it past the identity map"""
        query = db.query(ConsultationSlot)
        if fresh:
            query = query.populate_existing()
        return query.filter(ConsultationSlot.id == slot_id).first()

    @staticmethod
    def find_slot(db: Session, slot_date: date, time: str) -> Optional[ConsultationSlot]:
        return (
            db.query(ConsultationSlot)
            .filter(ConsultationSlot.date == slot_date, ConsultationSlot.time == time)
            .first()
        )

    @staticmethod
    def list_slots(
        db: Session,
        slot_date: Optional[date] = None,
        range_start: Optional[date] = None,
        range_end: Optional[date] = None,
        available_only: bool = False,
    ) -> list[ConsultationSlot]:
        """List slots ordered by date then time"""
        query = db.query(ConsultationSlot)

        if slot_date:
            query = query.filter(ConsultationSlot.date == slot_date)
        if range_start:
            query = query.filter(ConsultationSlot.date >= range_start)
        if range_end:
            query = query.filter(ConsultationSlot.date <= range_end)
        if available_only:
            query = query.filter(
                ConsultationSlot.is_open.is_(True),
                ConsultationSlot.occupied < ConsultationSlot.capacity,
            )

        return query.order_by(ConsultationSlot.date.asc(), ConsultationSlot.time.asc()).all()

    @staticmethod
    def existing_times(db: Session, range_start: date, range_end: date) -> set[tuple[date, str]]:
        rows = (
            db.query(ConsultationSlot.date, ConsultationSlot.time)
            .filter(ConsultationSlot.date >= range_start, ConsultationSlot.date <= range_end)
            .all()
        )
        return {(row[0], row[1]) for row in rows}

    @staticmethod
    def add_slot(db: Session, **slot_data) -> ConsultationSlot:
        slot = ConsultationSlot(**slot_data)
        db.add(slot)
        db.flush()
        return slot

    # Occupancy primitives
    @staticmethod
    def try_increment(db: Session, slot_id: int) -> bool:
        """Take one seat if the slot is open and not full"""
        updated = (
            db.query(ConsultationSlot)
            .filter(
                ConsultationSlot.id == slot_id,
                ConsultationSlot.is_open.is_(True),
                ConsultationSlot.occupied < ConsultationSlot.capacity,
            )
            .update(
                {
                    ConsultationSlot.occupied: ConsultationSlot.occupied + 1,
                    ConsultationSlot.updated_at: func.now(),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def decrement(db: Session, slot_id: int) -> bool:
        """Give one seat back; never drops below zero"""
        updated = (
            db.query(ConsultationSlot)
            .filter(ConsultationSlot.id == slot_id, ConsultationSlot.occupied > 0)
            .update(
                {
                    ConsultationSlot.occupied: ConsultationSlot.occupied - 1,
                    ConsultationSlot.updated_at: func.now(),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def set_capacity(db: Session, slot_id: int, capacity: int) -> bool:
        """Change capacity unless current bookings already exceed it"""
        updated = (
            db.query(ConsultationSlot)
            .filter(ConsultationSlot.id == slot_id, ConsultationSlot.occupied <= capacity)
            .update(
                {ConsultationSlot.capacity: capacity, ConsultationSlot.updated_at: func.now()},
                synchronize_session=False,
            )
        )
        return updated == 1

    # Reservations
    @staticmethod
    def get_reservation(db: Session, applicant_id: int) -> Optional[Reservation]:
        return db.query(Reservation).filter(Reservation.applicant_id == applicant_id).first()

    @staticmethod
    def get_reservations(db: Session, applicant_ids: list[int]) -> dict[int, Reservation]:
        if not applicant_ids:
            return {}
        rows = db.query(Reservation).filter(Reservation.applicant_id.in_(applicant_ids)).all()
        return {r.applicant_id: r for r in rows}

    @staticmethod
    def insert_reservation(db: Session, applicant_id: int, slot: ConsultationSlot) -> Reservation:
        """Insert the active reservation row; flush surfaces the unique violation"""
        reservation = Reservation(
            applicant_id=applicant_id, slot_id=slot.id, date=slot.date, time=slot.time
        )
        db.add(reservation)
        db.flush()
        return reservation

    @staticmethod
    def repoint_reservation(
        db: Session, applicant_id: int, old_slot_id: int, slot: ConsultationSlot
    ) -> bool:
        """Move the reservation to ``slot`` only if it still points at ``old_slot_id``"""
        updated = (
            db.query(Reservation)
            .filter(Reservation.applicant_id == applicant_id, Reservation.slot_id == old_slot_id)
            .update(
                {
                    Reservation.slot_id: slot.id,
                    Reservation.date: slot.date,
                    Reservation.time: slot.time,
                    Reservation.updated_at: func.now(),
                },
                synchronize_session=False,
            )
        )
        return updated == 1

    @staticmethod
    def delete_reservation(db: Session, applicant_id: int, slot_id: int) -> bool:
        deleted = (
            db.query(Reservation)
            .filter(Reservation.applicant_id == applicant_id, Reservation.slot_id == slot_id)
            .delete(synchronize_session=False)
        )
        return deleted == 1

    @staticmethod
    def delete_slot(db: Session, slot_id: int) -> bool:
        """Delete a slot that no reservation references"""
        deleted = (
            db.query(ConsultationSlot)
            .filter(
                ConsultationSlot.id == slot_id,
                ~ConsultationSlot.id.in_(select(Reservation.slot_id)),
            )
            .delete(synchronize_session=False)
        )
        return deleted == 1

    @staticmethod
    def delete_unreferenced_before(db: Session, before: date) -> int:
        """Delete past slots; slots still referenced by a reservation are kept"""
        return (
            db.query(ConsultationSlot)
            .filter(
                ConsultationSlot.date < before,
                ~ConsultationSlot.id.in_(select(Reservation.slot_id)),
            )
            .delete(synchronize_session=False)
        )

    # Month initialisation
    @staticmethod
    def get_month_init(db: Session, year: int, month: int) -> Optional[SlotMonthInit]:
        return (
            db.query(SlotMonthInit)
            .filter(SlotMonthInit.year == year, SlotMonthInit.month == month)
            .first()
        )

    @staticmethod
    def add_month_init(db: Session, year: int, month: int) -> SlotMonthInit:
        record = SlotMonthInit(year=year, month=month)
        db.add(record)
        db.flush()
        return record
