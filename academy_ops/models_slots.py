"""
Consultation slot and reservation models
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class ConsultationSlot(Base):
    """Capacity-limited consultation / admission test slot"""

    __tablename__ = "consultation_slots"
    __table_args__ = (
        UniqueConstraint("date", "time", name="uq_slot_date_time"),
        CheckConstraint(
            "occupied >= 0 AND occupied <= capacity", name="ck_slot_occupied_within_capacity"
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    date = Column(Date, nullable=False, index=True)
    time = Column(String(5), nullable=False)  # HH:MM format
    capacity = Column(Integer, nullable=False, default=1)
    # Written only by the booking engine
    occupied = Column(Integer, nullable=False, default=0)
    # Closed slots reject new bookings but keep existing reservations
    is_open = Column(Boolean, nullable=False, default=True)
    note = Column(Text, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reservations = relationship("Reservation", back_populates="slot")


class Reservation(Base):
    """Active link between one applicant and one slot"""

    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True, index=True)
    # One active reservation per applicant
    applicant_id = Column(Integer, ForeignKey("applicants.id"), nullable=False, unique=True)
    slot_id = Column(Integer, ForeignKey("consultation_slots.id"), nullable=False, index=True)

    # Denormalized snapshot for display
    date = Column(Date, nullable=False)
    time = Column(String(5), nullable=False)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    applicant = relationship("Applicant", back_populates="reservation")
    slot = relationship("ConsultationSlot", back_populates="reservations")


class SlotMonthInit(Base):
    """Marks a month whose default slots were bulk-created"""

    __tablename__ = "slot_month_inits"
    __table_args__ = (UniqueConstraint("year", "month", name="uq_slot_month_init"),)

    id = Column(Integer, primary_key=True, index=True)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    initialized_at = Column(DateTime, server_default=func.now())
