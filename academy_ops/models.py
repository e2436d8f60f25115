import uuid

from sqlalchemy import (
    Boolean,
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


def generate_public_id():
    """Generate a unique public ID for secure public access"""
    return str(uuid.uuid4())


class Applicant(Base):
    """Prospective student moving through the admission pipeline"""

    __tablename__ = "applicants"

    id = Column(Integer, primary_key=True, index=True)
    public_id = Column(
        String(36), unique=True, nullable=False, index=True, default=generate_public_id
    )

    # Identity
    student_name = Column(String(120), nullable=False)
    english_name = Column(String(120), nullable=True)
    parent_name = Column(String(120), nullable=True)
    phone = Column(String(40), nullable=False)
    campus = Column(String(50), nullable=True, index=True)
    birth_date = Column(Date, nullable=True)
    gender = Column(String(20), nullable=True)
    address = Column(Text, nullable=True)

    # Status workflow: waiting → reserved → reserved_confirmed → consult_done → approved → enrolled
    # rejected is reachable from any state before enrolled
    # waiting → reserved is written by the booking engine, → enrolled by finalize
    status = Column(String(30), default="waiting", nullable=False, index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
    # Set when the applicant leaves the active pipeline (enrolled or rejected)
    archived_at = Column(DateTime, nullable=True, index=True)

    checklist_items = relationship(
        "ChecklistItem", back_populates="applicant", cascade="all, delete-orphan"
    )
    reservation = relationship("Reservation", back_populates="applicant", uselist=False)


class ChecklistItem(Base):
    """One onboarding checklist step for one applicant (last write wins)"""

    __tablename__ = "checklist_items"
    __table_args__ = (
        UniqueConstraint("applicant_id", "step_key", name="uq_checklist_applicant_step"),
    )

    id = Column(Integer, primary_key=True, index=True)
    applicant_id = Column(Integer, ForeignKey("applicants.id"), nullable=False, index=True)
    step_key = Column(String(60), nullable=False)
    checked = Column(Boolean, default=False, nullable=False)
    checked_at = Column(DateTime, nullable=True)
    checked_by = Column(String(255), nullable=True)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    applicant = relationship("Applicant", back_populates="checklist_items")
