"""
Enrolled student models and the leave / withdrawal review trail
"""

from sqlalchemy import Column, Date, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class EnrolledStudent(Base):
    """Student record created when an applicant is finalized"""

    __tablename__ = "enrolled_students"

    id = Column(Integer, primary_key=True, index=True)
    # Both unique: a duplicate finalize hits one of them and resolves to the existing row
    applicant_id = Column(Integer, ForeignKey("applicants.id"), nullable=True, unique=True)
    natural_key = Column(String(255), nullable=False, unique=True)

    name = Column(String(120), nullable=False)
    english_name = Column(String(120), nullable=True)
    birth_date = Column(Date, nullable=True)
    phone = Column(String(40), nullable=False)
    parent_name = Column(String(120), nullable=True)
    campus = Column(String(50), nullable=True, index=True)
    class_name = Column(String(120), nullable=False, default="unassigned")
    address = Column(Text, nullable=True)

    # Status workflow: active → on-leave-review → on-leave → active
    #                  active → withdrawal-review → withdrawn
    # Review states only reach their terminal state through an explicit confirm
    status = Column(String(30), nullable=False, default="active", index=True)

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    reviews = relationship(
        "StudentStatusReview",
        back_populates="student",
        order_by="StudentStatusReview.id",
        cascade="all, delete-orphan",
    )


class StudentStatusReview(Base):
    """Staff-entered leave or withdrawal review for an enrolled student"""

    __tablename__ = "student_status_reviews"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("enrolled_students.id"), nullable=False, index=True)

    kind = Column(String(20), nullable=False)  # leave, withdrawal
    reason = Column(Text, nullable=True)
    effective_date = Column(Date, nullable=True)
    refund_option = Column(String(50), nullable=True)  # none, prorated, full

    state = Column(String(20), nullable=False, default="open")  # open, confirmed, cancelled

    opened_by = Column(String(255), nullable=True)
    opened_at = Column(DateTime, server_default=func.now())
    resolved_by = Column(String(255), nullable=True)
    resolved_at = Column(DateTime, nullable=True)

    student = relationship("EnrolledStudent", back_populates="reviews")
