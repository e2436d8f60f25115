"""Applicant repository - Database operations for applicants"""

from typing import Optional

from sqlalchemy.orm import Session

from ...models import Applicant


class ApplicantRepository:
    """Repository for applicant database operations"""

    @staticmethod
    def get_applicant(db: Session, applicant_id: int) -> Optional[Applicant]:
        return db.query(Applicant).filter(Applicant.id == applicant_id).first()

    @staticmethod
    def get_applicant_by_public_id(db: Session, public_id: str) -> Optional[Applicant]:
        return db.query(Applicant).filter(Applicant.public_id == public_id).first()

    @staticmethod
    def get_applicant_for_update(db: Session, applicant_id: int) -> Optional[Applicant]:
        """Lock the applicant row for the rest of the transaction"""
        return (
            db.query(Applicant)
            .filter(Applicant.id == applicant_id)
            .populate_existing()
            .with_for_update()
            .first()
        )

    @staticmethod
    def create_applicant(db: Session, **applicant_data) -> Applicant:
        applicant = Applicant(**applicant_data)
        db.add(applicant)
        db.commit()
        db.refresh(applicant)
        return applicant

    @staticmethod
    def get_pipeline(db: Session, campus: Optional[str] = None) -> list[Applicant]:
        """Applicants still in the active pipeline, newest first"""
        query = db.query(Applicant).filter(Applicant.archived_at.is_(None))

        if campus and campus != "All":
            query = query.filter(Applicant.campus == campus)

        return query.order_by(Applicant.created_at.desc(), Applicant.id.desc()).all()
