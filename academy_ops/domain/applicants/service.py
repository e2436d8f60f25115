"""Applicant service - Business logic for the admission pipeline"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...errors import InvalidTransitionError, NotFoundError, ValidationError
from ...models import Applicant
from ..checklist.repository import ChecklistRepository
from ..slots.repository import SlotRepository
from ..slots.service import BookingService
from . import status as applicant_status
from .repository import ApplicantRepository
from .schemas import ApplicantCreate

logger = logging.getLogger(__name__)


class ApplicantService:
    """Service layer for applicant business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ApplicantRepository()
        self.checklists = ChecklistRepository()
        self.slots = SlotRepository()

    def create_applicant(self, data: ApplicantCreate) -> Applicant:
        """Register a new applicant in the waiting state"""
        applicant = self.repo.create_applicant(
            self.db,
            student_name=data.studentName,
            english_name=data.englishName,
            parent_name=data.parentName,
            phone=data.phone,
            campus=data.campus,
            birth_date=data.birthDate,
            gender=data.gender,
            address=data.address,
            status=applicant_status.WAITING,
        )
        logger.info(f"New applicant {applicant.id} ({applicant.campus or 'no campus'})")
        return applicant

    def get_applicant(self, applicant_id: int) -> Applicant:
        applicant = self.repo.get_applicant(self.db, applicant_id)
        if not applicant:
            raise NotFoundError("Applicant not found")
        return applicant

    def describe(self, applicant: Applicant) -> dict:
        """Applicant plus derived stage, checklist snapshot and reservation"""
        return self._describe_many([applicant])[0]

    def pipeline(self, campus: Optional[str] = None, stage: Optional[str] = None) -> list[dict]:
        """
        Active pipeline view: applicants not yet enrolled or rejected.

        Args:
            campus: Optional campus filter ("All" means no filter)
            stage: Optional derived-stage filter
        """
        if stage and stage not in applicant_status.STATUSES:
            raise ValidationError(f"Unknown stage: {stage}")

        applicants = self.repo.get_pipeline(self.db, campus)
        entries = self._describe_many(applicants)

        if stage:
            entries = [e for e in entries if e["stage"] == stage]
        return entries

    def _describe_many(self, applicants: list[Applicant]) -> list[dict]:
        ids = [a.id for a in applicants]
        snapshots = self.checklists.get_snapshots(self.db, ids)
        reservations = self.slots.get_reservations(self.db, ids)

        entries = []
        for applicant in applicants:
            snapshot = snapshots.get(applicant.id, {})
            stage = applicant_status.derive_stage(applicant.status, snapshot)
            entries.append(
                {
                    "applicant": applicant,
                    "stage": stage,
                    "stage_label": applicant_status.STAGE_LABEL[stage],
                    "progress": applicant_status.STAGE_PROGRESS[stage],
                    "checklist": snapshot,
                    "reservation": reservations.get(applicant.id),
                }
            )
        return entries

    def transition_status(self, applicant_id: int, new_status: str, actor: str) -> Applicant:
        """
        Apply a staff-driven status change.

        Rejecting an applicant archives it and gives its slot back.

        Raises:
            InvalidTransitionError: If the state machine does not allow the move
        """
        db = self.db
        try:
            applicant = self.repo.get_applicant_for_update(db, applicant_id)
            if not applicant:
                raise NotFoundError("Applicant not found")

            current = applicant.status
            if not applicant_status.validate_status_transition(current, new_status):
                raise InvalidTransitionError(
                    f"Cannot move applicant from {current} to {new_status}"
                )

            if current != new_status:
                if new_status == applicant_status.REJECTED:
                    BookingService(db).release_in_transaction(applicant)
                    applicant.archived_at = datetime.utcnow()
                applicant.status = new_status

            db.commit()
        except Exception:
            db.rollback()
            raise

        if current != new_status:
            logger.info(f"Applicant {applicant_id} transitioned: {current} → {new_status} by {actor}")
        db.refresh(applicant)
        return applicant
