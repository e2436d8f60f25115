"""Checklist repository - Database operations for onboarding checklist items"""

from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from ...models import ChecklistItem


class ChecklistRepository:
    """Repository for checklist item database operations"""

    @staticmethod
    def get_item(db: Session, applicant_id: int, step_key: str) -> Optional[ChecklistItem]:
        return (
            db.query(ChecklistItem)
            .filter(ChecklistItem.applicant_id == applicant_id, ChecklistItem.step_key == step_key)
            .first()
        )

    @staticmethod
    def get_snapshots(db: Session, applicant_ids: list[int]) -> dict[int, dict[str, bool]]:
        """step_key → checked for many applicants in one query"""
        snapshots: dict[int, dict[str, bool]] = {aid: {} for aid in applicant_ids}
        if not applicant_ids:
            return snapshots

        rows = (
            db.query(ChecklistItem.applicant_id, ChecklistItem.step_key, ChecklistItem.checked)
            .filter(ChecklistItem.applicant_id.in_(applicant_ids))
            .all()
        )
        for applicant_id, step_key, checked in rows:
            snapshots[applicant_id][step_key] = bool(checked)
        return snapshots

    @staticmethod
    def upsert(
        db: Session,
        applicant_id: int,
        step_key: str,
        checked: bool,
        actor: Optional[str],
        at: datetime,
    ) -> tuple[ChecklistItem, bool]:
        """
        Write one checklist item (last write wins). Does not commit.

        Returns:
            Tuple of (item, changed) where changed is False when the stored
            value already matched
        """
        item = ChecklistRepository.get_item(db, applicant_id, step_key)

        if item is None:
            item = ChecklistItem(applicant_id=applicant_id, step_key=step_key, checked=False)
            db.add(item)
        elif bool(item.checked) == checked:
            return item, False

        item.checked = checked
        item.checked_at = at if checked else None
        item.checked_by = actor if checked else None
        db.flush()
        return item, True
