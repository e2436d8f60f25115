"""
Workflow automation engine

``set_checklist_item`` writes one checklist step, commits it, recomputes the
applicant's stage and plans the effects bound to the step. Finalize runs
in-process right after the checklist commit; gateway effects are handed back
as ``scheduled`` and delivered by ``TriggerRunner`` once the response is sent.
Nothing downstream of the checklist commit can undo it.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ...errors import AcademyError, NotFoundError, TriggerDispatchError, ValidationError
from ...services.gateway import WebhookGateway, get_gateway
from ..applicants import status as applicant_status
from ..applicants.repository import ApplicantRepository
from ..enrollment.service import EnrollmentService, FinalizeResult
from ..slots.repository import SlotRepository
from . import triggers
from .repository import ChecklistRepository
from .steps import STEP_ALIASES, is_known_step

logger = logging.getLogger(__name__)

# Effect states
SCHEDULED = "scheduled"
RECORDED = "recorded"
COMPLETED = "completed"
ALREADY_FINALIZED = "already_finalized"
SKIPPED = "skipped"
FAILED = "failed"


@dataclass
class TriggeredEffect:
    kind: str
    state: str
    payload: dict = field(default_factory=dict)
    error: Optional[str] = None


@dataclass
class StageTransitionResult:
    applicant_id: int
    step_key: str
    checked: bool
    changed: bool
    checklist: dict[str, bool]
    previous_stage: str
    stage: str
    triggered_effects: list[TriggeredEffect]
    enrollment: Optional[FinalizeResult] = None

    @property
    def pending_dispatch(self) -> list[TriggeredEffect]:
        return [e for e in self.triggered_effects if e.state == SCHEDULED]


class WorkflowService:
    """Checklist writes and the triggers they fire"""

    def __init__(self, db: Session):
        self.db = db
        self.checklists = ChecklistRepository()
        self.applicants = ApplicantRepository()
        self.slots = SlotRepository()

    def set_checklist_item(
        self, applicant_id: int, step_key: str, checked: bool, actor: Optional[str]
    ) -> StageTransitionResult:
        """
        Set one checklist step for an applicant.

        Gateway effects fire only when the step goes from unchecked to
        checked. Finalize runs on every checked write of the terminal step,
        so a retry reports the student created the first time. Unchecking
        clears the flag and fires nothing.

        Raises:
            ValidationError: Unknown step key
            NotFoundError: Unknown applicant
        """
        if not is_known_step(step_key):
            raise ValidationError(f"Unknown checklist step: {step_key}")
        step_key = STEP_ALIASES.get(step_key, step_key)

        applicant = self.applicants.get_applicant(self.db, applicant_id)
        if not applicant:
            raise NotFoundError("Applicant not found")

        before = self.checklists.get_snapshots(self.db, [applicant_id])[applicant_id]
        previous_stage = applicant_status.derive_stage(applicant.status, before)

        changed = self._write(applicant_id, step_key, checked, actor)

        effects: list[TriggeredEffect] = []
        enrollment = None
        if checked:
            effects, enrollment = self._fire(applicant_id, step_key, changed, actor)

        # Reload: finalize may have moved the status
        self.db.expire_all()
        applicant = self.applicants.get_applicant(self.db, applicant_id)
        snapshot = self.checklists.get_snapshots(self.db, [applicant_id])[applicant_id]
        stage = applicant_status.derive_stage(applicant.status, snapshot)

        if previous_stage != stage:
            logger.info(f"Applicant {applicant_id} stage: {previous_stage} → {stage} ({step_key})")

        return StageTransitionResult(
            applicant_id=applicant_id,
            step_key=step_key,
            checked=checked,
            changed=changed,
            checklist=snapshot,
            previous_stage=previous_stage,
            stage=stage,
            triggered_effects=effects,
            enrollment=enrollment,
        )

    def _write(self, applicant_id: int, step_key: str, checked: bool, actor: Optional[str]) -> bool:
        """Upsert and commit the checklist item, retrying once on an insert race"""
        db = self.db
        for attempt in range(2):
            try:
                _, changed = self.checklists.upsert(
                    db, applicant_id, step_key, checked, actor, datetime.utcnow()
                )
                db.commit()
                break
            except IntegrityError:
                db.rollback()
                if attempt:
                    raise
                logger.warning(f"Checklist insert race on {applicant_id}/{step_key}, retrying")
            except Exception:
                db.rollback()
                raise

        logger.info(
            f"Checklist {applicant_id}/{step_key} set to {checked} by {actor}"
            + ("" if changed else " (unchanged)")
        )
        return changed

    def _fire(
        self, applicant_id: int, step_key: str, changed: bool, actor: Optional[str]
    ) -> tuple[list[TriggeredEffect], Optional[FinalizeResult]]:
        kinds = triggers.effects_for(step_key)
        if not kinds:
            return [], None

        applicant = self.applicants.get_applicant(self.db, applicant_id)
        ctx = triggers.TriggerContext(
            applicant=applicant,
            reservation=self.slots.get_reservation(self.db, applicant_id),
            today=datetime.now().date(),
        )

        effects = []
        enrollment = None
        for kind in kinds:
            if kind == triggers.FINALIZE:
                effect, enrollment = self._finalize(applicant_id, actor)
                effects.append(effect)
            elif not changed:
                continue
            elif kind in triggers.DISPATCHED_KINDS:
                effects.append(TriggeredEffect(kind, SCHEDULED, triggers.build_payload(kind, ctx)))
            else:
                effects.append(TriggeredEffect(kind, RECORDED, triggers.build_payload(kind, ctx)))
                logger.info(f"Applicant {applicant_id}: {kind} recorded")
        return effects, enrollment

    def _finalize(
        self, applicant_id: int, actor: Optional[str]
    ) -> tuple[TriggeredEffect, Optional[FinalizeResult]]:
        payload = {"applicant_id": applicant_id}

        applicant = self.applicants.get_applicant(self.db, applicant_id)
        if applicant.status == applicant_status.REJECTED:
            logger.info(f"Finalize skipped: applicant {applicant_id} was rejected")
            return TriggeredEffect(triggers.FINALIZE, SKIPPED, payload), None

        try:
            result = EnrollmentService(self.db).finalize(applicant_id, actor)
        except AcademyError as e:
            logger.error(f"Finalize failed for applicant {applicant_id}: {e.message}")
            return TriggeredEffect(triggers.FINALIZE, FAILED, payload, error=e.message), None
        except SQLAlchemyError as e:
            logger.error(f"Finalize failed for applicant {applicant_id}: {str(e)}")
            return TriggeredEffect(triggers.FINALIZE, FAILED, payload, error="database error"), None

        payload["student_id"] = result.student.id
        state = ALREADY_FINALIZED if result.already_finalized else COMPLETED
        return TriggeredEffect(triggers.FINALIZE, state, payload), result


class TriggerRunner:
    """Delivers scheduled effects through the gateway; failures are logged, never raised"""

    def __init__(self, gateway: Optional[WebhookGateway] = None):
        self.gateway = gateway or get_gateway()

    async def run(self, effects: list[TriggeredEffect]) -> list[TriggeredEffect]:
        for effect in effects:
            try:
                await self._deliver(effect)
                effect.state = COMPLETED
            except TriggerDispatchError as e:
                effect.state = FAILED
                effect.error = e.error
                logger.error(f"Trigger dispatch failed: {e}")
        return effects

    async def _deliver(self, effect: TriggeredEffect):
        result = await self.gateway.dispatch(effect.kind, effect.payload)
        if not result.ok:
            raise TriggerDispatchError(effect.kind, result.error or "unknown error")
