"""Checklist router - onboarding checklist endpoints"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from ...auth import get_current_actor
from ...database import get_db
from .schemas import ChecklistItemUpdate, ChecklistUpdateResponse, PhaseResponse
from .service import TriggerRunner, WorkflowService
from .steps import PHASES

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Checklist"])


def get_workflow_service(db: Session = Depends(get_db)) -> WorkflowService:
    """Dependency injection for WorkflowService"""
    return WorkflowService(db)


def get_trigger_runner() -> TriggerRunner:
    return TriggerRunner()


@router.put("/applicants/{applicant_id}/checklist/{step_key}", response_model=ChecklistUpdateResponse)
async def set_checklist_item(
    applicant_id: int,
    step_key: str,
    data: ChecklistItemUpdate,
    background_tasks: BackgroundTasks,
    actor: str = Depends(get_current_actor),
    service: WorkflowService = Depends(get_workflow_service),
    runner: TriggerRunner = Depends(get_trigger_runner),
):
    """
    Check or uncheck one onboarding step.

    The checklist write is committed before any effect runs. Notification and
    calendar effects come back as "scheduled" and are delivered after the
    response is sent.
    """
    result = service.set_checklist_item(applicant_id, step_key, data.checked, actor)
    response = ChecklistUpdateResponse.from_result(result)

    pending = result.pending_dispatch
    if pending:
        background_tasks.add_task(runner.run, pending)
        logger.info(f"Scheduled {len(pending)} effect(s) for applicant {applicant_id}")

    return response


@router.get("/checklist/steps", response_model=list[PhaseResponse])
async def get_checklist_steps():
    """Seven-phase onboarding checklist catalogue"""
    return PHASES
