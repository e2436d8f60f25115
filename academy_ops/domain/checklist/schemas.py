"""Checklist domain schemas - Pydantic models for validation"""

from typing import Optional

from pydantic import BaseModel


class ChecklistItemUpdate(BaseModel):
    checked: bool


class TriggeredEffectResponse(BaseModel):
    kind: str
    state: str
    payload: dict = {}
    error: Optional[str] = None


class EnrollmentSummary(BaseModel):
    studentId: int
    alreadyFinalized: bool


class ChecklistUpdateResponse(BaseModel):
    applicantId: int
    stepKey: str
    checked: bool
    checklist: dict[str, bool]
    previousStage: str
    stage: str
    triggeredEffects: list[TriggeredEffectResponse]
    enrollment: Optional[EnrollmentSummary] = None

    @classmethod
    def from_result(cls, result) -> "ChecklistUpdateResponse":
        enrollment = None
        if result.enrollment:
            enrollment = EnrollmentSummary(
                studentId=result.enrollment.student.id,
                alreadyFinalized=result.enrollment.already_finalized,
            )
        return cls(
            applicantId=result.applicant_id,
            stepKey=result.step_key,
            checked=result.checked,
            checklist=result.checklist,
            previousStage=result.previous_stage,
            stage=result.stage,
            triggeredEffects=[
                TriggeredEffectResponse(kind=e.kind, state=e.state, payload=e.payload, error=e.error)
                for e in result.triggered_effects
            ],
            enrollment=enrollment,
        )


class StepResponse(BaseModel):
    key: str
    label: str
    role: str


class PhaseResponse(BaseModel):
    id: str
    title: str
    items: list[StepResponse]
