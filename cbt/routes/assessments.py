"""Assessment and attempt endpoints."""
from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session as DbSession

from cbt.database import get_db
from cbt.dependencies import get_learner_id
from cbt.models import (
    AssessmentDetail,
    AssessmentSummary,
    AttemptSummary,
    ResultResponse,
    StartAttemptResponse,
    SubmitAttemptRequest,
)
from cbt.services import assessment_service, attempt_service
from cbt.utils import validate_id

router = APIRouter(prefix="/api/assessments", tags=["assessments"])

Learner = Annotated[str, Depends(get_learner_id)]
Db = Annotated[DbSession, Depends(get_db)]


@router.get("", response_model=list[AssessmentSummary])
def list_assessments(learner_id: Learner, db: Db) -> list[AssessmentSummary]:
    """List active assessments."""
    return assessment_service.list_assessments(db, learner_id)


@router.get("/attempts", response_model=list[AttemptSummary])
def list_attempts(learner_id: Learner, db: Db) -> list[AttemptSummary]:
    """List the learner's attempts, newest first."""
    return attempt_service.list_attempts(db, learner_id)


@router.get("/{assessment_id}", response_model=AssessmentDetail)
def get_assessment(assessment_id: str, learner_id: Learner, db: Db) -> AssessmentDetail:
    """Get an assessment without its answer key."""
    assessment_id = validate_id("assessmentId", assessment_id)
    assessment = assessment_service.get_assessment(db, assessment_id)
    return assessment_service.assessment_detail(db, assessment, learner_id)


@router.post("/{assessment_id}/start", response_model=StartAttemptResponse)
def start_attempt(
    assessment_id: str, learner_id: Learner, db: Db
) -> StartAttemptResponse:
    """Start a new attempt."""
    assessment_id = validate_id("assessmentId", assessment_id)
    return attempt_service.start_attempt(db, assessment_id, learner_id)


@router.post("/{assessment_id}/submit", response_model=ResultResponse)
def submit_attempt(
    assessment_id: str,
    payload: SubmitAttemptRequest,
    learner_id: Learner,
    db: Db,
) -> ResultResponse:
    """Submit answers and score the attempt."""
    assessment_id = validate_id("assessmentId", assessment_id)
    validate_id("attemptId", payload.attemptId)
    return attempt_service.submit_attempt(db, assessment_id, learner_id, payload)


@router.get("/{assessment_id}/results/{attempt_id}", response_model=ResultResponse)
def get_results(
    assessment_id: str, attempt_id: str, learner_id: Learner, db: Db
) -> ResultResponse:
    """Get the result of a submitted attempt."""
    assessment_id = validate_id("assessmentId", assessment_id)
    attempt_id = validate_id("attemptId", attempt_id)
    return attempt_service.get_results(db, assessment_id, attempt_id, learner_id)
