"""Pydantic models."""
from cbt.models.assessments import (
    AssessmentDetail,
    AssessmentImport,
    AssessmentSummary,
    QuestionImport,
    QuestionPayload,
    StartAttemptResponse,
)
from cbt.models.attempts import (
    AnswerPayload,
    AttemptSummary,
    QuestionOutcomePayload,
    ResultResponse,
    SubmitAttemptRequest,
)

__all__ = [
    "AnswerPayload",
    "AssessmentDetail",
    "AssessmentImport",
    "AssessmentSummary",
    "AttemptSummary",
    "QuestionImport",
    "QuestionOutcomePayload",
    "QuestionPayload",
    "ResultResponse",
    "StartAttemptResponse",
    "SubmitAttemptRequest",
]
