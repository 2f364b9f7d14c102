"""Database models."""
from cbt.models.db.assessment import (
    Assessment,
    AssessmentKind,
    AssessmentQuestion,
    QuestionType,
)
from cbt.models.db.attempt import Attempt, AttemptAnswer, AttemptStatus, GradingStatus

__all__ = [
    "Assessment",
    "AssessmentKind",
    "AssessmentQuestion",
    "QuestionType",
    "Attempt",
    "AttemptAnswer",
    "AttemptStatus",
    "GradingStatus",
]
