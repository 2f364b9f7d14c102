"""Assessment-related Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, Field

from cbt.models.db.assessment import AssessmentKind, QuestionType


class QuestionPayload(BaseModel):
    """Question as shown to a learner (no answer key)."""

    questionId: str
    prompt: str
    answerKind: QuestionType
    options: list[str] = Field(default_factory=list)
    points: int = Field(..., gt=0)


class AssessmentSummary(BaseModel):
    """Assessment listing entry with the learner's attempt usage."""

    assessmentId: str
    title: str
    kind: str
    questionCount: int
    timeLimitSeconds: int
    passingScore: int
    maxAttempts: int
    attemptsUsed: int
    canTake: bool


class AssessmentDetail(AssessmentSummary):
    """Assessment definition without correct answers."""

    description: str | None = None
    totalPoints: int
    availableFrom: datetime | None = None
    availableUntil: datetime | None = None
    questions: list[QuestionPayload] = Field(default_factory=list)


class StartAttemptResponse(BaseModel):
    """Model for a started attempt."""

    attemptId: str
    assessmentId: str
    title: str
    kind: str
    createdAt: datetime
    timeLimitSeconds: int
    passingScore: int
    maxSubmitAttempts: int
    questions: list[QuestionPayload]


class QuestionImport(BaseModel):
    """Question entry in an assessment definition file."""

    id: str | None = None
    prompt: str = Field(..., min_length=1)
    type: QuestionType = QuestionType.SINGLE_CHOICE
    options: list[str] = Field(default_factory=list)
    correct: str | None = None
    explanation: str | None = None
    points: int = Field(1, gt=0)


class AssessmentImport(BaseModel):
    """Assessment definition file as accepted by the import command."""

    id: str | None = None
    title: str = Field(..., min_length=1)
    description: str | None = None
    kind: AssessmentKind = AssessmentKind.QUIZ
    timeLimitSeconds: int = Field(..., gt=0)
    passingScore: int | None = Field(None, ge=0, le=100)
    maxAttempts: int | None = Field(None, gt=0)
    maxSubmitAttempts: int | None = Field(None, gt=0)
    availableFrom: datetime | None = None
    availableUntil: datetime | None = None
    questions: list[QuestionImport] = Field(..., min_length=1)
