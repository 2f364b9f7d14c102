"""Attempt-related Pydantic models."""
from datetime import datetime

from pydantic import BaseModel, Field, model_validator


class AnswerPayload(BaseModel):
    """One answered question in a submission."""

    questionId: str = Field(..., min_length=1)
    selectedOption: str | None = None
    freeText: str | None = None
    secondsSpent: int = Field(0, ge=0)

    @model_validator(mode="after")
    def _single_value(self) -> "AnswerPayload":
        if self.selectedOption is not None and self.freeText is not None:
            raise ValueError("selectedOption and freeText are mutually exclusive")
        return self


class SubmitAttemptRequest(BaseModel):
    """Model for submitting an attempt."""

    attemptId: str = Field(..., min_length=1)
    answers: list[AnswerPayload] = Field(default_factory=list)
    totalSecondsSpent: int = Field(0, ge=0)
    expired: bool = False

    @model_validator(mode="after")
    def _unique_questions(self) -> "SubmitAttemptRequest":
        seen: set[str] = set()
        for answer in self.answers:
            if answer.questionId in seen:
                raise ValueError(f"Duplicate answer for question {answer.questionId}")
            seen.add(answer.questionId)
        return self


class QuestionOutcomePayload(BaseModel):
    """Per-question review entry in a result."""

    questionId: str
    prompt: str | None = None
    selectedOption: str | None = None
    freeText: str | None = None
    correctAnswer: str | None = None
    explanation: str | None = None
    secondsSpent: int = 0
    isCorrect: bool
    pointsEarned: int
    pointsPossible: int
    needsManualGrading: bool = False


class ResultResponse(BaseModel):
    """Model for a scored attempt."""

    attemptId: str
    assessmentId: str
    score: int
    totalPoints: int
    percentage: float
    passed: bool
    grade: str | None = None
    expired: bool = False
    gradingStatus: str | None = None
    breakdown: list[QuestionOutcomePayload] = Field(default_factory=list)


class AttemptSummary(BaseModel):
    """Entry in a learner's attempt history."""

    attemptId: str
    assessmentId: str
    title: str
    kind: str
    attemptNumber: int
    status: str
    startedAt: datetime
    submittedAt: datetime | None = None
    expired: bool = False
    score: int | None = None
    totalPoints: int
    percentage: float | None = None
    passed: bool | None = None
    grade: str | None = None
    gradingStatus: str | None = None
    totalSecondsSpent: int = 0
