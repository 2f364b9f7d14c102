"""Value types shared by the session engine and its backends."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime


class AnswerKind(str, enum.Enum):
    SINGLE_CHOICE = "single-choice"
    FREE_TEXT = "free-text"
    BOOLEAN = "boolean"


class SessionState(str, enum.Enum):
    """Lifecycle state of an assessment session."""

    NOT_STARTED = "not_started"
    STARTING = "starting"
    IN_PROGRESS = "in_progress"
    TIME_EXPIRED = "time_expired"
    SUBMITTING = "submitting"
    COMPLETED = "completed"
    ERROR = "error"


@dataclass(frozen=True)
class Question:
    question_id: str
    prompt: str
    answer_kind: AnswerKind
    points: int
    options: tuple[str, ...] = ()

    @property
    def has_options(self) -> bool:
        return self.answer_kind in (AnswerKind.SINGLE_CHOICE, AnswerKind.BOOLEAN)


@dataclass(frozen=True)
class AssessmentDefinition:
    """Question set and rules for one assessment, as served at start."""

    assessment_id: str
    title: str
    questions: tuple[Question, ...]
    time_limit_seconds: int
    passing_score: float
    kind: str = "quiz"
    max_submit_attempts: int | None = None

    @property
    def total_points(self) -> int:
        return sum(question.points for question in self.questions)

    @property
    def question_count(self) -> int:
        return len(self.questions)

    def index_of(self, question_id: str) -> int:
        for index, question in enumerate(self.questions):
            if question.question_id == question_id:
                return index
        raise KeyError(question_id)


@dataclass(frozen=True)
class AttemptHandle:
    attempt_id: str
    assessment_id: str
    created_at: datetime


@dataclass(frozen=True)
class AttemptStart:
    """What the backend returns when an attempt is started."""

    attempt: AttemptHandle
    definition: AssessmentDefinition


@dataclass(frozen=True)
class AnswerRecord:
    question_id: str
    selected_option: str | None = None
    free_text: str | None = None
    seconds_spent: int = 0

    @property
    def value(self) -> str | None:
        return self.selected_option if self.selected_option is not None else self.free_text


@dataclass(frozen=True)
class QuestionOutcome:
    question_id: str
    is_correct: bool
    points_earned: int
    points_possible: int
    needs_manual_grading: bool = False
    answer: str | None = None
    correct_answer: str | None = None
    explanation: str | None = None
    seconds_spent: int = 0


@dataclass(frozen=True)
class Result:
    """Scored outcome of a submitted attempt."""

    attempt_id: str
    score: int
    total_points: int
    percentage: float
    passed: bool
    grade: str | None = None
    expired: bool = False
    breakdown: tuple[QuestionOutcome, ...] = field(default_factory=tuple)
