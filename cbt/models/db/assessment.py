"""
Assessment and AssessmentQuestion database models.

An assessment is the server-held definition a session is started from:
ordered questions with their correct answers, the time limit and the
pass threshold. Quizzes, practice tests and formal assessments share the
same table and differ only by ``kind`` and their settings.
"""

from __future__ import annotations

import enum
import json
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cbt.database import Base


class AssessmentKind(str, enum.Enum):
    """Kind of timed assessment."""

    QUIZ = "quiz"
    PRACTICE = "practice"
    ASSESSMENT = "assessment"


class QuestionType(str, enum.Enum):
    """How a question is answered."""

    SINGLE_CHOICE = "single-choice"
    FREE_TEXT = "free-text"
    BOOLEAN = "boolean"


class Assessment(Base):
    """Assessment definition."""

    __tablename__ = "assessments"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    kind: Mapped[str] = mapped_column(
        String(20), default=AssessmentKind.QUIZ.value, nullable=False
    )

    # Rules
    time_limit_seconds: Mapped[int] = mapped_column(nullable=False)
    passing_score: Mapped[int] = mapped_column(default=70, nullable=False)
    max_attempts: Mapped[int] = mapped_column(default=1, nullable=False)
    max_submit_attempts: Mapped[int] = mapped_column(default=3, nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    # Availability window
    available_from: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    available_until: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    # Relationships
    questions: Mapped[list["AssessmentQuestion"]] = relationship(
        "AssessmentQuestion",
        back_populates="assessment",
        cascade="all, delete-orphan",
        order_by="AssessmentQuestion.position",
    )

    @property
    def total_points(self) -> int:
        """Sum of question point values."""
        return sum(question.points for question in self.questions)


class AssessmentQuestion(Base):
    """
    A question within an assessment.
    Options are stored as a JSON list of labels.
    """

    __tablename__ = "assessment_questions"

    pk: Mapped[int] = mapped_column(primary_key=True)
    # Question ids are unique within their assessment only
    id: Mapped[str] = mapped_column(String(64), nullable=False)
    assessment_id: Mapped[str] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True
    )
    position: Mapped[int] = mapped_column(nullable=False)

    prompt: Mapped[str] = mapped_column(Text, nullable=False)
    question_type: Mapped[str] = mapped_column(
        String(20), default=QuestionType.SINGLE_CHOICE.value, nullable=False
    )
    options_json: Mapped[str | None] = mapped_column(Text, nullable=True)
    points: Mapped[int] = mapped_column(default=1, nullable=False)

    # Answer key (never sent to learners)
    correct_option: Mapped[str | None] = mapped_column(Text, nullable=True)
    correct_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    explanation: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("assessment_id", "id", name="uq_assessment_question"),
    )

    assessment: Mapped["Assessment"] = relationship(
        "Assessment", back_populates="questions"
    )

    @property
    def options(self) -> list[str]:
        """Parse options from JSON."""
        if not self.options_json:
            return []
        try:
            return json.loads(self.options_json)
        except (json.JSONDecodeError, TypeError):
            return []

    @options.setter
    def options(self, value: list[str] | None) -> None:
        """Serialize options to JSON."""
        self.options_json = json.dumps(value) if value else None
