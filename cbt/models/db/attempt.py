"""
Attempt and AttemptAnswer database models for assessment attempts.
"""

from __future__ import annotations

import enum
from datetime import datetime, timezone

import sqlalchemy as sa
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cbt.database import Base


class AttemptStatus(str, enum.Enum):
    """Status of an assessment attempt."""

    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    TIME_EXPIRED = "time_expired"


class GradingStatus(str, enum.Enum):
    """Whether every answer could be scored automatically."""

    AUTO_GRADED = "auto_graded"
    PENDING_MANUAL = "pending_manual"


class Attempt(Base):
    """
    Assessment attempt record.
    One row per started session; scored once on submission.
    """

    __tablename__ = "attempts"

    id: Mapped[str] = mapped_column(String(64), primary_key=True, index=True)

    # References
    assessment_id: Mapped[str] = mapped_column(
        ForeignKey("assessments.id", ondelete="CASCADE"), index=True, nullable=False
    )
    learner_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    attempt_number: Mapped[int] = mapped_column(default=1, nullable=False)

    # Timing
    started_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    submitted_at: Mapped[datetime | None] = mapped_column(
        sa.DateTime(timezone=True), nullable=True
    )
    total_seconds_spent: Mapped[int] = mapped_column(default=0, nullable=False)
    expired: Mapped[bool] = mapped_column(default=False, nullable=False)

    # Status and results
    status: Mapped[str] = mapped_column(
        String(20), default=AttemptStatus.IN_PROGRESS.value, nullable=False
    )
    grading_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    score: Mapped[int] = mapped_column(default=0, nullable=False)
    total_points: Mapped[int] = mapped_column(default=0, nullable=False)
    percentage: Mapped[int] = mapped_column(default=0, nullable=False)
    passed: Mapped[bool] = mapped_column(default=False, nullable=False)
    grade: Mapped[str | None] = mapped_column(String(4), nullable=True)
    correct_count: Mapped[int] = mapped_column(default=0, nullable=False)

    # Relationships
    answers: Mapped[list["AttemptAnswer"]] = relationship(
        "AttemptAnswer",
        back_populates="attempt",
        cascade="all, delete-orphan",
        order_by="AttemptAnswer.question_index",
    )

    @property
    def is_scored(self) -> bool:
        """Check if attempt has been submitted and scored."""
        return self.status in (
            AttemptStatus.COMPLETED.value,
            AttemptStatus.TIME_EXPIRED.value,
        )


class AttemptAnswer(Base):
    """
    Scored answer to a single question within an attempt.
    """

    __tablename__ = "attempt_answers"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    attempt_id: Mapped[str] = mapped_column(
        ForeignKey("attempts.id", ondelete="CASCADE"), nullable=False, index=True
    )

    # Question reference
    question_id: Mapped[str] = mapped_column(String(64), nullable=False)
    question_index: Mapped[int] = mapped_column(nullable=False)

    # Answer data
    selected_option: Mapped[str | None] = mapped_column(Text, nullable=True)
    free_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    seconds_spent: Mapped[int] = mapped_column(default=0, nullable=False)

    # Scoring
    is_correct: Mapped[bool] = mapped_column(default=False, nullable=False)
    points_earned: Mapped[int] = mapped_column(default=0, nullable=False)
    points_possible: Mapped[int] = mapped_column(default=0, nullable=False)
    needs_manual_grading: Mapped[bool] = mapped_column(default=False, nullable=False)

    __table_args__ = (
        UniqueConstraint("attempt_id", "question_id", name="uq_attempt_question"),
    )

    attempt: Mapped["Attempt"] = relationship("Attempt", back_populates="answers")

    @property
    def is_answered(self) -> bool:
        return self.selected_option is not None or self.free_text is not None
