"""Service layer for assessment definitions."""
import uuid

from sqlalchemy import func, select
from sqlalchemy.orm import Session as DbSession, selectinload

from cbt.config import DEFAULT_MAX_ATTEMPTS, DEFAULT_PASSING_SCORE, MAX_SUBMIT_ATTEMPTS
from cbt.models.assessments import (
    AssessmentDetail,
    AssessmentImport,
    AssessmentSummary,
    QuestionPayload,
)
from cbt.models.db.assessment import (
    Assessment,
    AssessmentKind,
    AssessmentQuestion,
    QuestionType,
)
from cbt.models.db.attempt import Attempt
from cbt.utils import api_error

BOOLEAN_OPTIONS = ["True", "False"]


def get_assessment(db: DbSession, assessment_id: str) -> Assessment:
    """Get an active assessment with its questions, or raise 404."""
    assessment = db.execute(
        select(Assessment)
        .options(selectinload(Assessment.questions))
        .where(Assessment.id == assessment_id)
    ).scalar_one_or_none()
    if assessment is None or not assessment.is_active:
        raise api_error(404, "not_found", "Assessment not found")
    return assessment


def list_assessments(db: DbSession, learner_id: str) -> list[AssessmentSummary]:
    """List active assessments with the learner's attempt usage."""
    assessments = db.execute(
        select(Assessment)
        .options(selectinload(Assessment.questions))
        .where(Assessment.is_active.is_(True))
        .order_by(Assessment.created_at)
    ).scalars().all()
    return [_summary(db, assessment, learner_id) for assessment in assessments]


def count_attempts(db: DbSession, assessment_id: str, learner_id: str) -> int:
    """Count the learner's attempts; every started attempt uses up the allowance."""
    query = select(func.count(Attempt.id)).where(
        Attempt.assessment_id == assessment_id,
        Attempt.learner_id == learner_id,
    )
    return db.execute(query).scalar() or 0


def question_payloads(assessment: Assessment) -> list[QuestionPayload]:
    """Questions as served to learners, without the answer key."""
    return [
        QuestionPayload(
            questionId=question.id,
            prompt=question.prompt,
            answerKind=question.question_type,
            options=question.options,
            points=question.points,
        )
        for question in assessment.questions
    ]


def assessment_detail(
    db: DbSession, assessment: Assessment, learner_id: str
) -> AssessmentDetail:
    summary = _summary(db, assessment, learner_id)
    return AssessmentDetail(
        **summary.model_dump(),
        description=assessment.description,
        totalPoints=assessment.total_points,
        availableFrom=assessment.available_from,
        availableUntil=assessment.available_until,
        questions=question_payloads(assessment),
    )


def _summary(db: DbSession, assessment: Assessment, learner_id: str) -> AssessmentSummary:
    used = count_attempts(db, assessment.id, learner_id)
    return AssessmentSummary(
        assessmentId=assessment.id,
        title=assessment.title,
        kind=assessment.kind,
        questionCount=len(assessment.questions),
        timeLimitSeconds=assessment.time_limit_seconds,
        passingScore=assessment.passing_score,
        maxAttempts=assessment.max_attempts,
        attemptsUsed=used,
        canTake=used < assessment.max_attempts,
    )


def import_assessment(db: DbSession, payload: AssessmentImport) -> Assessment:
    """
    Create or replace an assessment from an imported definition.

    Raises ValueError when a question's answer key does not fit its type.
    """
    kind = AssessmentKind(payload.kind)
    assessment_id = payload.id or uuid.uuid4().hex

    existing = db.get(Assessment, assessment_id)
    if existing is not None:
        db.delete(existing)
        db.flush()

    assessment = Assessment(
        id=assessment_id,
        title=payload.title,
        description=payload.description,
        kind=kind.value,
        time_limit_seconds=payload.timeLimitSeconds,
        passing_score=(
            payload.passingScore
            if payload.passingScore is not None
            else DEFAULT_PASSING_SCORE
        ),
        max_attempts=payload.maxAttempts or DEFAULT_MAX_ATTEMPTS,
        max_submit_attempts=payload.maxSubmitAttempts or MAX_SUBMIT_ATTEMPTS,
        available_from=payload.availableFrom,
        available_until=payload.availableUntil,
    )

    seen: set[str] = set()
    for position, item in enumerate(payload.questions):
        question_type = QuestionType(item.type)
        question_id = item.id or f"{assessment_id}-q{position + 1}"
        if question_id in seen:
            raise ValueError(f"Duplicate question id {question_id}")
        seen.add(question_id)

        question = AssessmentQuestion(
            id=question_id,
            position=position,
            prompt=item.prompt,
            question_type=question_type.value,
            points=item.points,
            explanation=item.explanation,
        )
        if question_type is QuestionType.FREE_TEXT:
            question.correct_text = item.correct
        else:
            options = item.options or (
                BOOLEAN_OPTIONS if question_type is QuestionType.BOOLEAN else []
            )
            if not options:
                raise ValueError(f"Question {question_id} has no options")
            if item.correct is not None and item.correct not in options:
                raise ValueError(
                    f"Correct answer {item.correct!r} is not an option of {question_id}"
                )
            question.options = options
            question.correct_option = item.correct
        assessment.questions.append(question)

    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    return assessment
