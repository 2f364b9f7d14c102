"""Service layer for assessment attempts."""
import logging
import uuid
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session as DbSession, selectinload

from cbt.models.assessments import StartAttemptResponse
from cbt.models.attempts import (
    AttemptSummary,
    QuestionOutcomePayload,
    ResultResponse,
    SubmitAttemptRequest,
)
from cbt.models.db.assessment import Assessment, AssessmentQuestion, QuestionType
from cbt.models.db.attempt import Attempt, AttemptAnswer, AttemptStatus, GradingStatus
from cbt.services.assessment_service import (
    count_attempts,
    get_assessment,
    question_payloads,
)
from cbt.services.scoring import letter_grade, percentage_of, score_answer
from cbt.utils import api_error, ensure_utc, utc_now

logger = logging.getLogger(__name__)


def check_availability(assessment: Assessment, now: datetime | None = None) -> None:
    """Raise 409 when the assessment is outside its availability window."""
    now = now or utc_now()
    available_from = ensure_utc(assessment.available_from)
    available_until = ensure_utc(assessment.available_until)
    if available_from is not None and now < available_from:
        raise api_error(409, "not_yet_available", "Assessment is not yet available")
    if available_until is not None and now > available_until:
        raise api_error(409, "not_yet_available", "Assessment is no longer available")


def start_attempt(
    db: DbSession,
    assessment_id: str,
    learner_id: str,
) -> StartAttemptResponse:
    """
    Start a new attempt and return the assessment as the learner sees it.

    Every call creates a new attempt; there is no resume.
    """
    assessment = get_assessment(db, assessment_id)
    check_availability(assessment)

    if not assessment.questions or assessment.total_points <= 0:
        raise api_error(422, "invalid_assessment", "Assessment has no scorable questions")

    used = count_attempts(db, assessment_id, learner_id)
    if used >= assessment.max_attempts:
        raise api_error(409, "attempts_exhausted", "Maximum attempts reached")

    attempt = Attempt(
        id=uuid.uuid4().hex,
        assessment_id=assessment_id,
        learner_id=learner_id,
        attempt_number=used + 1,
        total_points=assessment.total_points,
        status=AttemptStatus.IN_PROGRESS.value,
    )
    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    logger.info(
        "Learner %s started attempt %s (#%s) of %s",
        learner_id,
        attempt.id,
        attempt.attempt_number,
        assessment_id,
    )

    return StartAttemptResponse(
        attemptId=attempt.id,
        assessmentId=assessment.id,
        title=assessment.title,
        kind=assessment.kind,
        createdAt=ensure_utc(attempt.started_at),
        timeLimitSeconds=assessment.time_limit_seconds,
        passingScore=assessment.passing_score,
        maxSubmitAttempts=assessment.max_submit_attempts,
        questions=question_payloads(assessment),
    )


def get_attempt(
    db: DbSession, assessment_id: str, attempt_id: str, learner_id: str
) -> Attempt:
    """Get the learner's attempt with answers loaded, or raise 404."""
    attempt = db.execute(
        select(Attempt)
        .options(selectinload(Attempt.answers))
        .where(Attempt.id == attempt_id)
    ).scalar_one_or_none()
    if (
        attempt is None
        or attempt.assessment_id != assessment_id
        or attempt.learner_id != learner_id
    ):
        raise api_error(404, "attempt_not_found", "Assessment attempt not found")
    return attempt


def submit_attempt(
    db: DbSession,
    assessment_id: str,
    learner_id: str,
    payload: SubmitAttemptRequest,
) -> ResultResponse:
    """
    Score a submission and close the attempt.

    Submitting an attempt that was already scored returns the stored result
    unchanged, so a retried request can never score twice.
    """
    assessment = get_assessment(db, assessment_id)
    attempt = get_attempt(db, assessment_id, payload.attemptId, learner_id)

    if attempt.is_scored:
        logger.info("Attempt %s already scored; returning stored result", attempt.id)
        return build_result(attempt, assessment)
    if attempt.status != AttemptStatus.IN_PROGRESS.value:
        raise api_error(409, "attempt_closed", "Assessment attempt is not in progress")

    questions = {question.id: question for question in assessment.questions}
    answers = {}
    for answer in payload.answers:
        question = questions.get(answer.questionId)
        if question is None:
            raise api_error(
                422, "invalid_answer", f"Unknown question {answer.questionId}"
            )
        if question.question_type == QuestionType.FREE_TEXT.value:
            if answer.selectedOption is not None:
                raise api_error(
                    422, "invalid_answer", f"Question {question.id} expects free text"
                )
        elif answer.freeText is not None or (
            answer.selectedOption is not None
            and answer.selectedOption not in question.options
        ):
            raise api_error(
                422, "invalid_answer", f"Invalid option for question {question.id}"
            )
        answers[answer.questionId] = answer

    score = 0
    correct_count = 0
    needs_manual = False
    for index, question in enumerate(assessment.questions):
        answer = answers.get(question.id)
        selected_option = answer.selectedOption if answer else None
        free_text = answer.freeText if answer else None
        scored = score_answer(question, selected_option, free_text)
        score += scored.points_earned
        correct_count += int(scored.is_correct)
        needs_manual = needs_manual or scored.needs_manual_grading
        attempt.answers.append(
            AttemptAnswer(
                question_id=question.id,
                question_index=index,
                selected_option=selected_option,
                free_text=free_text,
                seconds_spent=answer.secondsSpent if answer else 0,
                is_correct=scored.is_correct,
                points_earned=scored.points_earned,
                points_possible=scored.points_possible,
                needs_manual_grading=scored.needs_manual_grading,
            )
        )

    percentage = percentage_of(score, assessment.total_points)
    attempt.status = (
        AttemptStatus.TIME_EXPIRED.value if payload.expired else AttemptStatus.COMPLETED.value
    )
    attempt.submitted_at = utc_now()
    attempt.expired = payload.expired
    attempt.total_seconds_spent = payload.totalSecondsSpent
    attempt.total_points = assessment.total_points
    attempt.score = score
    attempt.correct_count = correct_count
    attempt.percentage = percentage
    attempt.passed = percentage >= assessment.passing_score
    attempt.grade = letter_grade(percentage)
    attempt.grading_status = (
        GradingStatus.PENDING_MANUAL.value if needs_manual else GradingStatus.AUTO_GRADED.value
    )

    db.commit()
    db.refresh(attempt)
    logger.info(
        "Attempt %s scored %s/%s (%s%%, expired=%s)",
        attempt.id,
        score,
        assessment.total_points,
        percentage,
        payload.expired,
    )
    return build_result(attempt, assessment)


def get_results(
    db: DbSession, assessment_id: str, attempt_id: str, learner_id: str
) -> ResultResponse:
    """Get the result of a scored attempt with the per-question review."""
    attempt = get_attempt(db, assessment_id, attempt_id, learner_id)
    if not attempt.is_scored:
        raise api_error(409, "attempt_not_scored", "Assessment attempt has not been submitted")
    # Results stay readable after an assessment is deactivated
    assessment = db.get(Assessment, assessment_id)
    return build_result(attempt, assessment)


def list_attempts(db: DbSession, learner_id: str) -> list[AttemptSummary]:
    """The learner's attempts across all assessments, newest first."""
    rows = db.execute(
        select(Attempt, Assessment)
        .join(Assessment, Attempt.assessment_id == Assessment.id)
        .where(Attempt.learner_id == learner_id)
        .order_by(Attempt.started_at.desc(), Attempt.attempt_number.desc())
    ).all()
    return [
        AttemptSummary(
            attemptId=attempt.id,
            assessmentId=attempt.assessment_id,
            title=assessment.title,
            kind=assessment.kind,
            attemptNumber=attempt.attempt_number,
            status=attempt.status,
            startedAt=ensure_utc(attempt.started_at),
            submittedAt=ensure_utc(attempt.submitted_at),
            expired=attempt.expired,
            score=attempt.score if attempt.is_scored else None,
            totalPoints=attempt.total_points,
            percentage=attempt.percentage if attempt.is_scored else None,
            passed=attempt.passed if attempt.is_scored else None,
            grade=attempt.grade,
            gradingStatus=attempt.grading_status,
            totalSecondsSpent=attempt.total_seconds_spent,
        )
        for attempt, assessment in rows
    ]


def _correct_answer(question: AssessmentQuestion) -> str | None:
    if question.question_type == QuestionType.FREE_TEXT.value:
        return question.correct_text
    return question.correct_option


def build_result(attempt: Attempt, assessment: Assessment | None = None) -> ResultResponse:
    questions = {q.id: q for q in assessment.questions} if assessment else {}
    breakdown = []
    for answer in attempt.answers:
        question = questions.get(answer.question_id)
        breakdown.append(
            QuestionOutcomePayload(
                questionId=answer.question_id,
                prompt=question.prompt if question else None,
                selectedOption=answer.selected_option,
                freeText=answer.free_text,
                correctAnswer=_correct_answer(question) if question else None,
                explanation=question.explanation if question else None,
                secondsSpent=answer.seconds_spent,
                isCorrect=answer.is_correct,
                pointsEarned=answer.points_earned,
                pointsPossible=answer.points_possible,
                needsManualGrading=answer.needs_manual_grading,
            )
        )
    return ResultResponse(
        attemptId=attempt.id,
        assessmentId=attempt.assessment_id,
        score=attempt.score,
        totalPoints=attempt.total_points,
        percentage=attempt.percentage,
        passed=attempt.passed,
        grade=attempt.grade,
        expired=attempt.expired,
        gradingStatus=attempt.grading_status,
        breakdown=breakdown,
    )
