"""Conversions between wire models and engine value types."""
from cbt.engine.types import (
    AnswerKind,
    AnswerRecord,
    AssessmentDefinition,
    AttemptHandle,
    AttemptStart,
    Question,
    QuestionOutcome,
    Result,
)
from cbt.models.assessments import StartAttemptResponse
from cbt.models.attempts import AnswerPayload, ResultResponse, SubmitAttemptRequest


def attempt_start_from_response(payload: StartAttemptResponse) -> AttemptStart:
    """Build the attempt handle and definition from a start response."""
    questions = tuple(
        Question(
            question_id=item.questionId,
            prompt=item.prompt,
            answer_kind=AnswerKind(item.answerKind.value),
            points=item.points,
            options=tuple(item.options),
        )
        for item in payload.questions
    )
    definition = AssessmentDefinition(
        assessment_id=payload.assessmentId,
        title=payload.title,
        questions=questions,
        time_limit_seconds=payload.timeLimitSeconds,
        passing_score=payload.passingScore,
        kind=payload.kind,
        max_submit_attempts=payload.maxSubmitAttempts,
    )
    attempt = AttemptHandle(
        attempt_id=payload.attemptId,
        assessment_id=payload.assessmentId,
        created_at=payload.createdAt,
    )
    return AttemptStart(attempt=attempt, definition=definition)


def result_from_response(payload: ResultResponse) -> Result:
    return Result(
        attempt_id=payload.attemptId,
        score=payload.score,
        total_points=payload.totalPoints,
        percentage=payload.percentage,
        passed=payload.passed,
        grade=payload.grade,
        expired=payload.expired,
        breakdown=tuple(
            QuestionOutcome(
                question_id=item.questionId,
                is_correct=item.isCorrect,
                points_earned=item.pointsEarned,
                points_possible=item.pointsPossible,
                needs_manual_grading=item.needsManualGrading,
                answer=item.selectedOption if item.selectedOption is not None else item.freeText,
                correct_answer=item.correctAnswer,
                explanation=item.explanation,
                seconds_spent=item.secondsSpent,
            )
            for item in payload.breakdown
        ),
    )


def build_submit_request(
    attempt_id: str,
    answers: tuple[AnswerRecord, ...],
    seconds_spent: int,
    expired: bool,
) -> SubmitAttemptRequest:
    return SubmitAttemptRequest(
        attemptId=attempt_id,
        answers=[
            AnswerPayload(
                questionId=record.question_id,
                selectedOption=record.selected_option,
                freeText=record.free_text,
                secondsSpent=record.seconds_spent,
            )
            for record in answers
        ],
        totalSecondsSpent=seconds_spent,
        expired=expired,
    )
