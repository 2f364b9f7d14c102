from datetime import timedelta

import pytest
from fastapi import HTTPException

from cbt.models import AssessmentImport, SubmitAttemptRequest
from cbt.models.db import Attempt, AttemptStatus, GradingStatus
from cbt.services import assessment_service, attempt_service
from cbt.utils import utc_now


def error_code(excinfo: pytest.ExceptionInfo) -> tuple[int, str]:
    return excinfo.value.status_code, excinfo.value.detail["code"]


def submit(db, attempt_id: str, answers: list[dict], **kwargs):
    payload = SubmitAttemptRequest.model_validate(
        {"attemptId": attempt_id, "answers": answers, **kwargs}
    )
    return attempt_service.submit_attempt(db, "quiz-1", "learner-1", payload)


def test_start_attempt_hides_answer_key(db_session, seeded_assessment) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")

    assert started.assessmentId == "quiz-1"
    assert started.timeLimitSeconds == 600
    assert started.maxSubmitAttempts == 3
    assert [q.questionId for q in started.questions] == ["q1", "q2", "q3"]
    assert started.questions[1].options == ["True", "False"]
    assert "correct" not in started.questions[0].model_dump()

    attempt = db_session.get(Attempt, started.attemptId)
    assert attempt.attempt_number == 1
    assert attempt.status == AttemptStatus.IN_PROGRESS.value


def test_submit_scores_attempt(db_session, seeded_assessment) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")

    result = submit(
        db_session,
        started.attemptId,
        [
            {"questionId": "q1", "selectedOption": "B", "secondsSpent": 10},
            {"questionId": "q2", "selectedOption": "False", "secondsSpent": 8},
            {"questionId": "q3", "freeText": " paris ", "secondsSpent": 4},
        ],
        totalSecondsSpent=22,
    )

    assert result.score == 7
    assert result.totalPoints == 10
    assert result.percentage == 70
    assert result.passed is True
    assert result.grade == "C-"
    assert result.gradingStatus == GradingStatus.AUTO_GRADED.value
    assert [(o.questionId, o.isCorrect) for o in result.breakdown] == [
        ("q1", True),
        ("q2", False),
        ("q3", True),
    ]

    attempt = db_session.get(Attempt, started.attemptId)
    db_session.refresh(attempt)
    assert attempt.status == AttemptStatus.COMPLETED.value
    assert attempt.total_seconds_spent == 22
    assert attempt.correct_count == 2


def test_unanswered_questions_score_zero(db_session, seeded_assessment) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")

    result = submit(db_session, started.attemptId, [], expired=True)

    assert result.score == 0
    assert result.passed is False
    assert result.grade == "F"
    assert result.expired is True
    assert len(result.breakdown) == 3
    attempt = db_session.get(Attempt, started.attemptId)
    db_session.refresh(attempt)
    assert attempt.status == AttemptStatus.TIME_EXPIRED.value


def test_resubmission_returns_stored_result(db_session, seeded_assessment) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    answers = [{"questionId": "q1", "selectedOption": "B"}]

    first = submit(db_session, started.attemptId, answers)
    second = submit(
        db_session, started.attemptId, [{"questionId": "q1", "selectedOption": "A"}]
    )

    assert second == first
    attempt = db_session.get(Attempt, started.attemptId)
    db_session.refresh(attempt)
    assert len(attempt.answers) == 3


def test_attempt_limit_enforced(db_session, seeded_assessment) -> None:
    attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    attempt_service.start_attempt(db_session, "quiz-1", "learner-1")

    with pytest.raises(HTTPException) as excinfo:
        attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    assert error_code(excinfo) == (409, "attempts_exhausted")

    # Other learners have their own allowance
    attempt_service.start_attempt(db_session, "quiz-1", "learner-2")


def test_unknown_assessment(db_session) -> None:
    with pytest.raises(HTTPException) as excinfo:
        attempt_service.start_attempt(db_session, "missing", "learner-1")
    assert error_code(excinfo) == (404, "not_found")


def test_inactive_assessment_is_not_found(db_session, seeded_assessment) -> None:
    seeded_assessment.is_active = False
    db_session.commit()

    with pytest.raises(HTTPException) as excinfo:
        attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    assert error_code(excinfo) == (404, "not_found")


def test_availability_window(db_session, seeded_assessment) -> None:
    seeded_assessment.available_from = utc_now() + timedelta(days=1)
    db_session.commit()

    with pytest.raises(HTTPException) as excinfo:
        attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    assert error_code(excinfo) == (409, "not_yet_available")


@pytest.mark.parametrize(
    "answer",
    [
        {"questionId": "q9", "selectedOption": "A"},
        {"questionId": "q1", "selectedOption": "E"},
        {"questionId": "q1", "freeText": "B"},
        {"questionId": "q3", "selectedOption": "Paris"},
    ],
)
def test_invalid_answers_rejected(db_session, seeded_assessment, answer) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")

    with pytest.raises(HTTPException) as excinfo:
        submit(db_session, started.attemptId, [answer])
    assert error_code(excinfo) == (422, "invalid_answer")


def test_attempt_belongs_to_learner(db_session, seeded_assessment) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    payload = SubmitAttemptRequest(attemptId=started.attemptId)

    with pytest.raises(HTTPException) as excinfo:
        attempt_service.submit_attempt(db_session, "quiz-1", "learner-2", payload)
    assert error_code(excinfo) == (404, "attempt_not_found")


def test_results_require_submission(db_session, seeded_assessment) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")

    with pytest.raises(HTTPException) as excinfo:
        attempt_service.get_results(db_session, "quiz-1", started.attemptId, "learner-1")
    assert error_code(excinfo) == (409, "attempt_not_scored")

    submit(db_session, started.attemptId, [{"questionId": "q1", "selectedOption": "B"}])
    result = attempt_service.get_results(
        db_session, "quiz-1", started.attemptId, "learner-1"
    )
    assert result.score == 5


def test_free_text_without_key_is_pending_manual(db_session) -> None:
    payload = AssessmentImport.model_validate(
        {
            "id": "essay-1",
            "title": "Essay",
            "kind": "assessment",
            "timeLimitSeconds": 1800,
            "questions": [{"id": "e1", "prompt": "Discuss", "type": "free-text", "points": 10}],
        }
    )
    assessment_service.import_assessment(db_session, payload)
    started = attempt_service.start_attempt(db_session, "essay-1", "learner-1")

    result = attempt_service.submit_attempt(
        db_session,
        "essay-1",
        "learner-1",
        SubmitAttemptRequest.model_validate(
            {"attemptId": started.attemptId, "answers": [{"questionId": "e1", "freeText": "..."}]}
        ),
    )

    assert result.gradingStatus == GradingStatus.PENDING_MANUAL.value
    assert result.breakdown[0].needsManualGrading is True


def test_import_rejects_bad_answer_key(db_session) -> None:
    payload = AssessmentImport.model_validate(
        {
            "id": "bad",
            "title": "Bad",
            "timeLimitSeconds": 60,
            "questions": [
                {"id": "b1", "prompt": "Pick", "options": ["A", "B"], "correct": "C"}
            ],
        }
    )
    with pytest.raises(ValueError):
        assessment_service.import_assessment(db_session, payload)


def test_list_assessments_reports_usage(db_session, seeded_assessment) -> None:
    attempt_service.start_attempt(db_session, "quiz-1", "learner-1")

    summaries = assessment_service.list_assessments(db_session, "learner-1")

    assert len(summaries) == 1
    assert summaries[0].attemptsUsed == 1
    assert summaries[0].canTake is True
    assert summaries[0].questionCount == 3


def test_results_include_answer_review(db_session, seeded_assessment) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    submit(
        db_session,
        started.attemptId,
        [
            {"questionId": "q1", "selectedOption": "A", "secondsSpent": 12},
            {"questionId": "q3", "freeText": "Lyon", "secondsSpent": 5},
        ],
    )

    result = attempt_service.get_results(db_session, "quiz-1", started.attemptId, "learner-1")
    q1, q2, q3 = result.breakdown

    assert (q1.prompt, q1.selectedOption, q1.correctAnswer) == ("Pick B", "A", "B")
    assert q1.explanation == "B is the only option marked correct."
    assert q1.secondsSpent == 12
    assert (q2.selectedOption, q2.correctAnswer, q2.secondsSpent) == (None, "True", 0)
    assert (q3.freeText, q3.correctAnswer, q3.secondsSpent) == ("Lyon", "Paris", 5)
    assert q3.explanation is None


def test_results_readable_after_deactivation(db_session, seeded_assessment) -> None:
    started = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    submit(db_session, started.attemptId, [{"questionId": "q1", "selectedOption": "B"}])
    seeded_assessment.is_active = False
    db_session.commit()

    result = attempt_service.get_results(db_session, "quiz-1", started.attemptId, "learner-1")

    assert result.score == 5
    assert result.breakdown[0].correctAnswer == "B"


def test_unsubmitted_attempts_use_allowance(db_session, seeded_assessment) -> None:
    attempt_service.start_attempt(db_session, "quiz-1", "learner-1")

    assert assessment_service.count_attempts(db_session, "quiz-1", "learner-1") == 1


def test_list_attempts_newest_first(db_session, seeded_assessment) -> None:
    first = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    submit(db_session, first.attemptId, [{"questionId": "q1", "selectedOption": "B"}])
    second = attempt_service.start_attempt(db_session, "quiz-1", "learner-1")
    attempt_service.start_attempt(db_session, "quiz-1", "learner-2")

    attempts = attempt_service.list_attempts(db_session, "learner-1")

    assert [a.attemptId for a in attempts] == [second.attemptId, first.attemptId]
    latest, earlier = attempts
    assert latest.attemptNumber == 2
    assert latest.status == AttemptStatus.IN_PROGRESS.value
    assert latest.score is None
    assert latest.submittedAt is None
    assert earlier.score == 5
    assert earlier.percentage == 50
    assert earlier.passed is False
    assert earlier.grade == "F"
    assert earlier.submittedAt is not None
    assert earlier.title == "Sample quiz"
