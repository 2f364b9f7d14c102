"""Shared test doubles and sample data."""
import asyncio
from datetime import datetime, timezone


from cbt.engine.types import (
    AnswerKind,
    AssessmentDefinition,
    AttemptHandle,
    AttemptStart,
    Question,
    Result,
)
from cbt.models.attempts import SubmitAttemptRequest


def make_definition(
    time_limit_seconds: int = 600,
    questions: tuple[Question, ...] | None = None,
    max_submit_attempts: int | None = None,
) -> AssessmentDefinition:
    if questions is None:
        questions = (
            Question(
                question_id="q1",
                prompt="Pick B",
                answer_kind=AnswerKind.SINGLE_CHOICE,
                points=5,
                options=("A", "B", "C", "D"),
            ),
            Question(
                question_id="q2",
                prompt="Is the sky blue?",
                answer_kind=AnswerKind.BOOLEAN,
                points=5,
                options=("True", "False"),
            ),
        )
    return AssessmentDefinition(
        assessment_id="quiz-1",
        title="Sample quiz",
        questions=questions,
        time_limit_seconds=time_limit_seconds,
        passing_score=70,
        max_submit_attempts=max_submit_attempts,
    )


class FakeBackend:
    """Scripted backend recording every submission."""

    def __init__(self, definition: AssessmentDefinition | None = None) -> None:
        self.definition = definition or make_definition()
        self.start_error: Exception | None = None
        self.start_gate: asyncio.Event | None = None
        self.submit_errors: list[Exception] = []
        self.submissions: list[tuple[str, SubmitAttemptRequest]] = []
        self.gate: asyncio.Event | None = None
        self.percentage = 100.0
        self.passed = True

    async def start_attempt(self, assessment_id: str) -> AttemptStart:
        if self.start_gate is not None:
            await self.start_gate.wait()
        if self.start_error is not None:
            raise self.start_error
        attempt = AttemptHandle(
            attempt_id="attempt-1",
            assessment_id=assessment_id,
            created_at=datetime.now(timezone.utc),
        )
        return AttemptStart(attempt=attempt, definition=self.definition)

    async def submit_attempt(
        self, assessment_id: str, request: SubmitAttemptRequest
    ) -> Result:
        self.submissions.append((assessment_id, request))
        if self.gate is not None:
            await self.gate.wait()
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        return Result(
            attempt_id=request.attemptId,
            score=10,
            total_points=10,
            percentage=self.percentage,
            passed=self.passed,
            expired=request.expired,
        )

    async def get_results(self, assessment_id: str, attempt_id: str) -> Result:
        raise NotImplementedError


class RecordingRewards:
    def __init__(self) -> None:
        self.calls: list[tuple[float, bool]] = []

    def notify(self, percentage: float, passed: bool) -> None:
        self.calls.append((percentage, passed))


async def drain(rounds: int = 50) -> None:
    """Let pending tasks on the loop run."""
    for _ in range(rounds):
        await asyncio.sleep(0)


SAMPLE_ASSESSMENT = {
    "id": "quiz-1",
    "title": "Sample quiz",
    "kind": "quiz",
    "timeLimitSeconds": 600,
    "passingScore": 70,
    "maxAttempts": 2,
    "questions": [
        {
            "id": "q1",
            "prompt": "Pick B",
            "type": "single-choice",
            "options": ["A", "B", "C", "D"],
            "correct": "B",
            "explanation": "B is the only option marked correct.",
            "points": 5,
        },
        {
            "id": "q2",
            "prompt": "Is the sky blue?",
            "type": "boolean",
            "correct": "True",
            "points": 3,
        },
        {
            "id": "q3",
            "prompt": "Capital of France",
            "type": "free-text",
            "correct": "Paris",
            "points": 2,
        },
    ],
}

