"""
Timed assessment session state machine.

One ``AssessmentSession`` drives one attempt at a quiz, practice test or
formal assessment::

    not_started -> starting -> in_progress -> submitting -> completed
                                    |              |
                              (time_expired)       +-> error (retry -> submitting)

Every transition runs on the session's event loop. The submission guard is
set synchronously when submission begins, before anything is awaited, so a
manual ``submit()`` and the clock's expiry can never both send a request for
the same attempt: whichever is processed first wins and the other joins it.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from cbt.config import MAX_SUBMIT_ATTEMPTS
from cbt.engine.clock import ClockSource, CountdownClock
from cbt.engine.coordinator import SubmissionCoordinator
from cbt.engine.errors import (
    InvalidAnswer,
    InvalidAssessment,
    InvalidSessionOperation,
    SessionError,
    SetupErrorKind,
    SubmissionFailed,
    UnknownQuestion,
)
from cbt.engine.ledger import AnswerLedger
from cbt.engine.rewards import LoggingRewardsSink, RewardsSink
from cbt.engine.types import (
    AnswerKind,
    AnswerRecord,
    AssessmentDefinition,
    AttemptHandle,
    Question,
    Result,
    SessionState,
)
from cbt.transport.base import AssessmentBackend
from cbt.transport.errors import (
    AssessmentUnavailable,
    TransportError,
    TransportNetworkError,
)

logger = logging.getLogger(__name__)

Listener = Callable[["AssessmentSession"], None]


def validate_definition(definition: AssessmentDefinition) -> None:
    """Reject definitions that break the content contract."""
    if not definition.questions:
        raise InvalidAssessment("Assessment has no questions")
    if definition.total_points <= 0:
        raise InvalidAssessment("Assessment question points must sum to more than zero")
    if definition.time_limit_seconds <= 0:
        raise InvalidAssessment("Assessment time limit must be positive")
    ids = [question.question_id for question in definition.questions]
    if len(set(ids)) != len(ids):
        raise InvalidAssessment("Assessment question ids are not unique")
    for question in definition.questions:
        if question.has_options and not question.options:
            raise InvalidAssessment(f"Question {question.question_id} has no options")


@dataclass(frozen=True)
class PendingSubmission:
    """Payload captured when submission began; reused by every retry."""

    answers: tuple[AnswerRecord, ...]
    seconds_spent: int
    expired: bool


class AssessmentSession:
    """State machine for a single timed attempt."""

    def __init__(
        self,
        backend: AssessmentBackend,
        *,
        clock: ClockSource | None = None,
        rewards: RewardsSink | None = None,
        coordinator: SubmissionCoordinator | None = None,
        max_submit_attempts: int = MAX_SUBMIT_ATTEMPTS,
    ) -> None:
        self._backend = backend
        self._clock = clock if clock is not None else CountdownClock()
        self._rewards = rewards if rewards is not None else LoggingRewardsSink()
        self._coordinator = coordinator or SubmissionCoordinator(backend)
        self._default_max_submit_attempts = max_submit_attempts

        self._state = SessionState.NOT_STARTED
        self._definition: AssessmentDefinition | None = None
        self._attempt: AttemptHandle | None = None
        self._ledger: AnswerLedger | None = None
        self._index = 0
        self._remaining = 0
        self._focus_baseline = 0

        self._guard = False
        self._pending: PendingSubmission | None = None
        self._in_flight: asyncio.Task | None = None
        self._submission_count = 0
        self._result: Result | None = None
        self._error: SessionError | None = None
        self._rewarded = False
        self._closed = False
        self._listeners: list[Listener] = []

    # ------------------------------------------------------------------
    # Read-only view
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def definition(self) -> AssessmentDefinition | None:
        return self._definition

    @property
    def attempt(self) -> AttemptHandle | None:
        return self._attempt

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question | None:
        if self._definition is None:
            return None
        return self._definition.questions[self._index]

    @property
    def remaining_seconds(self) -> int:
        return self._remaining

    @property
    def seconds_spent(self) -> int:
        if self._definition is None:
            return 0
        return self._definition.time_limit_seconds - self._remaining

    @property
    def answered_count(self) -> int:
        return self._ledger.answered_count() if self._ledger else 0

    @property
    def answers(self) -> tuple[AnswerRecord, ...]:
        return self._ledger.snapshot() if self._ledger else ()

    @property
    def result(self) -> Result | None:
        return self._result

    @property
    def error(self) -> SessionError | None:
        return self._error

    @property
    def submission_count(self) -> int:
        return self._submission_count

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def max_submit_attempts(self) -> int:
        if self._definition and self._definition.max_submit_attempts:
            return self._definition.max_submit_attempts
        return self._default_max_submit_attempts

    @property
    def can_retry(self) -> bool:
        return (
            self._state is SessionState.ERROR
            and self._error is not None
            and self._error.retryable
            and self._pending is not None
            and not self._guard
            and not self._closed
        )

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register a change callback; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self, assessment_id: str) -> None:
        """Fetch the assessment, open an attempt and start the countdown."""
        if self._state is not SessionState.NOT_STARTED or self._closed:
            raise InvalidSessionOperation(
                f"Cannot start a session in state {self._state.value}"
            )
        self._set_state(SessionState.STARTING)

        try:
            started = await self._backend.start_attempt(assessment_id)
        except AssessmentUnavailable as exc:
            self._fail_setup(exc.code or SetupErrorKind.NOT_FOUND.value, exc.message)
            return
        except TransportNetworkError as exc:
            self._fail_setup(SetupErrorKind.NETWORK.value, exc.message)
            return
        except TransportError as exc:
            self._fail_setup(exc.code or SetupErrorKind.SERVER.value, exc.message)
            return
        except Exception as exc:
            logger.exception("Unexpected error starting %s", assessment_id)
            self._fail_setup(SetupErrorKind.INTERNAL.value, str(exc))
            raise

        try:
            validate_definition(started.definition)
        except InvalidAssessment as exc:
            self._fail_setup(SetupErrorKind.INVALID_ASSESSMENT.value, str(exc))
            return

        if self._closed:
            logger.info("Session closed before attempt %s began", started.attempt.attempt_id)
            self._fail_setup(SetupErrorKind.CLOSED.value, "Session closed while starting")
            return

        definition = started.definition
        self._definition = definition
        self._attempt = started.attempt
        self._ledger = AnswerLedger(q.question_id for q in definition.questions)
        self._index = 0
        self._remaining = definition.time_limit_seconds
        self._focus_baseline = self._remaining

        self._clock.start(definition.time_limit_seconds, self._on_tick, self._on_expire)
        logger.info(
            "Started attempt %s for %s %s (%s questions, %ss)",
            started.attempt.attempt_id,
            definition.kind,
            definition.assessment_id,
            definition.question_count,
            definition.time_limit_seconds,
        )
        self._set_state(SessionState.IN_PROGRESS)

    def close(self) -> None:
        """Tear down: stop the clock and ignore further learner input."""
        if self._closed:
            return
        self._closed = True
        self._clock.stop()
        logger.debug("Session closed in state %s", self._state.value)

    # ------------------------------------------------------------------
    # Learner input
    # ------------------------------------------------------------------

    def answer(self, question_id: str, value: str | bool) -> bool:
        """
        Record an answer. Returns False (and changes nothing) unless the
        session is in progress.

        Answering a question other than the focused one moves focus to it.
        """
        if not self._accepting_input():
            logger.debug("Ignoring answer for %s in state %s", question_id, self._state.value)
            return False
        try:
            index = self._definition.index_of(question_id)
        except KeyError:
            raise UnknownQuestion(question_id) from None
        question = self._definition.questions[index]
        selected_option, free_text = _coerce_answer(question, value)

        if index != self._index:
            self._move_focus(index)
        self._ledger.upsert(
            question_id, selected_option=selected_option, free_text=free_text
        )
        self._notify()
        return True

    def go_to(self, index: int) -> bool:
        """Focus another question; out-of-range or same-index requests are no-ops."""
        if not self._accepting_input():
            return False
        if index < 0 or index >= self._definition.question_count:
            return False
        if index == self._index:
            return False
        self._move_focus(index)
        self._notify()
        return True

    def next(self) -> bool:
        return self.go_to(self._index + 1)

    def previous(self) -> bool:
        return self.go_to(self._index - 1)

    def is_answered(self, question_id: str) -> bool:
        return bool(self._ledger and self._ledger.is_answered(question_id))

    def seconds_on(self, question_id: str) -> int:
        """Time accounted to a question so far (excludes the open focus interval)."""
        return self._ledger.seconds_spent(question_id) if self._ledger else 0

    # ------------------------------------------------------------------
    # Submission
    # ------------------------------------------------------------------

    async def submit(self) -> Result | None:
        """
        Submit the attempt, or retry after a recoverable failure.

        Joins a submission already in flight instead of sending another one.
        Returns the result, or None when the submission failed or the
        session cannot submit.
        """
        if self._state is SessionState.COMPLETED:
            return self._result
        if self._in_flight is not None:
            return await asyncio.shield(self._in_flight)

        if self._state is SessionState.IN_PROGRESS and not self._guard and not self._closed:
            self._sync_remaining()
            task = self._begin_submission(expired=self._remaining == 0)
        elif self.can_retry:
            logger.info(
                "Retrying submission of attempt %s (%s/%s)",
                self._attempt.attempt_id,
                self._submission_count + 1,
                self.max_submit_attempts,
            )
            self._guard = True
            self._error = None
            self._set_state(SessionState.SUBMITTING)
            task = self._dispatch_pending()
        else:
            logger.debug("Ignoring submit in state %s", self._state.value)
            return None
        return await asyncio.shield(task)

    async def wait_for_submission(self) -> Result | None:
        """Wait for an in-flight submission, if any, and return the result."""
        if self._in_flight is not None:
            return await asyncio.shield(self._in_flight)
        return self._result

    def _begin_submission(self, expired: bool) -> asyncio.Task:
        # Runs without awaiting: guard, freeze and payload capture are atomic
        self._account_focus_time()
        self._guard = True
        self._ledger.freeze()
        self._clock.stop()
        if expired:
            logger.info("Time expired for attempt %s", self._attempt.attempt_id)
            self._set_state(SessionState.TIME_EXPIRED)
        self._pending = PendingSubmission(
            answers=self._ledger.snapshot(),
            seconds_spent=self.seconds_spent,
            expired=expired,
        )
        self._set_state(SessionState.SUBMITTING)
        return self._dispatch_pending()

    def _dispatch_pending(self) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(
            self._dispatch(), name=f"submit_{self._attempt.attempt_id}"
        )
        # Expiry submissions may never be awaited by the host
        task.add_done_callback(_consume_exception)
        self._in_flight = task
        return task

    async def _dispatch(self) -> Result | None:
        pending = self._pending
        self._submission_count += 1
        try:
            result = await self._coordinator.submit(
                self._definition.assessment_id,
                self._attempt.attempt_id,
                pending.answers,
                pending.seconds_spent,
                pending.expired,
            )
        except SubmissionFailed as exc:
            retryable = exc.retryable and self._submission_count < self.max_submit_attempts
            if retryable:
                # The request never produced a result, so the guard is released
                self._guard = False
            self._error = SessionError(
                kind=exc.kind.value, reason=exc.reason, retryable=retryable
            )
            logger.warning(
                "Attempt %s submission failed (%s, retryable=%s): %s",
                self._attempt.attempt_id,
                exc.kind.value,
                retryable,
                exc.reason,
            )
            self._set_state(SessionState.ERROR)
            return None
        except Exception as exc:
            logger.exception("Unexpected error submitting attempt %s", self._attempt.attempt_id)
            self._error = SessionError(kind="internal", reason=str(exc), retryable=False)
            self._set_state(SessionState.ERROR)
            raise
        finally:
            self._in_flight = None

        self._result = result
        self._error = None
        self._clock.stop()
        self._set_state(SessionState.COMPLETED)
        self._reward(result)
        return result

    def _reward(self, result: Result) -> None:
        if self._rewarded:
            return
        self._rewarded = True
        try:
            self._rewards.notify(result.percentage, result.passed)
        except Exception:
            logger.exception("Rewards sink failed for attempt %s", result.attempt_id)

    # ------------------------------------------------------------------
    # Clock callbacks
    # ------------------------------------------------------------------

    def _on_tick(self, remaining: int) -> None:
        if self._state is not SessionState.IN_PROGRESS or self._closed:
            return
        self._remaining = max(0, min(self._remaining, remaining))
        logger.debug("Attempt %s: %ss remaining", self._attempt.attempt_id, self._remaining)
        self._notify()

    def _on_expire(self) -> None:
        if self._state is not SessionState.IN_PROGRESS or self._guard or self._closed:
            return
        self._remaining = 0
        self._begin_submission(expired=True)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _accepting_input(self) -> bool:
        return self._state is SessionState.IN_PROGRESS and not self._guard and not self._closed

    def _sync_remaining(self) -> None:
        # The clock may already be at zero before its expiry callback ran
        live = self._clock.remaining
        if 0 <= live < self._remaining:
            self._remaining = live

    def _account_focus_time(self) -> None:
        elapsed = self._focus_baseline - self._remaining
        if elapsed > 0:
            self._ledger.touch_time(self.current_question.question_id, elapsed)
        self._focus_baseline = self._remaining

    def _move_focus(self, index: int) -> None:
        self._account_focus_time()
        self._index = index

    def _fail_setup(self, kind: str, reason: str) -> None:
        self._error = SessionError(kind=kind, reason=reason, retryable=False)
        logger.warning("Session setup failed (%s): %s", kind, reason)
        self._set_state(SessionState.ERROR)

    def _set_state(self, state: SessionState) -> None:
        if state is self._state:
            return
        logger.info("Session %s -> %s", self._state.value, state.value)
        self._state = state
        self._notify()

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                logger.exception("Session listener failed")


def _coerce_answer(question: Question, value: str | bool) -> tuple[str | None, str | None]:
    """Return ``(selected_option, free_text)`` for a raw answer value."""
    if question.answer_kind is AnswerKind.FREE_TEXT:
        if not isinstance(value, str):
            raise InvalidAnswer(f"Question {question.question_id} expects text")
        return None, value

    if question.answer_kind is AnswerKind.BOOLEAN and isinstance(value, bool):
        value = "True" if value else "False"
    if not isinstance(value, str):
        raise InvalidAnswer(f"Question {question.question_id} expects one of its options")
    if value in question.options:
        return value, None
    if question.answer_kind is AnswerKind.BOOLEAN:
        for option in question.options:
            if option.lower() == value.strip().lower():
                return option, None
    raise InvalidAnswer(f"{value!r} is not an option of question {question.question_id}")


def _consume_exception(task: asyncio.Task) -> None:
    # Already logged by _dispatch; retrieving it keeps asyncio quiet
    if not task.cancelled():
        task.exception()
