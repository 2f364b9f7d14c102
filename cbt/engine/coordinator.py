"""Sends attempt submissions and classifies their failures."""
from __future__ import annotations

import logging

from cbt.engine.errors import FailureKind, SubmissionFailed
from cbt.engine.types import AnswerRecord, Result
from cbt.transport.base import AssessmentBackend
from cbt.transport.convert import build_submit_request
from cbt.transport.errors import (
    TransportError,
    TransportNetworkError,
    TransportServerError,
    TransportValidationError,
)

logger = logging.getLogger(__name__)


def classify_failure(exc: TransportError) -> FailureKind:
    """Map a backend exception to a submission failure kind."""
    if isinstance(exc, TransportNetworkError):
        return FailureKind.NETWORK
    if isinstance(exc, TransportValidationError):
        return FailureKind.VALIDATION
    if isinstance(exc, TransportServerError):
        return FailureKind.SERVER
    # Any other backend rejection of a submission is not worth retrying
    return FailureKind.VALIDATION


class SubmissionCoordinator:
    """
    Turns an answer snapshot into exactly one outbound submit request.

    Each call to ``submit`` sends one request and either returns the scored
    ``Result`` or raises ``SubmissionFailed`` with a ``FailureKind``. The
    coordinator does not remember earlier calls; guarding against a second
    submission of the same attempt is the session's job.
    """

    def __init__(self, backend: AssessmentBackend) -> None:
        self._backend = backend
        self.sent = 0

    async def submit(
        self,
        assessment_id: str,
        attempt_id: str,
        answer_snapshot: tuple[AnswerRecord, ...],
        seconds_spent: int,
        expired: bool,
    ) -> Result:
        if not attempt_id:
            raise SubmissionFailed(FailureKind.VALIDATION, "Attempt id is missing")
        try:
            request = build_submit_request(
                attempt_id, answer_snapshot, seconds_spent, expired
            )
        except ValueError as exc:
            raise SubmissionFailed(
                FailureKind.VALIDATION, f"Malformed submission: {exc}"
            ) from exc

        self.sent += 1
        logger.info(
            "Submitting attempt %s (%s answers, %ss, expired=%s)",
            attempt_id,
            len(request.answers),
            seconds_spent,
            expired,
        )
        try:
            result = await self._backend.submit_attempt(assessment_id, request)
        except TransportError as exc:
            kind = classify_failure(exc)
            logger.warning(
                "Submission of attempt %s failed (%s): %s",
                attempt_id,
                kind.value,
                exc.message,
            )
            raise SubmissionFailed(kind, exc.message) from exc

        logger.info(
            "Attempt %s scored %s%% (passed=%s)",
            attempt_id,
            result.percentage,
            result.passed,
        )
        return result
