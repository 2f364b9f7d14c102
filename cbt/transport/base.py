"""Backend contract used by the session engine."""
from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from cbt.engine.types import AttemptStart, Result
    from cbt.models.attempts import SubmitAttemptRequest


class AssessmentBackend(Protocol):
    """
    Content provider and attempt persistence.

    ``start_attempt`` serves the assessment definition and creates the
    attempt in one round trip. Implementations raise the exceptions from
    ``cbt.transport.errors``.
    """

    async def start_attempt(self, assessment_id: str) -> AttemptStart: ...

    async def submit_attempt(
        self, assessment_id: str, request: SubmitAttemptRequest
    ) -> Result: ...

    async def get_results(self, assessment_id: str, attempt_id: str) -> Result: ...
