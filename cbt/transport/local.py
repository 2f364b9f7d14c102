"""In-process backend calling the service layer directly."""
from __future__ import annotations

import asyncio
from typing import Callable, TypeVar

from fastapi import HTTPException
from sqlalchemy.orm import Session as DbSession, sessionmaker

from cbt.database import SessionLocal
from cbt.engine.types import AttemptStart, Result
from cbt.models.attempts import SubmitAttemptRequest
from cbt.services import attempt_service
from cbt.transport.convert import attempt_start_from_response, result_from_response
from cbt.transport.errors import error_for_status

T = TypeVar("T")


class ServiceAssessmentBackend:
    """
    Runs service calls in a worker thread with a fresh database session.

    Service ``HTTPException``s are classified exactly as the HTTP backend
    classifies error responses.
    """

    def __init__(self, learner_id: str, session_factory: sessionmaker = SessionLocal) -> None:
        self.learner_id = learner_id
        self._session_factory = session_factory

    async def start_attempt(self, assessment_id: str) -> AttemptStart:
        payload = await self._call(
            lambda db: attempt_service.start_attempt(db, assessment_id, self.learner_id),
            starting=True,
        )
        return attempt_start_from_response(payload)

    async def submit_attempt(
        self, assessment_id: str, request: SubmitAttemptRequest
    ) -> Result:
        payload = await self._call(
            lambda db: attempt_service.submit_attempt(
                db, assessment_id, self.learner_id, request
            )
        )
        return result_from_response(payload)

    async def get_results(self, assessment_id: str, attempt_id: str) -> Result:
        payload = await self._call(
            lambda db: attempt_service.get_results(
                db, assessment_id, attempt_id, self.learner_id
            )
        )
        return result_from_response(payload)

    async def _call(self, func: Callable[[DbSession], T], *, starting: bool = False) -> T:
        def run() -> T:
            db = self._session_factory()
            try:
                return func(db)
            finally:
                db.close()

        try:
            return await asyncio.to_thread(run)
        except HTTPException as exc:
            code, message = _detail(exc.detail)
            raise error_for_status(exc.status_code, code, message, starting=starting) from exc


def _detail(detail: object) -> tuple[str | None, str]:
    if isinstance(detail, dict):
        return detail.get("code"), str(detail.get("message", ""))
    return None, str(detail)
