"""
HTTP backend for the session engine.

Talks to the assessment REST service with ``httpx.AsyncClient``. Every call
sends exactly one request; nothing here retries.
"""
from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from cbt.config import API_BASE_URL, HTTP_TIMEOUT_SECONDS, LEARNER_HEADER
from cbt.engine.types import AttemptStart, Result
from cbt.models.assessments import StartAttemptResponse
from cbt.models.attempts import ResultResponse, SubmitAttemptRequest
from cbt.transport.convert import attempt_start_from_response, result_from_response
from cbt.transport.errors import (
    TransportNetworkError,
    TransportServerError,
    error_for_status,
)

logger = logging.getLogger(__name__)


def _error_detail(response: httpx.Response) -> tuple[str | None, str]:
    """Extract ``(code, message)`` from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return None, response.text or response.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, dict):
        return detail.get("code"), str(detail.get("message", ""))
    if isinstance(detail, list):
        # FastAPI request validation errors
        return "validation", "; ".join(str(item.get("msg", item)) for item in detail)
    if detail is not None:
        return None, str(detail)
    return None, response.reason_phrase


class HttpAssessmentBackend:
    """Assessment backend reached over HTTP."""

    def __init__(
        self,
        learner_id: str,
        base_url: str = API_BASE_URL,
        *,
        timeout: float = HTTP_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={LEARNER_HEADER: learner_id},
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "HttpAssessmentBackend":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.client.aclose()

    async def start_attempt(self, assessment_id: str) -> AttemptStart:
        body = await self._request(
            "POST", f"/api/assessments/{assessment_id}/start", starting=True
        )
        payload = self._parse(StartAttemptResponse, body)
        return attempt_start_from_response(payload)

    async def submit_attempt(
        self, assessment_id: str, request: SubmitAttemptRequest
    ) -> Result:
        body = await self._request(
            "POST",
            f"/api/assessments/{assessment_id}/submit",
            json=request.model_dump(),
        )
        return result_from_response(self._parse(ResultResponse, body))

    async def get_results(self, assessment_id: str, attempt_id: str) -> Result:
        body = await self._request(
            "GET", f"/api/assessments/{assessment_id}/results/{attempt_id}"
        )
        return result_from_response(self._parse(ResultResponse, body))

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: dict | None = None,
        starting: bool = False,
    ) -> object:
        try:
            response = await self.client.request(method, path, json=json)
        except httpx.TransportError as exc:
            logger.warning("%s %s failed: %r", method, path, exc)
            raise TransportNetworkError(str(exc) or exc.__class__.__name__, "network") from exc

        if response.is_success:
            try:
                return response.json()
            except ValueError as exc:
                raise TransportServerError("Malformed response body", "server") from exc

        code, message = _error_detail(response)
        logger.warning(
            "%s %s returned %s (%s): %s",
            method,
            path,
            response.status_code,
            code,
            message,
        )
        raise error_for_status(response.status_code, code, message, starting=starting)

    @staticmethod
    def _parse(model, body: object):
        try:
            return model.model_validate(body)
        except ValidationError as exc:
            raise TransportServerError(f"Unexpected response: {exc}", "server") from exc
