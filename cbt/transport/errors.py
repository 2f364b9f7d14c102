"""Errors raised across the persistence/transport boundary."""


class TransportError(Exception):
    """Base class for backend failures."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class AssessmentUnavailable(TransportError):
    """Assessment cannot be started (not found, exhausted, not yet open)."""


class TransportNetworkError(TransportError):
    """Request did not reach the server or no response came back."""


class TransportValidationError(TransportError):
    """Server rejected the request (unknown attempt, malformed payload)."""


class TransportServerError(TransportError):
    """Server failed while handling the request."""


SETUP_CODES = frozenset(
    {"not_found", "attempts_exhausted", "not_yet_available", "invalid_assessment"}
)


def error_for_status(
    status_code: int, code: str | None, message: str, *, starting: bool = False
) -> TransportError:
    """Classify an error response from the assessment service."""
    if status_code >= 500:
        return TransportServerError(message, code or "server")
    if starting and (code in SETUP_CODES or status_code == 404):
        return AssessmentUnavailable(message, code or "not_found")
    return TransportValidationError(message, code or "validation")
