"""Backends the session engine talks to."""
from cbt.transport.base import AssessmentBackend
from cbt.transport.errors import (
    AssessmentUnavailable,
    TransportError,
    TransportNetworkError,
    TransportServerError,
    TransportValidationError,
)
from cbt.transport.http import HttpAssessmentBackend
from cbt.transport.local import ServiceAssessmentBackend

__all__ = [
    "AssessmentBackend",
    "AssessmentUnavailable",
    "HttpAssessmentBackend",
    "ServiceAssessmentBackend",
    "TransportError",
    "TransportNetworkError",
    "TransportServerError",
    "TransportValidationError",
]
