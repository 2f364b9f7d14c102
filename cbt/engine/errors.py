"""Session engine exceptions and error descriptions."""
from __future__ import annotations

import enum
from dataclasses import dataclass


class FailureKind(str, enum.Enum):
    """Classification of a failed submission."""

    NETWORK = "network"
    VALIDATION = "validation"
    SERVER = "server"

    @property
    def retryable(self) -> bool:
        return self is not FailureKind.VALIDATION


class SetupErrorKind(str, enum.Enum):
    """Why a session could not be started."""

    NOT_FOUND = "not_found"
    ATTEMPTS_EXHAUSTED = "attempts_exhausted"
    NOT_YET_AVAILABLE = "not_yet_available"
    INVALID_ASSESSMENT = "invalid_assessment"
    NETWORK = "network"
    SERVER = "server"
    INTERNAL = "internal"
    CLOSED = "closed"


@dataclass(frozen=True)
class SessionError:
    """Error surfaced by a session in the ``error`` state."""

    kind: str
    reason: str
    retryable: bool = False


class SessionEngineError(Exception):
    """Base class for session engine errors."""


class InvalidSessionOperation(SessionEngineError):
    """Operation not allowed in the session's current state."""


class InvalidAnswer(SessionEngineError, ValueError):
    """Answer value does not fit the question."""


class UnknownQuestion(InvalidAnswer, KeyError):
    """Question id is not part of the assessment."""


class LedgerFrozen(SessionEngineError):
    """Answer ledger no longer accepts writes."""


class InvalidAssessment(SessionEngineError):
    """Assessment definition violates the content contract."""


class SubmissionFailed(SessionEngineError):
    """A submission request did not produce a result."""

    def __init__(self, kind: FailureKind, reason: str) -> None:
        super().__init__(reason)
        self.kind = kind
        self.reason = reason

    @property
    def retryable(self) -> bool:
        return self.kind.retryable
