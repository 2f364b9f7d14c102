"""Timed assessment session engine."""
from cbt.engine.clock import ClockSource, CountdownClock, ManualClock
from cbt.engine.coordinator import SubmissionCoordinator, classify_failure
from cbt.engine.errors import (
    FailureKind,
    InvalidAnswer,
    InvalidAssessment,
    InvalidSessionOperation,
    LedgerFrozen,
    SessionError,
    SetupErrorKind,
    SubmissionFailed,
    UnknownQuestion,
)
from cbt.engine.ledger import AnswerLedger
from cbt.engine.rewards import LoggingRewardsSink, RewardsSink
from cbt.engine.session import AssessmentSession, validate_definition
from cbt.engine.types import (
    AnswerKind,
    AnswerRecord,
    AssessmentDefinition,
    AttemptHandle,
    AttemptStart,
    Question,
    QuestionOutcome,
    Result,
    SessionState,
)

__all__ = [
    "AnswerKind",
    "AnswerLedger",
    "AnswerRecord",
    "AssessmentDefinition",
    "AssessmentSession",
    "AttemptHandle",
    "AttemptStart",
    "ClockSource",
    "CountdownClock",
    "FailureKind",
    "InvalidAnswer",
    "InvalidAssessment",
    "InvalidSessionOperation",
    "LedgerFrozen",
    "LoggingRewardsSink",
    "ManualClock",
    "Question",
    "QuestionOutcome",
    "Result",
    "RewardsSink",
    "SessionError",
    "SessionState",
    "SetupErrorKind",
    "SubmissionCoordinator",
    "SubmissionFailed",
    "UnknownQuestion",
    "classify_failure",
    "validate_definition",
]
