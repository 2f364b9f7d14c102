import pytest

from cbt.engine import (
    AnswerRecord,
    FailureKind,
    SubmissionCoordinator,
    SubmissionFailed,
    classify_failure,
)
from cbt.transport.errors import (
    AssessmentUnavailable,
    TransportNetworkError,
    TransportServerError,
    TransportValidationError,
)


@pytest.mark.parametrize(
    "error, kind",
    [
        (TransportNetworkError("reset"), FailureKind.NETWORK),
        (TransportServerError("boom"), FailureKind.SERVER),
        (TransportValidationError("bad"), FailureKind.VALIDATION),
        (AssessmentUnavailable("gone"), FailureKind.VALIDATION),
    ],
)
def test_classify_failure(error, kind) -> None:
    assert classify_failure(error) is kind


def test_only_validation_is_fatal() -> None:
    assert FailureKind.NETWORK.retryable
    assert FailureKind.SERVER.retryable
    assert not FailureKind.VALIDATION.retryable


@pytest.mark.asyncio
async def test_submit_builds_request(fake_backend) -> None:
    coordinator = SubmissionCoordinator(fake_backend)
    snapshot = (
        AnswerRecord("q1", selected_option="B", seconds_spent=10),
        AnswerRecord("q3", free_text="Paris", seconds_spent=4),
    )

    result = await coordinator.submit("quiz-1", "attempt-1", snapshot, 14, False)

    assert result.attempt_id == "attempt-1"
    assert coordinator.sent == 1
    _, request = fake_backend.submissions[0]
    assert request.model_dump() == {
        "attemptId": "attempt-1",
        "answers": [
            {"questionId": "q1", "selectedOption": "B", "freeText": None, "secondsSpent": 10},
            {"questionId": "q3", "selectedOption": None, "freeText": "Paris", "secondsSpent": 4},
        ],
        "totalSecondsSpent": 14,
        "expired": False,
    }


@pytest.mark.asyncio
async def test_submit_maps_transport_errors(fake_backend) -> None:
    fake_backend.submit_errors = [TransportNetworkError("timed out", "network")]
    coordinator = SubmissionCoordinator(fake_backend)

    with pytest.raises(SubmissionFailed) as excinfo:
        await coordinator.submit("quiz-1", "attempt-1", (), 0, True)

    assert excinfo.value.kind is FailureKind.NETWORK
    assert excinfo.value.retryable
    assert excinfo.value.reason == "timed out"


@pytest.mark.asyncio
async def test_malformed_snapshot_never_sent(fake_backend) -> None:
    coordinator = SubmissionCoordinator(fake_backend)
    duplicated = (
        AnswerRecord("q1", selected_option="A"),
        AnswerRecord("q1", selected_option="B"),
    )

    with pytest.raises(SubmissionFailed) as excinfo:
        await coordinator.submit("quiz-1", "attempt-1", duplicated, 0, False)

    assert excinfo.value.kind is FailureKind.VALIDATION
    assert coordinator.sent == 0
    assert fake_backend.submissions == []


@pytest.mark.asyncio
async def test_missing_attempt_id_is_validation_failure(fake_backend) -> None:
    coordinator = SubmissionCoordinator(fake_backend)

    with pytest.raises(SubmissionFailed) as excinfo:
        await coordinator.submit("quiz-1", "", (), 0, False)

    assert not excinfo.value.retryable
    assert fake_backend.submissions == []
