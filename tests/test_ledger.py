import pytest

from cbt.engine.errors import LedgerFrozen, UnknownQuestion
from cbt.engine.ledger import AnswerLedger
from cbt.engine.types import AnswerRecord


def test_upsert_last_write_wins() -> None:
    ledger = AnswerLedger(["q1", "q2"])
    ledger.upsert("q1", selected_option="A")
    ledger.upsert("q1", selected_option="C")

    assert ledger.answered_count() == 1
    assert ledger.snapshot() == (AnswerRecord("q1", selected_option="C"),)


def test_snapshot_follows_question_order_and_skips_unanswered() -> None:
    ledger = AnswerLedger(["q1", "q2", "q3"])
    ledger.upsert("q3", free_text="Paris")
    ledger.touch_time("q2", 4)
    ledger.upsert("q1", selected_option="B")

    snapshot = ledger.snapshot()
    assert [record.question_id for record in snapshot] == ["q1", "q3"]
    assert ledger.seconds_spent("q2") == 4
    assert ledger.total_seconds() == 4


def test_time_accumulates_across_visits() -> None:
    ledger = AnswerLedger(["q1"])
    ledger.touch_time("q1", 5)
    ledger.upsert("q1", selected_option="A")
    ledger.touch_time("q1", 0)
    ledger.touch_time("q1", 3)

    assert ledger.snapshot()[0].seconds_spent == 8


def test_snapshot_is_immutable_copy() -> None:
    ledger = AnswerLedger(["q1"])
    ledger.upsert("q1", selected_option="A")
    before = ledger.snapshot()
    ledger.upsert("q1", selected_option="B")

    assert before[0].selected_option == "A"
    assert isinstance(before, tuple)


def test_rejects_negative_time_and_unknown_questions() -> None:
    ledger = AnswerLedger(["q1"])
    with pytest.raises(ValueError):
        ledger.touch_time("q1", -1)
    with pytest.raises(UnknownQuestion):
        ledger.upsert("nope", selected_option="A")
    with pytest.raises(ValueError):
        ledger.upsert("q1")
    with pytest.raises(ValueError):
        ledger.upsert("q1", selected_option="A", free_text="A")


def test_frozen_ledger_rejects_writes() -> None:
    ledger = AnswerLedger(["q1"])
    ledger.upsert("q1", selected_option="A")
    ledger.freeze()

    with pytest.raises(LedgerFrozen):
        ledger.upsert("q1", selected_option="B")
    with pytest.raises(LedgerFrozen):
        ledger.touch_time("q1", 1)
    assert ledger.snapshot()[0].selected_option == "A"


def test_duplicate_question_ids_rejected() -> None:
    with pytest.raises(ValueError):
        AnswerLedger(["q1", "q1"])
