"""In-memory answers and per-question time for one attempt."""
from __future__ import annotations

from typing import Iterable

from cbt.engine.errors import LedgerFrozen, UnknownQuestion
from cbt.engine.types import AnswerRecord


class AnswerLedger:
    """
    Map of question id to the learner's current answer and time spent.

    Only questions passed at construction are accepted. Time is tracked for
    every visited question, answered or not; ``snapshot()`` returns records
    for answered questions in assessment order. Once frozen, the ledger
    rejects every write.
    """

    def __init__(self, question_ids: Iterable[str]) -> None:
        self._order: list[str] = list(question_ids)
        if len(set(self._order)) != len(self._order):
            raise ValueError("Question ids must be unique")
        self._answers: dict[str, tuple[str | None, str | None]] = {}
        self._seconds: dict[str, int] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def upsert(
        self,
        question_id: str,
        *,
        selected_option: str | None = None,
        free_text: str | None = None,
    ) -> None:
        """Record the current answer; the last write wins."""
        self._check_writable(question_id)
        if (selected_option is None) == (free_text is None):
            raise ValueError("Exactly one of selected_option or free_text is required")
        self._answers[question_id] = (selected_option, free_text)

    def touch_time(self, question_id: str, delta_seconds: int) -> None:
        """Add time spent on a question."""
        self._check_writable(question_id)
        if delta_seconds < 0:
            raise ValueError("Time spent cannot decrease")
        if delta_seconds == 0:
            return
        self._seconds[question_id] = self._seconds.get(question_id, 0) + delta_seconds

    def seconds_spent(self, question_id: str) -> int:
        return self._seconds.get(question_id, 0)

    def is_answered(self, question_id: str) -> bool:
        return question_id in self._answers

    def answered_count(self) -> int:
        return len(self._answers)

    def total_seconds(self) -> int:
        return sum(self._seconds.values())

    def snapshot(self) -> tuple[AnswerRecord, ...]:
        records = []
        for question_id in self._order:
            if question_id not in self._answers:
                continue
            selected_option, free_text = self._answers[question_id]
            records.append(
                AnswerRecord(
                    question_id=question_id,
                    selected_option=selected_option,
                    free_text=free_text,
                    seconds_spent=self._seconds.get(question_id, 0),
                )
            )
        return tuple(records)

    def _check_writable(self, question_id: str) -> None:
        if self._frozen:
            raise LedgerFrozen("Answer ledger is frozen")
        if question_id not in self._order:
            raise UnknownQuestion(question_id)
