"""Scoring rules for submitted attempts."""
from dataclasses import dataclass

from cbt.models.db.assessment import AssessmentQuestion, QuestionType

GRADE_THRESHOLDS = (
    (97, "A+"),
    (93, "A"),
    (90, "A-"),
    (87, "B+"),
    (83, "B"),
    (80, "B-"),
    (77, "C+"),
    (73, "C"),
    (70, "C-"),
    (67, "D+"),
    (60, "D"),
)


@dataclass
class ScoredAnswer:
    question_id: str
    is_correct: bool
    points_earned: int
    points_possible: int
    needs_manual_grading: bool = False


def letter_grade(percentage: float) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return "F"


def _normalize(text: str) -> str:
    return text.strip().lower()


def score_answer(
    question: AssessmentQuestion,
    selected_option: str | None,
    free_text: str | None,
) -> ScoredAnswer:
    """Score one answer against the question's answer key."""
    scored = ScoredAnswer(
        question_id=question.id,
        is_correct=False,
        points_earned=0,
        points_possible=question.points,
    )
    if question.question_type == QuestionType.FREE_TEXT.value:
        if not question.correct_text:
            # No answer key: an instructor grades it later
            scored.needs_manual_grading = free_text is not None
            return scored
        if free_text is not None:
            scored.is_correct = _normalize(free_text) == _normalize(question.correct_text)
    elif selected_option is not None and question.correct_option is not None:
        scored.is_correct = selected_option == question.correct_option

    if scored.is_correct:
        scored.points_earned = question.points
    return scored


def percentage_of(score: int, total_points: int) -> int:
    if total_points <= 0:
        return 0
    return round(score / total_points * 100)
