"""Grading of a participant's responses against a quiz's questions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass

from quiz_studio.core.answer_codec import decode_selection, encode_selection
from quiz_studio.core.models import AnswerRecord, MultiAnswer, Question

Response = str | Sequence[str] | frozenset[str] | set[str]


@dataclass(frozen=True, slots=True)
class QuestionResult:
    """Grading outcome for a single question."""

    question_id: str
    selected: str
    is_correct: bool

    def to_answer_record(self) -> AnswerRecord:
        return AnswerRecord(
            question_id=self.question_id,
            selected_answer=self.selected,
            is_correct=self.is_correct,
        )


@dataclass(frozen=True, slots=True)
class ScoreResult:
    """Immutable result of grading one attempt."""

    score: int
    correct_count: int
    total_questions: int
    per_question: tuple[QuestionResult, ...]

    def answer_records(self) -> tuple[AnswerRecord, ...]:
        return tuple(result.to_answer_record() for result in self.per_question)


def percentage(correct_count: int, total_questions: int) -> int:
    """round(100 * correct / total) with halves rounded up; 0 when there are no questions."""
    if total_questions <= 0:
        return 0
    return (200 * correct_count + total_questions) // (2 * total_questions)


def _is_multi_select_correct(correct: MultiAnswer, response: Response | None) -> bool:
    selected = decode_selection(response)
    if not selected:
        return False
    return len(correct.values) == len(selected) and all(
        option in selected for option in correct.values
    )


def is_response_correct(question: Question, response: Response | None) -> bool:
    """Exact, case-sensitive grading; an empty or missing response is never correct."""
    correct = question.correct_answer
    if isinstance(correct, MultiAnswer):
        return _is_multi_select_correct(correct, response)
    if not isinstance(response, str) or not response:
        return False
    return response == correct.value


def score_attempt(
    questions: Iterable[Question],
    responses: Mapping[str, Response],
) -> ScoreResult:
    """Grade ``responses`` (keyed by question id) against ``questions``."""
    per_question: list[QuestionResult] = []
    for question in questions:
        response = responses.get(question.question_id)
        per_question.append(
            QuestionResult(
                question_id=question.question_id,
                selected=encode_selection(response),
                is_correct=is_response_correct(question, response),
            )
        )

    correct_count = sum(1 for result in per_question if result.is_correct)
    total = len(per_question)
    return ScoreResult(
        score=percentage(correct_count, total),
        correct_count=correct_count,
        total_questions=total,
        per_question=tuple(per_question),
    )
