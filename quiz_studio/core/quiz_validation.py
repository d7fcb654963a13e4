"""Validation of author-submitted quiz drafts.

Everything is checked before anything is written, so a rejected draft never
leaves a partial quiz behind. Error messages name the offending field and are
meant to be shown to the author as-is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone

from quiz_studio.constants.quiz_constants import (
    DEFAULT_QUESTION_POINTS,
    DIFFICULTIES,
    MAX_TAGS,
    QUESTION_TYPE_FILL_BLANK,
    QUESTION_TYPE_TRUE_FALSE,
    QUESTION_TYPES,
    TRUE_FALSE_OPTIONS,
)
from quiz_studio.core.answer_codec import coerce_authored_answer
from quiz_studio.core.errors import QuizValidationError
from quiz_studio.core.models import CorrectAnswer, MultiAnswer, QuestionDraft, QuizDraft


@dataclass(slots=True)
class PreparedQuestion:
    """Question that passed validation, ready to be stored."""

    question_text: str
    question_type: str
    options: tuple[str, ...]
    correct_answer: CorrectAnswer
    image_url: str | None
    points: int


@dataclass(slots=True)
class PreparedQuiz:
    """Quiz settings and questions that passed validation."""

    title: str
    topic: str
    difficulty: str
    questions: list[PreparedQuestion]
    description: str | None
    category: str | None
    tags: tuple[str, ...]
    time_limit_minutes: int | None
    shuffle_questions: bool
    show_results_immediately: bool
    expires_at: datetime | None


def prepare_quiz(draft: QuizDraft) -> PreparedQuiz:
    """Validate and normalize a draft, raising :class:`QuizValidationError` on the first problem."""
    title = draft.title.strip()
    topic = draft.topic.strip()
    if not title or not topic or not draft.questions:
        field = "title" if not title else "topic" if not topic else "questions"
        raise QuizValidationError(
            field, "Please fill in all required fields and add at least one question"
        )

    if draft.difficulty not in DIFFICULTIES:
        raise QuizValidationError(
            "difficulty", f"Difficulty must be one of: {', '.join(DIFFICULTIES)}."
        )

    tags = tuple(tag.strip() for tag in draft.tags if tag.strip())
    if len(tags) > MAX_TAGS:
        raise QuizValidationError("tags", f"A quiz can have at most {MAX_TAGS} tags.")

    time_limit = draft.time_limit_minutes
    if time_limit is not None and time_limit < 0:
        raise QuizValidationError("time_limit_minutes", "Time limit cannot be negative.")

    questions = [
        _prepare_question(number, question)
        for number, question in enumerate(draft.questions, start=1)
    ]

    return PreparedQuiz(
        title=title,
        topic=topic,
        difficulty=draft.difficulty,
        questions=questions,
        description=_optional_text(draft.description),
        category=_optional_text(draft.category),
        tags=tags,
        time_limit_minutes=time_limit or None,
        shuffle_questions=draft.shuffle_questions,
        show_results_immediately=draft.show_results_immediately,
        expires_at=_as_utc(draft.expires_at),
    )


def _prepare_question(number: int, draft: QuestionDraft) -> PreparedQuestion:
    field = f"questions[{number - 1}]"
    if draft.question_type not in QUESTION_TYPES:
        raise QuizValidationError(
            f"{field}.question_type", f"Question {number} has an unknown type."
        )

    text = draft.question_text.strip()
    raw_answer = draft.correct_answer
    if isinstance(raw_answer, str):
        raw_answer = raw_answer.strip()
    else:
        raw_answer = [value.strip() for value in raw_answer if value.strip()]
    if not text or not raw_answer:
        raise QuizValidationError(field, f"Question {number} is incomplete")

    options = _prepare_options(number, field, draft.question_type, draft.options)
    correct = coerce_authored_answer(draft.question_type, raw_answer)
    _check_answer_within_options(number, field, draft.question_type, options, correct)

    points = draft.points if draft.points is not None else DEFAULT_QUESTION_POINTS
    if points < 1:
        raise QuizValidationError(f"{field}.points", f"Question {number} must be worth at least 1 point.")

    return PreparedQuestion(
        question_text=text,
        question_type=draft.question_type,
        options=options,
        correct_answer=correct,
        image_url=_optional_text(draft.image_url),
        points=points,
    )


def _prepare_options(
    number: int, field: str, question_type: str, options: list[str]
) -> tuple[str, ...]:
    if question_type == QUESTION_TYPE_FILL_BLANK:
        return ()
    if question_type == QUESTION_TYPE_TRUE_FALSE:
        cleaned = tuple(option.strip() for option in options) or TRUE_FALSE_OPTIONS
        if cleaned != TRUE_FALSE_OPTIONS:
            raise QuizValidationError(
                f"{field}.options", f"Question {number} must use the options True and False."
            )
        return cleaned

    cleaned = tuple(option.strip() for option in options)
    if not cleaned or any(not option for option in cleaned):
        raise QuizValidationError(f"{field}.options", f"Question {number} has empty options")
    return cleaned


def _check_answer_within_options(
    number: int,
    field: str,
    question_type: str,
    options: tuple[str, ...],
    correct: CorrectAnswer,
) -> None:
    if question_type == QUESTION_TYPE_FILL_BLANK:
        return
    expected = correct.values if isinstance(correct, MultiAnswer) else (correct.value,)
    if any(value not in options for value in expected):
        raise QuizValidationError(
            f"{field}.correct_answer",
            f"Question {number} has a correct answer that is not one of its options.",
        )


def _optional_text(value: str | None) -> str | None:
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def _as_utc(moment: datetime | None) -> datetime | None:
    """Naive timestamps are taken to be UTC."""
    if moment is None or moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=timezone.utc)
