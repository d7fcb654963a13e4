"""Shared fixtures for the quiz_studio test suite."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from quiz_studio.constants.quiz_constants import (
    QUESTION_TYPE_MULTI_SELECT,
    QUESTION_TYPE_MULTIPLE_CHOICE,
)
from quiz_studio.core.models import (
    MultiAnswer,
    Participant,
    Question,
    QuestionDraft,
    Quiz,
    QuizDraft,
    SingleAnswer,
)


class FakeMonotonic:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeWallClock:
    """Wall clock returning timezone-aware datetimes."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 3, 7, 14, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **delta: float) -> None:
        self.now += timedelta(**delta)


@pytest.fixture
def monotonic() -> FakeMonotonic:
    return FakeMonotonic()


@pytest.fixture
def wall_clock() -> FakeWallClock:
    return FakeWallClock()


@pytest.fixture
def make_question():
    def factory(
        question_id: str,
        correct: str | tuple[str, ...] = "B",
        question_type: str = QUESTION_TYPE_MULTIPLE_CHOICE,
        options: tuple[str, ...] = ("A", "B", "C", "D"),
    ) -> Question:
        answer = MultiAnswer(correct) if isinstance(correct, tuple) else SingleAnswer(correct)
        return Question(
            question_id=question_id,
            quiz_id="quiz-1",
            question_text=f"Question {question_id}?",
            question_type=question_type,
            options=options,
            correct_answer=answer,
        )

    return factory


@pytest.fixture
def make_quiz():
    def factory(**overrides) -> Quiz:
        values = {
            "quiz_id": "quiz-1",
            "title": "Capitals",
            "topic": "Geography",
            "difficulty": "easy",
            "shareable_slug": "quiz-1700000000000-abcdefghi",
            "created_by": "author-1",
            "created_at": datetime(2024, 3, 7, 14, 0, tzinfo=timezone.utc),
        }
        values.update(overrides)
        return Quiz(**values)

    return factory


@pytest.fixture
def participant() -> Participant:
    return Participant(
        participant_id="participant-1",
        name="Ada",
        joined_at=datetime(2024, 3, 7, 14, 0, tzinfo=timezone.utc),
    )


@pytest.fixture
def quiz_draft() -> QuizDraft:
    """A valid draft with one question of each type."""
    return QuizDraft(
        title="  World Capitals ",
        topic="Geography",
        difficulty="easy",
        questions=[
            QuestionDraft(
                question_text="What is the capital of France?",
                question_type=QUESTION_TYPE_MULTIPLE_CHOICE,
                options=["Paris", "Lyon", "Nice", "Lille"],
                correct_answer="Paris",
            ),
            QuestionDraft(
                question_text="Canberra is the capital of Australia.",
                question_type="true_false",
                correct_answer="True",
            ),
            QuestionDraft(
                question_text="The capital of Japan is ____.",
                question_type="fill_blank",
                correct_answer="Tokyo",
            ),
            QuestionDraft(
                question_text="Which of these are capitals?",
                question_type=QUESTION_TYPE_MULTI_SELECT,
                options=["Oslo", "Bergen", "Rome", "Milan"],
                correct_answer=["Oslo", "Rome"],
            ),
        ],
        tags=["geo", "europe"],
    )
