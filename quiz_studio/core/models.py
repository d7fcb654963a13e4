"""Domain models for the quiz application."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from quiz_studio.constants.quiz_constants import DEFAULT_QUESTION_POINTS


@dataclass(frozen=True, slots=True)
class SingleAnswer:
    """Correct answer for multiple-choice, true/false and fill-in-the-blank questions."""

    value: str


@dataclass(frozen=True, slots=True)
class MultiAnswer:
    """Correct option set for multi-select questions, in authoring order."""

    values: tuple[str, ...]


CorrectAnswer = SingleAnswer | MultiAnswer


@dataclass(frozen=True, slots=True)
class Question:
    """A question belonging to exactly one quiz."""

    question_id: str
    quiz_id: str
    question_text: str
    question_type: str
    options: tuple[str, ...]
    correct_answer: CorrectAnswer
    image_url: str | None = None
    points: int = DEFAULT_QUESTION_POINTS


@dataclass(frozen=True, slots=True)
class Quiz:
    """A named, shareable collection of questions with its settings."""

    quiz_id: str
    title: str
    topic: str
    difficulty: str
    shareable_slug: str
    created_by: str
    created_at: datetime
    description: str | None = None
    category: str | None = None
    tags: tuple[str, ...] = ()
    time_limit_minutes: int | None = None
    shuffle_questions: bool = False
    show_results_immediately: bool = True
    expires_at: datetime | None = None

    @property
    def has_time_limit(self) -> bool:
        return bool(self.time_limit_minutes) and self.time_limit_minutes > 0

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at is not None and self.expires_at < now


@dataclass(frozen=True, slots=True)
class Participant:
    """Ephemeral identity created each time someone takes a quiz."""

    participant_id: str
    name: str
    joined_at: datetime
    profile_photo: str | None = None


@dataclass(frozen=True, slots=True)
class AnswerRecord:
    """Per-question outcome stored with an attempt."""

    question_id: str
    selected_answer: str
    is_correct: bool


@dataclass(frozen=True, slots=True)
class Attempt:
    """One participant's scored pass through one quiz."""

    attempt_id: str
    quiz_id: str
    participant_id: str
    score: int
    time_taken_seconds: int
    attempted_at: datetime
    answers: tuple[AnswerRecord, ...] = ()


@dataclass(slots=True)
class GeneratedQuestion:
    """Question proposed by the generation service, not yet part of a quiz."""

    question: str
    type: str
    options: Any
    correct_answer: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "question": self.question,
            "type": self.type,
            "options": self.options,
            "correct_answer": self.correct_answer,
        }


@dataclass(slots=True)
class GenerationResult:
    """Outcome of a generation request: the questions and where they came from."""

    questions: list[GeneratedQuestion]
    source: str
    message: str = ""


@dataclass(slots=True)
class QuestionDraft:
    """Author-supplied question before validation."""

    question_text: str
    question_type: str
    options: list[str] = field(default_factory=list)
    correct_answer: str | list[str] = ""
    image_url: str | None = None
    points: int | None = None


@dataclass(slots=True)
class QuizDraft:
    """Author-supplied quiz before validation."""

    title: str
    topic: str
    difficulty: str
    questions: list[QuestionDraft]
    description: str | None = None
    category: str | None = None
    tags: list[str] = field(default_factory=list)
    time_limit_minutes: int | None = None
    shuffle_questions: bool = False
    show_results_immediately: bool = True
    expires_at: datetime | None = None
