"""Conversions between stored answer strings and typed correct answers.

Multi-select answers are persisted as one string with the options joined by
``", "``; every other question type stores its single answer verbatim. The
helpers here are the only place that knows about that storage form.
"""

from __future__ import annotations

from collections.abc import Iterable

from quiz_studio.constants.quiz_constants import (
    MULTI_SELECT_SEPARATOR,
    QUESTION_TYPE_MULTI_SELECT,
)
from quiz_studio.core.models import CorrectAnswer, MultiAnswer, SingleAnswer


def decode_correct_answer(question_type: str, stored: str) -> CorrectAnswer:
    """Turn a persisted answer string into the typed answer for ``question_type``."""
    if question_type == QUESTION_TYPE_MULTI_SELECT:
        return MultiAnswer(values=tuple(stored.split(MULTI_SELECT_SEPARATOR)))
    return SingleAnswer(value=stored)


def encode_correct_answer(answer: CorrectAnswer) -> str:
    if isinstance(answer, MultiAnswer):
        return MULTI_SELECT_SEPARATOR.join(answer.values)
    return answer.value


def coerce_authored_answer(question_type: str, raw: str | Iterable[str]) -> CorrectAnswer:
    """Build a typed answer from what an author submitted (a string or a list)."""
    if isinstance(raw, str):
        return decode_correct_answer(question_type, raw)
    values = tuple(raw)
    if question_type == QUESTION_TYPE_MULTI_SELECT:
        return MultiAnswer(values=values)
    return SingleAnswer(value=MULTI_SELECT_SEPARATOR.join(values))


def decode_selection(selection: str | Iterable[str] | None) -> list[str]:
    """A participant's multi-select answer as a list; stored strings are split."""
    if selection is None:
        return []
    if isinstance(selection, str):
        return selection.split(MULTI_SELECT_SEPARATOR) if selection else []
    return list(selection)


def encode_selection(selection: str | Iterable[str] | None) -> str:
    """Storage form of a participant's selection."""
    if selection is None:
        return ""
    if isinstance(selection, str):
        return selection
    if isinstance(selection, (set, frozenset)):
        selection = sorted(selection)
    return MULTI_SELECT_SEPARATOR.join(selection)
