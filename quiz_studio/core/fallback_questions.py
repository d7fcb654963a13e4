"""Deterministic sample questions used when remote generation is unavailable.

The topic is matched case-insensitively against an ordered list of keyword
buckets; the first bucket whose keywords appear in the topic supplies its
hand-written questions, otherwise a set of generic templates is used. A fixed
list of generic, topic-parameterized questions is always appended so that
obscure topics still get enough material. Nothing here is random.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from quiz_studio.constants.quiz_constants import (
    QUESTION_TYPE_MULTIPLE_CHOICE,
    QUESTION_TYPE_TRUE_FALSE,
    TRUE_FALSE_OPTIONS,
)
from quiz_studio.core.models import GeneratedQuestion


@dataclass(frozen=True, slots=True)
class _Template:
    question: str
    type: str
    options: tuple[str, ...]
    correct_answer: str

    def render(self, topic: str) -> GeneratedQuestion:
        return GeneratedQuestion(
            question=self.question.format(topic=topic),
            type=self.type,
            options=list(self.options),
            correct_answer=self.correct_answer,
        )


def _choice(question: str, options: tuple[str, ...], correct_answer: str) -> _Template:
    return _Template(question, QUESTION_TYPE_MULTIPLE_CHOICE, options, correct_answer)


def _true_false(question: str, correct_answer: str) -> _Template:
    return _Template(question, QUESTION_TYPE_TRUE_FALSE, TRUE_FALSE_OPTIONS, correct_answer)


_SCRIPTING_LANGUAGE = (
    _choice(
        "What is the correct way to declare a variable in JavaScript?",
        ("var myVar = 5;", "variable myVar = 5;", "v myVar = 5;", "declare myVar = 5;"),
        "var myVar = 5;",
    ),
    _true_false("JavaScript is a compiled language.", "False"),
    _choice(
        "Which method is used to add an element to the end of an array?",
        ("push()", "add()", "append()", "insert()"),
        "push()",
    ),
)

_GENERAL_PURPOSE_LANGUAGE = (
    _choice(
        "What is the correct file extension for Python files?",
        (".py", ".python", ".pt", ".pyt"),
        ".py",
    ),
    _true_false("Python is case-sensitive.", "True"),
    _choice(
        "Which function is used to display output in Python?",
        ("print()", "echo()", "display()", "show()"),
        "print()",
    ),
)

_HISTORY = (
    _choice("World War II ended in which year?", ("1944", "1945", "1946", "1947"), "1945"),
    _true_false("The Great Wall of China was built to keep out invaders.", "True"),
    _choice(
        "Who was the first person to walk on the moon?",
        ("Neil Armstrong", "Buzz Aldrin", "John Glenn", "Alan Shepard"),
        "Neil Armstrong",
    ),
)

_NATURAL_SCIENCE = (
    _choice("What is the chemical symbol for water?", ("H2O", "HO2", "H3O", "OH2"), "H2O"),
    _true_false("Light travels faster than sound.", "True"),
    _choice("How many planets are in our solar system?", ("7", "8", "9", "10"), "8"),
)

_GENERIC = (
    _choice(
        "What is a fundamental concept in {topic}?",
        ("Basic principles", "Advanced theories", "Historical context", "Future applications"),
        "Basic principles",
    ),
    _true_false("Is {topic} considered an important field of study?", "True"),
    _choice(
        "Which approach is commonly used in {topic}?",
        ("Systematic methodology", "Random approach", "Intuitive guessing", "Avoiding the subject"),
        "Systematic methodology",
    ),
    _true_false("Does {topic} require continuous learning and practice?", "True"),
    _choice(
        "What is the best way to master {topic}?",
        (
            "Regular practice and study",
            "Memorizing facts only",
            "Avoiding difficult concepts",
            "Relying on luck",
        ),
        "Regular practice and study",
    ),
)

_CROSS_TOPIC = (
    _choice(
        "Which of the following is most important when learning {topic}?",
        ("Practice and repetition", "Memorizing definitions", "Reading only", "Avoiding challenges"),
        "Practice and repetition",
    ),
    _true_false("{topic} concepts can be applied in real-world scenarios.", "True"),
    _choice(
        "What is the best resource for learning {topic}?",
        (
            "Multiple sources and practice",
            "Single textbook only",
            "Videos only",
            "Theory without practice",
        ),
        "Multiple sources and practice",
    ),
)


def _mentions(*keywords: str) -> Callable[[str], bool]:
    def predicate(topic_lower: str) -> bool:
        return any(keyword in topic_lower for keyword in keywords)

    return predicate


# First match wins.
TOPIC_BUCKETS: tuple[tuple[Callable[[str], bool], tuple[_Template, ...]], ...] = (
    (_mentions("javascript", "js"), _SCRIPTING_LANGUAGE),
    (_mentions("python"), _GENERAL_PURPOSE_LANGUAGE),
    (_mentions("history"), _HISTORY),
    (_mentions("science", "physics", "chemistry"), _NATURAL_SCIENCE),
)


def _templates_for(topic: str) -> tuple[_Template, ...]:
    topic_lower = topic.lower()
    for predicate, templates in TOPIC_BUCKETS:
        if predicate(topic_lower):
            return templates
    return _GENERIC


def available_fallback_count(topic: str) -> int:
    """Number of fallback questions that exist for ``topic``."""
    return len(_templates_for(topic)) + len(_CROSS_TOPIC)


def build_fallback_questions(topic: str, count: int) -> list[GeneratedQuestion]:
    """Return the first ``min(count, available)`` fallback questions for ``topic``."""
    if count < 1:
        raise ValueError("count must be at least 1.")
    templates = _templates_for(topic) + _CROSS_TOPIC
    return [template.render(topic) for template in templates[:count]]
