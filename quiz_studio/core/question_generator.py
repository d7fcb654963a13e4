"""Question generation backed by a hosted chat-completion model.

Architecture note:
    Generation is single-attempt. One request goes to the completion endpoint;
    if anything about it is unusable (no API key, non-2xx status, missing
    content, unparsable or empty JSON) the deterministic fallback bank answers
    instead. Callers therefore always receive questions and only learn from
    ``source`` whether a model wrote them. No retry is attempted.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from quiz_studio.constants.generation_constants import (
    COMPLETION_API_URL,
    COMPLETION_MAX_TOKENS,
    COMPLETION_TEMPERATURE,
    GENERATION_TIMEOUT_SECONDS,
    MESSAGE_ERROR,
    MESSAGE_INVALID_FORMAT,
    MESSAGE_NO_CONTENT,
    MESSAGE_NO_VALID_QUESTIONS,
    MESSAGE_NOT_CONFIGURED,
    MESSAGE_REQUEST_FAILED,
    MESSAGE_SUCCESS_TEMPLATE,
    SOURCE_AI,
    SOURCE_FALLBACK,
)
from quiz_studio.core.fallback_questions import available_fallback_count, build_fallback_questions
from quiz_studio.core.models import GeneratedQuestion, GenerationResult

logger = logging.getLogger(__name__)

REQUIRED_FIELDS: tuple[str, ...] = ("question", "type", "options", "correct_answer")

_OPENING_FENCE = re.compile(r"^```(?:json)?\n?")
_CLOSING_FENCE = re.compile(r"\n?```$")


def build_prompt(topic: str, difficulty: str, count: int) -> str:
    return (
        f"Generate {count} {difficulty} level quiz questions about {topic}.\n"
        "\n"
        "Return ONLY a valid JSON array with this exact format:\n"
        "[\n"
        "  {\n"
        '    "question": "Question text here?",\n'
        '    "type": "multiple_choice",\n'
        '    "options": ["Option A", "Option B", "Option C", "Option D"],\n'
        '    "correct_answer": "Option A"\n'
        "  }\n"
        "]\n"
        "\n"
        "Rules:\n"
        "- Mix multiple choice and true/false questions\n"
        "- For multiple choice: provide exactly 4 options\n"
        '- For true/false: use options ["True", "False"]\n'
        "- Make questions clear and unambiguous\n"
        "- Ensure correct_answer matches exactly one of the options\n"
        "- No explanations, just the JSON array"
    )


def strip_code_fence(content: str) -> str:
    """Remove one enclosing ``` or ```json fence, if the content starts with one."""
    cleaned = content.strip()
    if cleaned.startswith("```"):
        cleaned = _OPENING_FENCE.sub("", cleaned, count=1)
        cleaned = _CLOSING_FENCE.sub("", cleaned, count=1)
    return cleaned


def select_valid_questions(items: list[Any]) -> list[GeneratedQuestion]:
    """Keep the elements that carry every required field with a truthy value."""
    valid: list[GeneratedQuestion] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        if not all(item.get(name) for name in REQUIRED_FIELDS):
            continue
        valid.append(
            GeneratedQuestion(
                question=item["question"],
                type=item["type"],
                options=item["options"],
                correct_answer=item["correct_answer"],
            )
        )
    return valid


def _extract_content(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    if not isinstance(first, dict):
        return None
    message = first.get("message")
    if not isinstance(message, dict):
        return None
    content = message.get("content")
    if not isinstance(content, str) or not content:
        return None
    return content


class QuestionGenerationService:
    """Drafts quiz questions with a remote model, falling back to a local bank."""

    def __init__(
        self,
        api_key: str | None,
        api_url: str = COMPLETION_API_URL,
        timeout_seconds: float = GENERATION_TIMEOUT_SECONDS,
        client: httpx.Client | None = None,
    ) -> None:
        self._api_key = api_key or None
        self._api_url = api_url
        self._client = client or httpx.Client(timeout=timeout_seconds)

    @property
    def is_configured(self) -> bool:
        return self._api_key is not None

    def close(self) -> None:
        self._client.close()

    def generate(self, topic: str, difficulty: str, count: int, model: str) -> GenerationResult:
        """Return questions for ``topic``; never raises."""
        if count < 1:
            logger.warning("Requested %s questions; generating 1 instead.", count)
            count = 1

        if not self.is_configured:
            logger.info("Completion API key not configured, using fallback questions")
            return self._fallback(topic, count, MESSAGE_NOT_CONFIGURED)

        try:
            return self._generate_remote(topic, difficulty, count, model)
        except Exception:
            logger.exception("Error generating questions for topic %r", topic)
            return self._fallback(topic, count, MESSAGE_ERROR)

    def _generate_remote(
        self, topic: str, difficulty: str, count: int, model: str
    ) -> GenerationResult:
        logger.info("Requesting %s questions about %r from model %s", count, topic, model)
        response = self._client.post(
            self._api_url,
            headers={"Authorization": f"Bearer {self._api_key}"},
            json={
                "model": model,
                "messages": [{"role": "user", "content": build_prompt(topic, difficulty, count)}],
                "temperature": COMPLETION_TEMPERATURE,
                "max_tokens": COMPLETION_MAX_TOKENS,
            },
        )
        logger.debug("Completion API responded with status %s", response.status_code)

        if not response.is_success:
            logger.warning(
                "Completion API error %s: %s", response.status_code, response.text[:500]
            )
            return self._fallback(topic, count, MESSAGE_REQUEST_FAILED)

        content = _extract_content(response.json())
        if content is None:
            logger.warning("Completion API returned no content")
            return self._fallback(topic, count, MESSAGE_NO_CONTENT)

        parsed = json.loads(strip_code_fence(content))
        if not isinstance(parsed, list):
            logger.warning("Completion content was not a JSON array")
            return self._fallback(topic, count, MESSAGE_INVALID_FORMAT)

        questions = select_valid_questions(parsed)
        if not questions:
            logger.warning("Completion content held no valid questions")
            return self._fallback(topic, count, MESSAGE_NO_VALID_QUESTIONS)

        return GenerationResult(
            questions=questions,
            source=SOURCE_AI,
            message=MESSAGE_SUCCESS_TEMPLATE.format(count=len(questions)),
        )

    @staticmethod
    def _fallback(topic: str, count: int, message: str) -> GenerationResult:
        available = available_fallback_count(topic)
        if count > available:
            logger.info(
                "Only %s fallback questions exist for %r; %s were requested", available, topic, count
            )
        return GenerationResult(
            questions=build_fallback_questions(topic, count),
            source=SOURCE_FALLBACK,
            message=message,
        )
