"""Shareable quiz slugs and parsing of the links participants paste in."""

from __future__ import annotations

import secrets
import string
import time

from quiz_studio.core.errors import InvalidJoinLinkError

SLUG_PREFIX = "quiz-"
_SUFFIX_ALPHABET = string.digits + string.ascii_lowercase
_SUFFIX_LENGTH = 9


def generate_shareable_slug() -> str:
    """Return ``quiz-<epoch milliseconds>-<9 random base-36 characters>``."""
    millis = int(time.time() * 1000)
    suffix = "".join(secrets.choice(_SUFFIX_ALPHABET) for _ in range(_SUFFIX_LENGTH))
    return f"{SLUG_PREFIX}{millis}-{suffix}"


def extract_slug(link: str) -> str:
    """Pull the slug out of a full ``.../quiz/<slug>`` URL or a bare ``quiz-...`` token."""
    cleaned = link.strip()
    if not cleaned:
        raise InvalidJoinLinkError("Please enter a quiz link")
    if "/quiz/" in cleaned:
        slug = cleaned.split("/quiz/", 1)[1].split("?", 1)[0].strip("/")
    elif cleaned.startswith(SLUG_PREFIX):
        slug = cleaned
    else:
        raise InvalidJoinLinkError("Invalid quiz link format")
    if not slug:
        raise InvalidJoinLinkError("Invalid quiz link")
    return slug
