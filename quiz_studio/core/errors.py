"""Exception types raised by the quiz core and translated by the API layer."""

from __future__ import annotations


class QuizValidationError(ValueError):
    """Raised when a quiz draft fails validation before anything is written."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class InvalidJoinLinkError(ValueError):
    """Raised when a join link does not contain a shareable slug."""


class QuizNotFoundError(LookupError):
    """Raised when a quiz id or shareable slug does not resolve."""


class QuizExpiredError(LookupError):
    """Raised when a quiz is past its expiry date."""


class NotQuizOwnerError(PermissionError):
    """Raised when someone other than the creator asks for creator-only data."""


class PersistenceError(RuntimeError):
    """Raised when a write to the data store fails."""


class SessionNotFoundError(LookupError):
    """Raised when a quiz-taking session id is unknown."""


class SessionClosedError(RuntimeError):
    """Raised when an answer is mutated after the session was submitted or left."""


class GenerationInProgressError(RuntimeError):
    """Raised when question generation is requested while one is outstanding."""
