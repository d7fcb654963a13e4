"""In-memory store for quizzes, questions, participants and attempts.

Architecture note:
    The deployed application keeps these records in a managed database. This
    class implements the same create/read/query contract in process memory so
    the service runs and is testable without one. Each write is an independent
    step; nothing here is transactional across collections.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from uuid import uuid4

from quiz_studio.core.errors import QuizExpiredError, QuizNotFoundError
from quiz_studio.core.models import Attempt, Participant, Question, Quiz
from quiz_studio.core.quiz_validation import PreparedQuiz
from quiz_studio.core.scoring import ScoreResult
from quiz_studio.core.share_links import generate_shareable_slug


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizRepository:
    """Keeps every collection in dictionaries and lists, in insertion order."""

    def __init__(
        self,
        slug_factory: Callable[[], str] = generate_shareable_slug,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._slug_factory = slug_factory
        self._clock = clock
        self._quizzes: dict[str, Quiz] = {}
        self._quiz_ids_by_slug: dict[str, str] = {}
        self._questions: dict[str, list[Question]] = {}
        self._participants: dict[str, Participant] = {}
        self._attempts: dict[str, list[Attempt]] = {}

    # --- Quizzes ---

    def create_quiz(self, prepared: PreparedQuiz, created_by: str) -> Quiz:
        """Store a validated quiz and its questions under a fresh unique slug."""
        quiz = Quiz(
            quiz_id=uuid4().hex,
            title=prepared.title,
            topic=prepared.topic,
            difficulty=prepared.difficulty,
            shareable_slug=self._unique_slug(),
            created_by=created_by,
            created_at=self._clock(),
            description=prepared.description,
            category=prepared.category,
            tags=prepared.tags,
            time_limit_minutes=prepared.time_limit_minutes,
            shuffle_questions=prepared.shuffle_questions,
            show_results_immediately=prepared.show_results_immediately,
            expires_at=prepared.expires_at,
        )
        self._quizzes[quiz.quiz_id] = quiz
        self._quiz_ids_by_slug[quiz.shareable_slug] = quiz.quiz_id
        self._attempts[quiz.quiz_id] = []
        self.add_questions(quiz.quiz_id, prepared)
        return quiz

    def add_questions(self, quiz_id: str, prepared: PreparedQuiz) -> list[Question]:
        questions = [
            Question(
                question_id=uuid4().hex,
                quiz_id=quiz_id,
                question_text=item.question_text,
                question_type=item.question_type,
                options=item.options,
                correct_answer=item.correct_answer,
                image_url=item.image_url,
                points=item.points,
            )
            for item in prepared.questions
        ]
        self._questions.setdefault(quiz_id, []).extend(questions)
        return questions

    def get_quiz(self, quiz_id: str) -> Quiz:
        quiz = self._quizzes.get(quiz_id)
        if quiz is None:
            raise QuizNotFoundError("Quiz not found")
        return quiz

    def get_quiz_by_slug(self, slug: str) -> Quiz:
        quiz_id = self._quiz_ids_by_slug.get(slug)
        if quiz_id is None:
            raise QuizNotFoundError("Quiz not found")
        return self._quizzes[quiz_id]

    def get_open_quiz_by_slug(self, slug: str) -> Quiz:
        """Resolve a slug for a participant, rejecting expired quizzes."""
        quiz = self.get_quiz_by_slug(slug)
        if quiz.is_expired(self._clock()):
            raise QuizExpiredError("This quiz has expired")
        return quiz

    def list_quizzes_by_creator(self, created_by: str) -> list[Quiz]:
        """Newest first."""
        owned = [quiz for quiz in self._quizzes.values() if quiz.created_by == created_by]
        return sorted(owned, key=lambda quiz: quiz.created_at, reverse=True)

    def get_questions(self, quiz_id: str) -> list[Question]:
        """Questions in the order they were stored."""
        self.get_quiz(quiz_id)
        return list(self._questions.get(quiz_id, []))

    def get_question_count(self, quiz_id: str) -> int:
        return len(self._questions.get(quiz_id, []))

    # --- Participants & attempts ---

    def add_participant(self, participant: Participant) -> Participant:
        """Store the participant a session was started with."""
        self._participants[participant.participant_id] = participant
        return participant

    def get_participant(self, participant_id: str) -> Participant:
        return self._participants[participant_id]

    def add_attempt(
        self,
        quiz_id: str,
        participant_id: str,
        result: ScoreResult,
        time_taken_seconds: int,
    ) -> Attempt:
        self.get_quiz(quiz_id)
        attempt = Attempt(
            attempt_id=uuid4().hex,
            quiz_id=quiz_id,
            participant_id=participant_id,
            score=result.score,
            time_taken_seconds=time_taken_seconds,
            attempted_at=self._clock(),
            answers=result.answer_records(),
        )
        self._attempts[quiz_id].append(attempt)
        return attempt

    def list_attempts(self, quiz_id: str) -> list[Attempt]:
        """Highest score first, faster attempts first among equal scores."""
        self.get_quiz(quiz_id)
        return sorted(
            self._attempts.get(quiz_id, []),
            key=lambda attempt: (-attempt.score, attempt.time_taken_seconds),
        )

    def get_attempt_count(self, quiz_id: str) -> int:
        return len(self._attempts.get(quiz_id, []))

    # --- Internals ---

    def _unique_slug(self) -> str:
        while True:
            slug = self._slug_factory()
            if slug not in self._quiz_ids_by_slug:
                return slug
