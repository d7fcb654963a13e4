"""Business logic shared by the HTTP layer: authoring, generation, taking and results."""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable
from datetime import datetime, timezone
import logging
from threading import Lock
from uuid import uuid4

from quiz_studio.constants.generation_constants import AVAILABLE_MODELS, DEFAULT_MODEL
from quiz_studio.constants.quiz_constants import FINISHED_SESSION_LIMIT, TIMER_TICK_SECONDS
from quiz_studio.core.errors import (
    GenerationInProgressError,
    NotQuizOwnerError,
    QuizValidationError,
    SessionNotFoundError,
)
from quiz_studio.core.models import GenerationResult, Participant, Question, Quiz, QuizDraft
from quiz_studio.core.question_generator import QuestionGenerationService
from quiz_studio.core.quiz_validation import prepare_quiz
from quiz_studio.core.scoring import ScoreResult
from quiz_studio.core.services.quiz_repository import QuizRepository
from quiz_studio.core.services.quiz_session import QuizSession
from quiz_studio.core.services.results_report import (
    ResultRow,
    ResultsSummary,
    export_attempts_csv,
    results_filename,
    summarize,
)
from quiz_studio.core.share_links import extract_slug

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuizManager:
    """Facade over the generator, the repository and the live quiz-taking sessions."""

    def __init__(
        self,
        generator: QuestionGenerationService,
        repository: QuizRepository | None = None,
        tick_interval: float | None = TIMER_TICK_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
        finished_session_limit: int = FINISHED_SESSION_LIMIT,
    ) -> None:
        self._lock = Lock()
        self._generator = generator
        self._repository = repository or QuizRepository()
        self._tick_interval = tick_interval
        self._clock = clock
        self._sessions: dict[str, QuizSession] = {}
        # Completed sessions, oldest first; kept only so results stay readable after submit.
        self._finished: OrderedDict[str, QuizSession] = OrderedDict()
        self._finished_session_limit = finished_session_limit
        self._generating: set[str] = set()

    # --- Question generation ---

    def list_models(self) -> list[dict[str, str]]:
        return [{"id": model_id, "name": name} for model_id, name in AVAILABLE_MODELS]

    def generate_questions(
        self,
        requester_id: str,
        topic: str,
        difficulty: str,
        count: int,
        model: str | None = None,
    ) -> GenerationResult:
        with self._lock:
            if requester_id in self._generating:
                raise GenerationInProgressError("Question generation is already in progress.")
            self._generating.add(requester_id)
        try:
            return self._generator.generate(topic, difficulty, count, model or DEFAULT_MODEL)
        finally:
            with self._lock:
                self._generating.discard(requester_id)

    # --- Authoring & dashboard ---

    def create_quiz(self, creator_id: str, draft: QuizDraft) -> Quiz:
        prepared = prepare_quiz(draft)
        with self._lock:
            quiz = self._repository.create_quiz(prepared, creator_id)
        logger.info(
            "Quiz %s created by %s with %s questions",
            quiz.quiz_id,
            creator_id,
            len(prepared.questions),
        )
        return quiz

    def list_creator_quizzes(self, creator_id: str) -> list[tuple[Quiz, int, int]]:
        """Own quizzes newest first, each with its question and attempt counts."""
        with self._lock:
            return [
                (
                    quiz,
                    self._repository.get_question_count(quiz.quiz_id),
                    self._repository.get_attempt_count(quiz.quiz_id),
                )
                for quiz in self._repository.list_quizzes_by_creator(creator_id)
            ]

    def get_owned_quiz(self, creator_id: str, quiz_id: str) -> tuple[Quiz, list[Question]]:
        with self._lock:
            quiz = self._owned_quiz(creator_id, quiz_id)
            return quiz, self._repository.get_questions(quiz_id)

    def get_results(
        self, creator_id: str, quiz_id: str
    ) -> tuple[Quiz, list[ResultRow], ResultsSummary]:
        with self._lock:
            quiz = self._owned_quiz(creator_id, quiz_id)
            rows = self._result_rows(quiz_id)
        return quiz, rows, summarize(rows)

    def export_results_csv(self, creator_id: str, quiz_id: str) -> tuple[str, str]:
        """Return ``(download filename, CSV text)``."""
        quiz, rows, _ = self.get_results(creator_id, quiz_id)
        return results_filename(quiz.title), export_attempts_csv(rows)

    # --- Taking a quiz ---

    def join_quiz(
        self, link: str, participant_name: str, profile_photo: str | None = None
    ) -> QuizSession:
        """Resolve a join link and start a session for the named participant."""
        name = participant_name.strip()
        if not name:
            raise QuizValidationError("participant_name", "Please enter your name")
        slug = extract_slug(link)

        with self._lock:
            quiz = self._repository.get_open_quiz_by_slug(slug)
            questions = self._repository.get_questions(quiz.quiz_id)
            participant = Participant(
                participant_id=uuid4().hex,
                name=name,
                joined_at=self._clock(),
                profile_photo=profile_photo or None,
            )
            session = QuizSession(
                quiz,
                questions,
                participant,
                on_submitted=self._persist_attempt,
                tick_interval=self._tick_interval,
            )
            self._sessions[session.session_id] = session

        session.start()
        logger.info("%s joined quiz %s (session %s)", name, quiz.quiz_id, session.session_id)
        return session

    def get_session(self, session_id: str) -> QuizSession:
        with self._lock:
            session = self._sessions.get(session_id) or self._finished.get(session_id)
        if session is None:
            raise SessionNotFoundError("Quiz session not found")
        return session

    def select_answer(self, session_id: str, question_id: str, answer: str | list[str]) -> None:
        self.get_session(session_id).select_answer(question_id, answer)

    def toggle_option(self, session_id: str, question_id: str, option: str) -> list[str]:
        return self.get_session(session_id).toggle_option(question_id, option)

    def submit_session(self, session_id: str) -> ScoreResult:
        """Score the session and persist the attempt.

        Calling this again on a session whose attempt failed to persist retries
        the write with the score computed the first time.
        """
        session = self.get_session(session_id)
        already_scored = session.score is not None
        result = session.submit()
        if already_scored:
            self._persist_attempt(session, result)
        return result

    def abandon_session(self, session_id: str) -> None:
        session = self.get_session(session_id)
        session.abandon()
        with self._lock:
            self._sessions.pop(session_id, None)
            self._finished.pop(session_id, None)
        logger.info("Session %s abandoned", session_id)

    def go_to_question(self, session_id: str, position: int) -> Question:
        return self.get_session(session_id).go_to(position)

    def active_session_count(self) -> int:
        with self._lock:
            return len(self._sessions)

    # --- Internals ---

    def _persist_attempt(self, session: QuizSession, result: ScoreResult) -> None:
        # Write and completion share one critical section so a pass is recorded once.
        with self._lock:
            if session.attempt is not None:
                return
            participant = self._repository.add_participant(session.participant)
            attempt = self._repository.add_attempt(
                session.quiz.quiz_id,
                participant.participant_id,
                result,
                session.time_taken_seconds or 0,
            )
            session.complete(attempt)
            self._retire_session(session)
        logger.info(
            "Attempt %s recorded for quiz %s: score %s%%%s",
            attempt.attempt_id,
            session.quiz.quiz_id,
            attempt.score,
            " (time limit reached)" if session.was_forced else "",
        )

    def _retire_session(self, session: QuizSession) -> None:
        """Move a completed session out of the live map; caller holds the lock."""
        self._sessions.pop(session.session_id, None)
        self._finished[session.session_id] = session
        while len(self._finished) > self._finished_session_limit:
            self._finished.popitem(last=False)

    def _owned_quiz(self, creator_id: str, quiz_id: str) -> Quiz:
        quiz = self._repository.get_quiz(quiz_id)
        if quiz.created_by != creator_id:
            raise NotQuizOwnerError("Only the quiz creator can view this quiz")
        return quiz

    def _result_rows(self, quiz_id: str) -> list[ResultRow]:
        return [
            ResultRow(
                participant_name=self._repository.get_participant(attempt.participant_id).name,
                score=attempt.score,
                time_taken_seconds=attempt.time_taken_seconds,
                attempted_at=attempt.attempted_at,
            )
            for attempt in self._repository.list_attempts(quiz_id)
        ]
