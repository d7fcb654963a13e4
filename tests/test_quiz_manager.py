from __future__ import annotations

from datetime import datetime, timezone
import threading
import time

import pytest

from quiz_studio.core.errors import (
    GenerationInProgressError,
    InvalidJoinLinkError,
    NotQuizOwnerError,
    PersistenceError,
    QuizExpiredError,
    QuizValidationError,
    SessionNotFoundError,
)
from quiz_studio.core.models import GenerationResult, MultiAnswer, QuestionDraft, QuizDraft
from quiz_studio.core.question_generator import QuestionGenerationService
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.core.services.quiz_repository import QuizRepository
from quiz_studio.core.services.quiz_session import SessionState


class FlakyRepository(QuizRepository):
    """Fails the first attempt write, then behaves normally."""

    def __init__(self) -> None:
        super().__init__()
        self.failures_left = 1

    def add_attempt(self, *args, **kwargs):
        if self.failures_left:
            self.failures_left -= 1
            raise PersistenceError("Failed to save attempt")
        return super().add_attempt(*args, **kwargs)


@pytest.fixture
def manager():
    generator = QuestionGenerationService(api_key=None)
    yield QuizManager(generator=generator, tick_interval=None)
    generator.close()


def _answer_all_correctly(manager: QuizManager, session_id: str) -> None:
    for question in manager.get_session(session_id).get_questions():
        answer = question.correct_answer
        value = list(answer.values) if isinstance(answer, MultiAnswer) else answer.value
        manager.select_answer(session_id, question.question_id, value)


def test_full_take_records_an_attempt(manager, quiz_draft):
    quiz = manager.create_quiz("author-1", quiz_draft)
    session = manager.join_quiz(f"https://quiz.example.com/quiz/{quiz.shareable_slug}", " Ada ")
    _answer_all_correctly(manager, session.session_id)

    result = manager.submit_session(session.session_id)

    assert result.score == 100
    assert session.state is SessionState.COMPLETED
    assert session.attempt.score == 100
    _, rows, summary = manager.get_results("author-1", quiz.quiz_id)
    assert [row.participant_name for row in rows] == ["Ada"]
    assert summary.total_attempts == 1
    filename, document = manager.export_results_csv("author-1", quiz.quiz_id)
    assert filename == "World Capitals-results.csv"
    assert document.splitlines()[1].startswith('"Ada",100,')


def test_join_validates_name_and_link(manager, quiz_draft):
    quiz = manager.create_quiz("author-1", quiz_draft)

    with pytest.raises(QuizValidationError) as excinfo:
        manager.join_quiz(quiz.shareable_slug, "   ")
    assert excinfo.value.message == "Please enter your name"

    with pytest.raises(InvalidJoinLinkError):
        manager.join_quiz("not a link", "Ada")


def test_expired_quiz_cannot_be_joined(manager, quiz_draft):
    quiz_draft.expires_at = datetime(2000, 1, 1, tzinfo=timezone.utc)
    quiz = manager.create_quiz("author-1", quiz_draft)

    with pytest.raises(QuizExpiredError):
        manager.join_quiz(quiz.shareable_slug, "Ada")


def test_results_are_for_the_creator_only(manager, quiz_draft):
    quiz = manager.create_quiz("author-1", quiz_draft)

    with pytest.raises(NotQuizOwnerError):
        manager.get_results("author-2", quiz.quiz_id)
    with pytest.raises(NotQuizOwnerError):
        manager.get_owned_quiz("author-2", quiz.quiz_id)


def test_dashboard_lists_counts(manager, quiz_draft):
    quiz = manager.create_quiz("author-1", quiz_draft)
    session = manager.join_quiz(quiz.shareable_slug, "Ada")
    manager.submit_session(session.session_id)

    [(listed, question_count, attempt_count)] = manager.list_creator_quizzes("author-1")

    assert listed == quiz
    assert question_count == 4
    assert attempt_count == 1


def test_failed_persist_can_be_retried():
    generator = QuestionGenerationService(api_key=None)
    repository = FlakyRepository()
    manager = QuizManager(generator=generator, repository=repository, tick_interval=None)

    quiz = manager.create_quiz(
        "author-1",
        QuizDraft(
            title="Retry",
            topic="Storage",
            difficulty="easy",
            questions=[QuestionDraft("2 + 2?", "fill_blank", correct_answer="4")],
        ),
    )
    session = manager.join_quiz(quiz.shareable_slug, "Ada")
    manager.select_answer(session.session_id, session.get_questions()[0].question_id, "4")

    with pytest.raises(PersistenceError):
        manager.submit_session(session.session_id)
    assert session.state is SessionState.SUBMITTED
    assert repository.get_attempt_count(quiz.quiz_id) == 0

    result = manager.submit_session(session.session_id)

    assert result.score == 100
    assert session.state is SessionState.COMPLETED
    assert repository.get_attempt_count(quiz.quiz_id) == 1
    generator.close()


def test_time_up_persists_forced_attempt(manager, quiz_draft):
    quiz_draft.time_limit_minutes = 1
    quiz = manager.create_quiz("author-1", quiz_draft)
    session = manager.join_quiz(quiz.shareable_slug, "Ada")

    for _ in range(60):
        session.tick()

    assert session.was_forced
    assert session.state is SessionState.COMPLETED
    _, rows, _ = manager.get_results("author-1", quiz.quiz_id)
    assert rows[0].score == 0


def test_abandoned_session_is_forgotten(manager, quiz_draft):
    quiz = manager.create_quiz("author-1", quiz_draft)
    session = manager.join_quiz(quiz.shareable_slug, "Ada")

    manager.abandon_session(session.session_id)

    assert session.state is SessionState.ABANDONED
    with pytest.raises(SessionNotFoundError):
        manager.get_session(session.session_id)
    _, rows, _ = manager.get_results("author-1", quiz.quiz_id)
    assert rows == []


def test_generation_is_not_reentrant_per_requester():
    class ReentrantGenerator:
        def __init__(self) -> None:
            self.manager: QuizManager | None = None
            self.nested_error: Exception | None = None

        def generate(self, topic, difficulty, count, model):
            try:
                self.manager.generate_questions("author-1", topic, difficulty, count, model)
            except GenerationInProgressError as exc:
                self.nested_error = exc
            return GenerationResult(questions=[], source="fallback", message="stub")

    generator = ReentrantGenerator()
    manager = QuizManager(generator=generator, tick_interval=None)
    generator.manager = manager

    result = manager.generate_questions("author-1", "Python", "easy", 3)

    assert result.message == "stub"
    assert isinstance(generator.nested_error, GenerationInProgressError)
    assert manager.generate_questions("author-1", "Python", "easy", 3).message == "stub"


def test_generation_uses_default_model(manager):
    result = manager.generate_questions("author-1", "JavaScript", "easy", 2)
    assert result.source == "fallback"
    assert len(result.questions) == 2
    assert len(manager.list_models()) == 8


class GatedRepository(QuizRepository):
    """Holds the first attempt write open until ``release`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.entered = threading.Event()
        self.release = threading.Event()

    def add_attempt(self, *args, **kwargs):
        self.entered.set()
        self.release.wait(timeout=5)
        return super().add_attempt(*args, **kwargs)


def test_concurrent_submits_record_one_attempt(quiz_draft):
    generator = QuestionGenerationService(api_key=None)
    repository = GatedRepository()
    manager = QuizManager(generator=generator, repository=repository, tick_interval=None)
    quiz = manager.create_quiz("author-1", quiz_draft)
    session = manager.join_quiz(quiz.shareable_slug, "Ada")
    results = []
    errors = []

    def submit() -> None:
        try:
            results.append(manager.submit_session(session.session_id))
        except Exception as exc:
            errors.append(exc)

    first = threading.Thread(target=submit)
    first.start()
    assert repository.entered.wait(timeout=5)
    second = threading.Thread(target=submit)
    second.start()
    time.sleep(0.05)
    repository.release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert errors == []
    assert len(results) == 2
    assert results[0] is results[1]
    assert repository.get_attempt_count(quiz.quiz_id) == 1
    assert session.state is SessionState.COMPLETED
    generator.close()


def test_completed_sessions_leave_the_live_map(quiz_draft):
    generator = QuestionGenerationService(api_key=None)
    manager = QuizManager(generator=generator, tick_interval=None, finished_session_limit=2)
    quiz = manager.create_quiz("author-1", quiz_draft)

    session_ids = []
    for index in range(5):
        session = manager.join_quiz(quiz.shareable_slug, f"Player {index}")
        manager.submit_session(session.session_id)
        session_ids.append(session.session_id)

    assert manager.active_session_count() == 0
    assert manager.get_session(session_ids[-1]).state is SessionState.COMPLETED
    assert manager.get_session(session_ids[-2]).attempt is not None
    with pytest.raises(SessionNotFoundError):
        manager.get_session(session_ids[0])
    _, rows, _ = manager.get_results("author-1", quiz.quiz_id)
    assert len(rows) == 5
    generator.close()


def test_open_session_stays_live_until_submitted(manager, quiz_draft):
    quiz = manager.create_quiz("author-1", quiz_draft)
    session = manager.join_quiz(quiz.shareable_slug, "Ada")

    assert manager.active_session_count() == 1
    assert manager.go_to_question(session.session_id, 1) is session.get_questions()[1]
    assert session.build_snapshot()["position"] == 1

    manager.submit_session(session.session_id)
    assert manager.active_session_count() == 0
