"""FastAPI server that exposes the authoring, generation and quiz-taking endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Literal
from urllib.parse import quote

from fastapi import Depends, FastAPI, Header, HTTPException, Response
from pydantic import BaseModel, Field
import uvicorn

from quiz_studio.constants.about import APP_ABOUT_TEXT, APP_NAME, APP_VERSION
from quiz_studio.constants.generation_constants import MAX_GENERATED_QUESTIONS
from quiz_studio.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT, USER_ID_HEADER
from quiz_studio.core.answer_codec import encode_correct_answer
from quiz_studio.core.errors import (
    GenerationInProgressError,
    NotQuizOwnerError,
    PersistenceError,
    QuizExpiredError,
    QuizNotFoundError,
    QuizValidationError,
    SessionClosedError,
    SessionNotFoundError,
)
from quiz_studio.core.models import Question, QuestionDraft, Quiz, QuizDraft
from quiz_studio.core.question_renderer import renderer
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.core.scoring import ScoreResult
from quiz_studio.core.services.quiz_session import QuizSession
from quiz_studio.core.services.results_report import format_time, score_band

# Checked in order; the first matching type decides the status code.
_ERROR_STATUS: tuple[tuple[type[Exception], int], ...] = (
    (QuizExpiredError, 410),
    (QuizNotFoundError, 404),
    (SessionNotFoundError, 404),
    (KeyError, 404),
    (NotQuizOwnerError, 403),
    (PersistenceError, 503),
    (SessionClosedError, 409),
    (GenerationInProgressError, 409),
    (ValueError, 422),
)
_HANDLED_ERRORS = tuple(error_type for error_type, _ in _ERROR_STATUS)


def _to_http_error(exc: Exception) -> HTTPException:
    status_code = next(code for error_type, code in _ERROR_STATUS if isinstance(exc, error_type))
    if isinstance(exc, QuizValidationError):
        return HTTPException(status_code=status_code, detail={"field": exc.field, "message": exc.message})
    if isinstance(exc, KeyError):
        return HTTPException(status_code=status_code, detail=f"Question {exc.args[0]} not found")
    return HTTPException(status_code=status_code, detail=str(exc))


class GenerateQuestionsPayload(BaseModel):
    """Payload schema for AI-assisted question drafting."""

    topic: str = Field(min_length=1)
    difficulty: Literal["easy", "medium", "hard"]
    count: int = Field(ge=1, le=MAX_GENERATED_QUESTIONS)
    model: str | None = None


class QuestionPayload(BaseModel):
    question_text: str
    question_type: str
    options: list[str] = Field(default_factory=list)
    correct_answer: str | list[str] = ""
    image_url: str | None = None
    points: int | None = None


class QuizPayload(BaseModel):
    """Payload schema for creating a quiz together with its questions."""

    title: str
    topic: str
    difficulty: str
    questions: list[QuestionPayload]
    description: str | None = None
    category: str | None = None
    tags: list[str] = Field(default_factory=list)
    time_limit_minutes: int | None = None
    shuffle_questions: bool = False
    show_results_immediately: bool = True
    expires_at: datetime | None = None

    def to_draft(self) -> QuizDraft:
        return QuizDraft(
            title=self.title,
            topic=self.topic,
            difficulty=self.difficulty,
            questions=[QuestionDraft(**question.model_dump()) for question in self.questions],
            description=self.description,
            category=self.category,
            tags=list(self.tags),
            time_limit_minutes=self.time_limit_minutes,
            shuffle_questions=self.shuffle_questions,
            show_results_immediately=self.show_results_immediately,
            expires_at=self.expires_at,
        )


class JoinPayload(BaseModel):
    """Payload schema for joining a quiz from a shared link."""

    link: str
    name: str
    profile_photo: str | None = None


class AnswerPayload(BaseModel):
    answer: str | list[str]


class TogglePayload(BaseModel):
    option: str


class PositionPayload(BaseModel):
    position: int = Field(ge=0)


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _require_user(user_id: str | None) -> str:
    if not user_id or not user_id.strip():
        raise HTTPException(status_code=401, detail=f"Missing {USER_ID_HEADER} header")
    return user_id.strip()


def _quiz_to_dict(quiz: Quiz) -> dict[str, object]:
    return {
        "quiz_id": quiz.quiz_id,
        "title": quiz.title,
        "topic": quiz.topic,
        "difficulty": quiz.difficulty,
        "description": quiz.description,
        "category": quiz.category,
        "tags": list(quiz.tags),
        "time_limit_minutes": quiz.time_limit_minutes,
        "shuffle_questions": quiz.shuffle_questions,
        "show_results_immediately": quiz.show_results_immediately,
        "shareable_slug": quiz.shareable_slug,
        "share_path": f"/quiz/{quiz.shareable_slug}",
        "created_at": quiz.created_at.isoformat(),
        "expires_at": quiz.expires_at.isoformat() if quiz.expires_at else None,
    }


def _question_to_dict(question: Question, include_answer: bool) -> dict[str, object]:
    payload: dict[str, object] = {
        "question_id": question.question_id,
        "question_type": question.question_type,
        "question_text": question.question_text,
        "question_html": renderer.render_fragment(question.question_text),
        "options": list(question.options),
        "image_url": question.image_url,
        "points": question.points,
    }
    if include_answer:
        payload["correct_answer"] = encode_correct_answer(question.correct_answer)
    return payload


def _score_to_dict(result: ScoreResult, include_breakdown: bool) -> dict[str, object]:
    payload: dict[str, object] = {
        "score": result.score,
        "correct_count": result.correct_count,
        "total_questions": result.total_questions,
        "band": score_band(result.score),
    }
    if include_breakdown:
        payload["answers"] = [
            {
                "question_id": item.question_id,
                "selected_answer": item.selected,
                "is_correct": item.is_correct,
            }
            for item in result.per_question
        ]
    return payload


def _session_to_dict(session: QuizSession) -> dict[str, object]:
    payload = session.build_snapshot()
    payload["quiz"] = {
        "title": session.quiz.title,
        "topic": session.quiz.topic,
        "time_limit_minutes": session.quiz.time_limit_minutes,
    }
    payload["questions"] = [
        _question_to_dict(question, include_answer=False) for question in session.get_questions()
    ]
    payload["responses"] = session.get_responses()
    countdown = session.countdown
    payload["remaining_display"] = countdown.formatted() if countdown else None
    score = session.score
    if score is not None:
        payload["result"] = _score_to_dict(
            score, include_breakdown=session.quiz.show_results_immediately
        )
        payload["time_taken_display"] = format_time(session.time_taken_seconds or 0)
    return payload


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(title=f"{APP_NAME} API", version=APP_VERSION, description=APP_ABOUT_TEXT)
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/api/models")
    def list_models(manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        return {"models": manager.list_models()}

    @app.post("/api/generate-questions")
    def generate_questions(
        payload: GenerateQuestionsPayload,
        user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            result = manager.generate_questions(
                requester_id=user_id or "anonymous",
                topic=payload.topic,
                difficulty=payload.difficulty,
                count=payload.count,
                model=payload.model,
            )
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return {
            "questions": [question.to_dict() for question in result.questions],
            "source": result.source,
            "message": result.message,
        }

    @app.post("/api/quizzes", status_code=201)
    def create_quiz(
        payload: QuizPayload,
        user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        creator_id = _require_user(user_id)
        try:
            quiz = manager.create_quiz(creator_id, payload.to_draft())
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return _quiz_to_dict(quiz)

    @app.get("/api/quizzes")
    def list_quizzes(
        user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        creator_id = _require_user(user_id)
        quizzes = []
        for quiz, question_count, attempt_count in manager.list_creator_quizzes(creator_id):
            entry = _quiz_to_dict(quiz)
            entry["question_count"] = question_count
            entry["attempt_count"] = attempt_count
            quizzes.append(entry)
        return {"quizzes": quizzes}

    @app.get("/api/quizzes/{quiz_id}")
    def get_quiz(
        quiz_id: str,
        user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        creator_id = _require_user(user_id)
        try:
            quiz, questions = manager.get_owned_quiz(creator_id, quiz_id)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        payload = _quiz_to_dict(quiz)
        payload["questions"] = [_question_to_dict(q, include_answer=True) for q in questions]
        return payload

    @app.get("/api/quizzes/{quiz_id}/results")
    def get_results(
        quiz_id: str,
        user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        creator_id = _require_user(user_id)
        try:
            quiz, rows, summary = manager.get_results(creator_id, quiz_id)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return {
            "quiz": _quiz_to_dict(quiz),
            "summary": summary.to_dict(),
            "attempts": [
                {
                    "participant_name": row.participant_name,
                    "score": row.score,
                    "band": score_band(row.score),
                    "time_taken_seconds": row.time_taken_seconds,
                    "time_taken_display": format_time(row.time_taken_seconds),
                    "attempted_at": row.attempted_at.isoformat(),
                }
                for row in rows
            ],
        }

    @app.get("/api/quizzes/{quiz_id}/results.csv")
    def export_results(
        quiz_id: str,
        user_id: str | None = Header(default=None, alias=USER_ID_HEADER),
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        creator_id = _require_user(user_id)
        try:
            filename, document = manager.export_results_csv(creator_id, quiz_id)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return Response(
            content=document.encode("utf-8"),
            media_type="text/csv; charset=utf-8",
            headers={"Content-Disposition": f"attachment; filename*=UTF-8''{quote(filename)}"},
        )

    @app.post("/api/join", status_code=201)
    def join_quiz(
        payload: JoinPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            session = manager.join_quiz(payload.link, payload.name, payload.profile_photo)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return _session_to_dict(session)

    @app.get("/api/sessions/{session_id}")
    def get_session(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            session = manager.get_session(session_id)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return _session_to_dict(session)

    @app.put("/api/sessions/{session_id}/position")
    def go_to_question(
        session_id: str,
        payload: PositionPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            question = manager.go_to_question(session_id, payload.position)
        except IndexError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return {
            "position": payload.position,
            "question": _question_to_dict(question, include_answer=False),
        }

    @app.put("/api/sessions/{session_id}/answers/{question_id}")
    def select_answer(
        session_id: str,
        question_id: str,
        payload: AnswerPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            manager.select_answer(session_id, question_id, payload.answer)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return {"question_id": question_id, "answer": payload.answer}

    @app.post("/api/sessions/{session_id}/answers/{question_id}/toggle")
    def toggle_option(
        session_id: str,
        question_id: str,
        payload: TogglePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            selection = manager.toggle_option(session_id, question_id, payload.option)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return {"question_id": question_id, "answer": selection}

    @app.post("/api/sessions/{session_id}/submit")
    def submit_session(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            manager.submit_session(session_id)
            session = manager.get_session(session_id)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return _session_to_dict(session)

    @app.delete("/api/sessions/{session_id}", status_code=204)
    def abandon_session(
        session_id: str,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> Response:
        try:
            manager.abandon_session(session_id)
        except _HANDLED_ERRORS as exc:
            raise _to_http_error(exc) from exc
        return Response(status_code=204)

    return app


def run_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
    log_level: str = "info",
) -> None:
    """Serve the FastAPI application in the foreground until interrupted."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level=log_level)
    server = uvicorn.Server(config)
    server.run()
