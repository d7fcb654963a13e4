from __future__ import annotations

from fastapi.testclient import TestClient
import pytest

from quiz_studio.core.question_generator import QuestionGenerationService
from quiz_studio.core.quiz_manager import QuizManager
from quiz_studio.server.api_server import create_api_app

AUTHOR = {"X-User-Id": "author-1"}

QUIZ_BODY = {
    "title": "World Capitals",
    "topic": "Geography",
    "difficulty": "easy",
    "time_limit_minutes": 10,
    "questions": [
        {
            "question_text": "What is the capital of **France**?",
            "question_type": "multiple_choice",
            "options": ["Paris", "Lyon", "Nice", "Lille"],
            "correct_answer": "Paris",
        },
        {
            "question_text": "Which of these are capitals?",
            "question_type": "multi_select",
            "options": ["Oslo", "Bergen", "Rome", "Milan"],
            "correct_answer": ["Oslo", "Rome"],
        },
    ],
}


@pytest.fixture
def client():
    generator = QuestionGenerationService(api_key=None)
    manager = QuizManager(generator=generator, tick_interval=None)
    with TestClient(create_api_app(manager)) as test_client:
        yield test_client
    generator.close()


def _create_quiz(client: TestClient, **overrides) -> dict:
    response = client.post("/api/quizzes", json={**QUIZ_BODY, **overrides}, headers=AUTHOR)
    assert response.status_code == 201
    return response.json()


def _join(client: TestClient, quiz: dict, name: str = "Ada") -> dict:
    response = client.post(
        "/api/join",
        json={"link": f"http://testserver{quiz['share_path']}", "name": name},
    )
    assert response.status_code == 201
    return response.json()


def test_models_catalogue(client):
    models = client.get("/api/models").json()["models"]
    assert len(models) == 8
    assert models[0]["id"] == "meta-llama/llama-4-scout-17b-16e-instruct"


def test_generate_questions_without_credential(client):
    response = client.post(
        "/api/generate-questions",
        json={"topic": "JavaScript", "difficulty": "easy", "count": 3},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "fallback"
    assert body["message"] == "Using sample questions (AI API key not configured)"
    assert len(body["questions"]) == 3


@pytest.mark.parametrize(
    "body",
    [
        {"topic": "Python", "difficulty": "easy", "count": 0},
        {"topic": "", "difficulty": "easy", "count": 3},
        {"difficulty": "easy", "count": 3},
        {"topic": "Python", "difficulty": "easy", "count": 51},
        {"topic": "Python", "difficulty": "extreme", "count": 3},
    ],
)
def test_generate_questions_rejects_bad_parameters(client, body):
    assert client.post("/api/generate-questions", json=body).status_code == 422


def test_create_quiz_requires_user(client):
    assert client.post("/api/quizzes", json=QUIZ_BODY).status_code == 401


def test_create_quiz_reports_validation_errors(client):
    response = client.post("/api/quizzes", json={**QUIZ_BODY, "title": ""}, headers=AUTHOR)

    assert response.status_code == 422
    assert response.json()["detail"] == {
        "field": "title",
        "message": "Please fill in all required fields and add at least one question",
    }


def test_dashboard_and_detail(client):
    quiz = _create_quiz(client)

    listed = client.get("/api/quizzes", headers=AUTHOR).json()["quizzes"]
    assert [(q["quiz_id"], q["question_count"], q["attempt_count"]) for q in listed] == [
        (quiz["quiz_id"], 2, 0)
    ]

    detail = client.get(f"/api/quizzes/{quiz['quiz_id']}", headers=AUTHOR).json()
    assert detail["questions"][1]["correct_answer"] == "Oslo, Rome"
    assert "<strong>France</strong>" in detail["questions"][0]["question_html"]

    other = client.get(f"/api/quizzes/{quiz['quiz_id']}", headers={"X-User-Id": "intruder"})
    assert other.status_code == 403
    assert client.get("/api/quizzes/missing", headers=AUTHOR).status_code == 404


def test_take_quiz_end_to_end(client):
    quiz = _create_quiz(client)
    session = _join(client, quiz)
    session_id = session["session_id"]

    assert session["state"] == "in_progress"
    assert session["remaining_seconds"] == 600
    assert session["remaining_display"] == "10:00"
    assert all("correct_answer" not in q for q in session["questions"])

    by_type = {q["question_type"]: q["question_id"] for q in session["questions"]}
    answer = client.put(
        f"/api/sessions/{session_id}/answers/{by_type['multiple_choice']}",
        json={"answer": "Paris"},
    )
    assert answer.status_code == 200
    for option in ("Rome", "Milan", "Oslo", "Milan"):
        toggled = client.post(
            f"/api/sessions/{session_id}/answers/{by_type['multi_select']}/toggle",
            json={"option": option},
        )
    assert toggled.json()["answer"] == ["Rome", "Oslo"]

    submitted = client.post(f"/api/sessions/{session_id}/submit")
    assert submitted.status_code == 200
    body = submitted.json()
    assert body["state"] == "completed"
    assert body["result"]["score"] == 100
    assert body["result"]["band"] == "high"
    assert [a["is_correct"] for a in body["result"]["answers"]] == [True, True]

    late = client.put(
        f"/api/sessions/{session_id}/answers/{by_type['multiple_choice']}",
        json={"answer": "Lyon"},
    )
    assert late.status_code == 409

    results = client.get(f"/api/quizzes/{quiz['quiz_id']}/results", headers=AUTHOR).json()
    assert results["summary"]["total_attempts"] == 1
    assert results["attempts"][0]["participant_name"] == "Ada"

    csv_response = client.get(f"/api/quizzes/{quiz['quiz_id']}/results.csv", headers=AUTHOR)
    assert csv_response.status_code == 200
    assert csv_response.headers["content-type"].startswith("text/csv")
    assert "World%20Capitals-results.csv" in csv_response.headers["content-disposition"]
    lines = csv_response.text.splitlines()
    assert lines[0] == "Participant Name,Score (%),Time Taken,Attempt Date"
    assert lines[1].startswith('"Ada",100,"')


def test_results_hide_breakdown_when_configured(client):
    quiz = _create_quiz(client, show_results_immediately=False)
    session_id = _join(client, quiz)["session_id"]

    body = client.post(f"/api/sessions/{session_id}/submit").json()

    assert body["result"]["score"] == 0
    assert "answers" not in body["result"]


def test_join_errors(client):
    quiz = _create_quiz(client, expires_at="2000-01-01T00:00:00Z")

    expired = client.post("/api/join", json={"link": quiz["shareable_slug"], "name": "Ada"})
    assert expired.status_code == 410

    unknown = client.post("/api/join", json={"link": "quiz-0-missing", "name": "Ada"})
    assert unknown.status_code == 404

    bad_link = client.post("/api/join", json={"link": "hello", "name": "Ada"})
    assert bad_link.status_code == 422
    assert bad_link.json()["detail"] == "Invalid quiz link format"

    no_name = client.post("/api/join", json={"link": quiz["shareable_slug"], "name": " "})
    assert no_name.status_code == 422
    assert no_name.json()["detail"]["message"] == "Please enter your name"


def test_session_errors(client):
    quiz = _create_quiz(client)
    session_id = _join(client, quiz)["session_id"]

    missing_question = client.put(
        f"/api/sessions/{session_id}/answers/nope", json={"answer": "Paris"}
    )
    assert missing_question.status_code == 404
    assert client.get("/api/sessions/nope").status_code == 404

    assert client.delete(f"/api/sessions/{session_id}").status_code == 204
    assert client.get(f"/api/sessions/{session_id}").status_code == 404


def test_multi_select_text_answer_and_navigation(client):
    quiz = _create_quiz(client)
    session = _join(client, quiz)
    session_id = session["session_id"]
    by_type = {q["question_type"]: q["question_id"] for q in session["questions"]}

    moved = client.put(f"/api/sessions/{session_id}/position", json={"position": 1})
    assert moved.status_code == 200
    assert moved.json()["question"]["question_id"] == session["questions"][1]["question_id"]
    assert client.get(f"/api/sessions/{session_id}").json()["position"] == 1
    out_of_range = client.put(f"/api/sessions/{session_id}/position", json={"position": 2})
    assert out_of_range.status_code == 422

    client.put(
        f"/api/sessions/{session_id}/answers/{by_type['multiple_choice']}",
        json={"answer": "Paris"},
    )
    client.put(
        f"/api/sessions/{session_id}/answers/{by_type['multi_select']}",
        json={"answer": "Rome, Oslo"},
    )

    body = client.post(f"/api/sessions/{session_id}/submit").json()
    assert body["result"]["score"] == 100
    assert client.get(f"/api/sessions/{session_id}").json()["state"] == "completed"
    closed = client.put(f"/api/sessions/{session_id}/position", json={"position": 0})
    assert closed.status_code == 409
