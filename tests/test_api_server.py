from fastapi.testclient import TestClient
import pytest

from quiz_runner.core.quiz_manager import QuizManager
from quiz_runner.server.api_server import create_api_app

from conftest import make_definition


@pytest.fixture
def manager(clock):
    quiz_manager = QuizManager(clock=clock)
    quiz_manager.load_quiz(make_definition(explanations=["Because *one*.", "", "Third."]))
    quiz_manager.load_quiz(make_definition(quiz_id="timed", time_limit_minutes=1))
    return quiz_manager


@pytest.fixture
def client(manager):
    return TestClient(create_api_app(manager))


def _start(client, quiz_id="quiz-1", respondent="ada"):
    response = client.post("/attempts", json={"quiz_id": quiz_id, "respondent": respondent})
    assert response.status_code == 201
    return response.json()


def test_lists_quizzes(client):
    response = client.get("/quizzes")

    assert response.status_code == 200
    quizzes = {q["quiz_id"]: q for q in response.json()}
    assert quizzes["timed"]["time_limit_minutes"] == 1
    assert quizzes["quiz-1"]["question_count"] == 3


def test_unknown_quiz_returns_404(client):
    assert client.get("/quizzes/missing").status_code == 404
    response = client.post("/attempts", json={"quiz_id": "missing", "respondent": "ada"})
    assert response.status_code == 404


def test_started_attempt_hides_correct_answers(client):
    attempt = _start(client, quiz_id="timed")

    assert attempt["status"] == "in_progress"
    assert attempt["current_question_index"] == 0
    assert attempt["remaining_seconds"] == 60
    assert attempt["remaining_display"] == "1:00"
    assert attempt["question"]["prompt_html"] == "<p>Question 1?</p>\n"
    assert "correct_option_index" not in attempt["question"]
    assert attempt["result"] is None


def test_blank_respondent_is_rejected(client):
    response = client.post("/attempts", json={"quiz_id": "quiz-1", "respondent": "   "})
    assert response.status_code == 422


def test_answer_navigate_submit_and_review(client):
    attempt_id = _start(client)["attempt_id"]

    for index, option in enumerate([1, 0, 0]):
        response = client.post(
            f"/attempts/{attempt_id}/answers",
            json={"question_index": index, "selected_option_index": option},
        )
        assert response.status_code == 200
    assert response.json()["answers"] == {"0": 1, "1": 0, "2": 0}

    response = client.post(f"/attempts/{attempt_id}/navigate", json={"action": "goto", "index": 2})
    assert response.json()["current_question_index"] == 2
    response = client.post(f"/attempts/{attempt_id}/navigate", json={"action": "next"})
    assert response.json()["current_question_index"] == 2
    response = client.post(f"/attempts/{attempt_id}/navigate", json={"action": "previous"})
    assert response.json()["current_question_index"] == 1

    response = client.post(f"/attempts/{attempt_id}/submit")
    assert response.status_code == 200
    result = response.json()
    assert result["score"] == 67
    assert result["answers"] == {"0": 1, "1": 0, "2": 0}
    assert result["reason"] == "explicit"

    review = client.get(f"/attempts/{attempt_id}/review").json()
    outcomes = [q["outcome"] for q in review["questions"]]
    assert outcomes == ["correct", "correct", "incorrect"]
    assert review["questions"][0]["explanation_html"] == "<p>Because <em>one</em>.</p>\n"
    assert review["questions"][1]["explanation_html"] is None
    assert review["result"]["score"] == 67


def test_invalid_indices_return_422(client):
    attempt_id = _start(client)["attempt_id"]

    response = client.post(f"/attempts/{attempt_id}/navigate", json={"action": "goto", "index": 4})
    assert response.status_code == 422
    response = client.post(
        f"/attempts/{attempt_id}/answers",
        json={"question_index": 0, "selected_option_index": 7},
    )
    assert response.status_code == 422
    response = client.post(f"/attempts/{attempt_id}/navigate", json={"action": "goto"})
    assert response.status_code == 422

    state = client.get(f"/attempts/{attempt_id}").json()
    assert state["current_question_index"] == 0
    assert state["answers"] == {}


def test_changes_after_submission_return_409(client):
    attempt_id = _start(client)["attempt_id"]
    client.post(f"/attempts/{attempt_id}/submit")

    response = client.post(
        f"/attempts/{attempt_id}/answers",
        json={"question_index": 0, "selected_option_index": 1},
    )
    assert response.status_code == 409
    assert client.post(f"/attempts/{attempt_id}/submit").status_code == 409
    assert client.post(f"/attempts/{attempt_id}/navigate", json={"action": "next"}).status_code == 409


def test_review_before_submission_returns_409(client):
    attempt_id = _start(client)["attempt_id"]
    assert client.get(f"/attempts/{attempt_id}/review").status_code == 409


def test_review_uses_questions_the_attempt_was_taken_with(client, manager):
    attempt_id = _start(client)["attempt_id"]
    client.post(f"/attempts/{attempt_id}/submit")
    manager.load_quiz(make_definition(correct_indices=(0,)))

    review = client.get(f"/attempts/{attempt_id}/review")

    assert review.status_code == 200
    questions = review.json()["questions"]
    assert [q["question_id"] for q in questions] == ["q1", "q2", "q3"]
    assert [q["correct_option_index"] for q in questions] == [1, 0, 2]


def test_incomplete_submission_reports_unanswered_questions(clock):
    manager = QuizManager(clock=clock, require_all_answered=True)
    manager.load_quiz(make_definition())
    client = TestClient(create_api_app(manager))
    attempt = _start(client)
    assert attempt["can_submit"] is False
    client.post(
        f"/attempts/{attempt['attempt_id']}/answers",
        json={"question_index": 1, "selected_option_index": 0},
    )

    response = client.post(f"/attempts/{attempt['attempt_id']}/submit")

    assert response.status_code == 409
    assert response.json()["detail"]["unanswered"] == [0, 2]


def test_restart_and_progress(client):
    attempt_id = _start(client)["attempt_id"]
    client.post(f"/attempts/{attempt_id}/answers", json={"question_index": 0, "selected_option_index": 1})
    client.post(f"/attempts/{attempt_id}/submit")

    response = client.post(f"/attempts/{attempt_id}/restart")
    assert response.status_code == 201
    retake = response.json()
    assert retake["attempt_id"] != attempt_id
    assert retake["answers"] == {}
    assert client.get(f"/attempts/{attempt_id}").json()["result"]["score"] == 33

    progress = client.get("/respondents/ada/progress").json()
    assert progress["attempts"] == 1
    assert progress["best_score"] == 33
    assert progress["quiz_ids"] == ["quiz-1"]

    leaderboard = client.get("/quizzes/quiz-1").json()["leaderboard"]
    assert leaderboard == [{"respondent": "ada", "score": 33, "time_spent_seconds": 0}]


def test_discard_attempt(client):
    attempt_id = _start(client)["attempt_id"]

    assert client.delete(f"/attempts/{attempt_id}").status_code == 204
    assert client.get(f"/attempts/{attempt_id}").status_code == 404
    assert client.delete(f"/attempts/{attempt_id}").status_code == 404


def test_timeout_is_visible_through_api(client, manager):
    attempt_id = _start(client, quiz_id="timed")["attempt_id"]
    for _ in range(60):
        manager.tick_all()

    state = client.get(f"/attempts/{attempt_id}").json()

    assert state["status"] == "submitted"
    assert state["remaining_seconds"] == 0
    assert state["result"]["reason"] == "timeout"
    assert state["result"]["time_spent_display"] == "1:00"
