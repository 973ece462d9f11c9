"""FastAPI server that exposes quiz-taking endpoints to respondents."""

from __future__ import annotations

from threading import Thread
from typing import Literal

from fastapi import Depends, FastAPI, HTTPException, Response
from pydantic import BaseModel, Field
import uvicorn

from quiz_runner.constants.about import APP_ABOUT_TEXT, APP_LICENSE, APP_NAME, APP_VERSION
from quiz_runner.constants.network_constants import DEFAULT_HOST, DEFAULT_PORT
from quiz_runner.core.errors import (
    IncompleteAttemptError,
    InvalidArgumentError,
    InvalidDefinitionError,
    InvalidStateError,
    UnknownAttemptError,
    UnknownQuizError,
)
from quiz_runner.core.markdown_math_renderer import renderer
from quiz_runner.core.models import QuestionReview, QuizDefinition, QuizResult, SessionStatus
from quiz_runner.core.quiz_manager import AttemptSnapshot, QuizManager
from quiz_runner.core.result_sinks import result_to_dict
from quiz_runner.utils.time_format import format_clock


class StartAttemptPayload(BaseModel):
    """Payload schema for starting an attempt."""

    quiz_id: str
    respondent: str = Field(min_length=1)


class AnswerPayload(BaseModel):
    """Payload schema for selecting an option."""

    question_index: int
    selected_option_index: int


class NavigatePayload(BaseModel):
    """Payload schema for moving between questions."""

    action: Literal["next", "previous", "goto"]
    index: int | None = None


def _get_quiz_manager_dependency(quiz_manager: QuizManager):
    def dependency() -> QuizManager:
        return quiz_manager

    return dependency


def _error_detail(exc: Exception) -> str:
    # KeyError subclasses quote their message in str(); use the raw argument.
    return str(exc.args[0]) if exc.args else str(exc)


def _serialize_quiz(definition: QuizDefinition) -> dict[str, object]:
    return {
        "quiz_id": definition.id,
        "title": definition.title,
        "description": definition.description,
        "time_limit_minutes": definition.time_limit_minutes,
        "question_count": definition.question_count,
    }


def _serialize_attempt(snapshot: AttemptSnapshot) -> dict[str, object]:
    question = snapshot.current_question
    payload: dict[str, object] = {
        "attempt_id": snapshot.attempt_id,
        "respondent": snapshot.respondent,
        "quiz_id": snapshot.quiz_id,
        "quiz_title": snapshot.quiz_title,
        "status": snapshot.status.value,
        "current_question_index": snapshot.current_question_index,
        "question_count": snapshot.question_count,
        "question": {
            "question_id": question.id,
            "options": list(question.options),
            **renderer.render_question(question),
        },
        "answers": {str(k): v for k, v in sorted(snapshot.answers.items())},
        "answered_count": snapshot.answered_count,
        "can_submit": snapshot.status is SessionStatus.IN_PROGRESS
        and (not snapshot.require_all_answered or snapshot.answered_count == snapshot.question_count),
        "progress_percent": snapshot.progress_percent,
        "remaining_seconds": snapshot.remaining_seconds,
        "remaining_display": format_clock(snapshot.remaining_seconds),
        "low_on_time": snapshot.is_low_on_time,
        "started_at": snapshot.started_at.isoformat(),
        "submitted_at": snapshot.submitted_at.isoformat() if snapshot.submitted_at else None,
        "result": _serialize_result(snapshot.respondent, snapshot.result) if snapshot.result else None,
    }
    return payload


def _serialize_result(respondent: str, result: QuizResult) -> dict[str, object]:
    payload = result_to_dict(respondent, result)
    payload["time_spent_display"] = format_clock(result.time_spent_seconds)
    return payload


def _serialize_review(definition: QuizDefinition, entry: QuestionReview) -> dict[str, object]:
    question = definition.questions[entry.question_index]
    return {
        "question_index": entry.question_index,
        "question_id": question.id,
        "prompt_html": renderer.render_fragment(question.prompt),
        "options": list(question.options),
        "selected_option_index": entry.selected_option_index,
        "correct_option_index": entry.correct_option_index,
        "outcome": entry.outcome.value,
        "explanation_html": renderer.render_explanation(entry.explanation),
    }


def create_api_app(quiz_manager: QuizManager) -> FastAPI:
    """Create a FastAPI application wired to the provided quiz manager."""
    app = FastAPI(
        title=f"{APP_NAME} API",
        version=APP_VERSION,
        description=APP_ABOUT_TEXT,
        license_info={"name": APP_LICENSE},
    )
    quiz_manager_dep = _get_quiz_manager_dependency(quiz_manager)

    @app.get("/quizzes")
    def list_quizzes(manager: QuizManager = Depends(quiz_manager_dep)) -> list[dict[str, object]]:
        return [_serialize_quiz(definition) for definition in manager.get_quizzes()]

    @app.get("/quizzes/{quiz_id}")
    def get_quiz(quiz_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            definition = manager.get_quiz(quiz_id)
        except UnknownQuizError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc
        payload = _serialize_quiz(definition)
        payload["leaderboard"] = [
            {"respondent": respondent, "score": result.score, "time_spent_seconds": result.time_spent_seconds}
            for respondent, result in manager.get_top_performers(quiz_id)
        ]
        return payload

    @app.post("/attempts", status_code=201)
    def start_attempt(
        payload: StartAttemptPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        respondent = payload.respondent.strip()
        if not respondent:
            raise HTTPException(status_code=422, detail="Respondent name cannot be blank.")
        try:
            snapshot = manager.start_attempt(payload.quiz_id, respondent)
        except UnknownQuizError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc
        except InvalidDefinitionError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        return _serialize_attempt(snapshot)

    @app.get("/attempts/{attempt_id}")
    def get_attempt(attempt_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            return _serialize_attempt(manager.get_attempt(attempt_id))
        except UnknownAttemptError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc

    @app.post("/attempts/{attempt_id}/answers")
    def select_answer(
        attempt_id: str,
        payload: AnswerPayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            snapshot = manager.select_answer(
                attempt_id, payload.question_index, payload.selected_option_index
            )
        except UnknownAttemptError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc
        except InvalidArgumentError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except InvalidStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _serialize_attempt(snapshot)

    @app.post("/attempts/{attempt_id}/navigate")
    def navigate(
        attempt_id: str,
        payload: NavigatePayload,
        manager: QuizManager = Depends(quiz_manager_dep),
    ) -> dict[str, object]:
        try:
            if payload.action == "next":
                snapshot = manager.next_question(attempt_id)
            elif payload.action == "previous":
                snapshot = manager.previous_question(attempt_id)
            else:
                if payload.index is None:
                    raise HTTPException(status_code=422, detail="'goto' requires an index.")
                snapshot = manager.go_to_question(attempt_id, payload.index)
        except UnknownAttemptError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc
        except InvalidArgumentError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except InvalidStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _serialize_attempt(snapshot)

    @app.post("/attempts/{attempt_id}/submit")
    def submit_attempt(attempt_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            result = manager.submit_attempt(attempt_id)
            respondent = manager.get_attempt(attempt_id).respondent
        except UnknownAttemptError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc
        except IncompleteAttemptError as exc:
            raise HTTPException(
                status_code=409,
                detail={"message": str(exc), "unanswered": exc.unanswered},
            ) from exc
        except InvalidStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return _serialize_result(respondent, result)

    @app.get("/attempts/{attempt_id}/review")
    def review_attempt(attempt_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            snapshot = manager.get_attempt(attempt_id)
            entries = manager.review_attempt(attempt_id)
        except UnknownAttemptError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc
        except InvalidStateError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc
        return {
            "attempt_id": attempt_id,
            "result": _serialize_result(snapshot.respondent, snapshot.result) if snapshot.result else None,
            "questions": [_serialize_review(snapshot.definition, entry) for entry in entries],
        }

    @app.post("/attempts/{attempt_id}/restart", status_code=201)
    def restart_attempt(attempt_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        try:
            return _serialize_attempt(manager.restart_attempt(attempt_id))
        except UnknownAttemptError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc

    @app.delete("/attempts/{attempt_id}", status_code=204)
    def discard_attempt(attempt_id: str, manager: QuizManager = Depends(quiz_manager_dep)) -> Response:
        try:
            manager.discard_attempt(attempt_id)
        except UnknownAttemptError as exc:
            raise HTTPException(status_code=404, detail=_error_detail(exc)) from exc
        return Response(status_code=204)

    @app.get("/respondents/{respondent}/progress")
    def get_progress(respondent: str, manager: QuizManager = Depends(quiz_manager_dep)) -> dict[str, object]:
        progress = manager.get_progress(respondent)
        return {
            "respondent": progress.respondent,
            "attempts": progress.attempts,
            "best_score": progress.best_score,
            "average_score": round(progress.average_score, 1),
            "passed_attempts": progress.passed_attempts,
            "last_submitted_at": progress.last_submitted_at.isoformat() if progress.last_submitted_at else None,
            "quiz_ids": progress.quiz_ids,
        }

    return app


def start_api_server(
    quiz_manager: QuizManager,
    host: str = DEFAULT_HOST,
    port: int = DEFAULT_PORT,
) -> Thread:
    """Start the FastAPI server in a background daemon thread."""
    app = create_api_app(quiz_manager)
    config = uvicorn.Config(app=app, host=host, port=port, log_level="info")
    server = uvicorn.Server(config)

    def run_server() -> None:
        server.run()

    thread = Thread(target=run_server, name="QuizApiServer", daemon=True)
    thread.start()
    return thread
