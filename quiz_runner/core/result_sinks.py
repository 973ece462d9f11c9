"""Destinations for finished quiz results.

A sink receives ``(respondent, result)`` once per submitted attempt. The
manager hands results over after the session has been finalized, so a sink
that fails never changes the outcome of the attempt.
"""

from __future__ import annotations

import json
from pathlib import Path
from threading import Lock
from typing import Protocol

from quiz_runner.core.models import QuizResult


class ResultSink(Protocol):
    def record(self, respondent: str, result: QuizResult) -> None: ...


def result_to_dict(respondent: str, result: QuizResult) -> dict[str, object]:
    """JSON-friendly view of a result. Answer keys become strings."""
    return {
        "respondent": respondent,
        "quiz_id": result.quiz_id,
        "session_id": result.session_id,
        "answers": {str(index): option for index, option in sorted(result.answers.items())},
        "score": result.score,
        "correct_count": result.correct_count,
        "question_count": result.question_count,
        "time_spent_seconds": result.time_spent_seconds,
        "submitted_at": result.submitted_at.isoformat(),
        "reason": result.reason.value,
        "passed": result.passed,
    }


class JsonLinesResultSink:
    """Appends each result as one JSON document per line."""

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path.resolve()
        self._lock = Lock()

    @property
    def file_path(self) -> Path:
        return self._file_path

    def record(self, respondent: str, result: QuizResult) -> None:
        line = json.dumps(result_to_dict(respondent, result), ensure_ascii=False)
        with self._lock:
            self._file_path.parent.mkdir(parents=True, exist_ok=True)
            with self._file_path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
