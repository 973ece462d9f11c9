"""Service tracking finished attempts and progress per respondent."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from quiz_runner.constants.quiz_constants import DEFAULT_TOP_PERFORMER_COUNT
from quiz_runner.core.models import QuizResult, RespondentProgress


@dataclass(slots=True)
class LedgerEntry:
    """Mutable per-respondent aggregate used internally."""

    respondent: str
    results: list[QuizResult] = field(default_factory=list)
    last_updated: datetime | None = None

    @property
    def best_score(self) -> int:
        return max((r.score for r in self.results), default=0)

    @property
    def total_time_spent_seconds(self) -> int:
        return sum(r.time_spent_seconds for r in self.results)


class AttemptLedger:
    """Result sink that keeps every submitted attempt in memory."""

    def __init__(self) -> None:
        self._entries: dict[str, LedgerEntry] = {}

    def record(self, respondent: str, result: QuizResult) -> None:
        entry = self._entries.get(respondent)
        if entry is None:
            entry = LedgerEntry(respondent=respondent)
            self._entries[respondent] = entry
        entry.results.append(result)
        entry.last_updated = result.submitted_at

    def get_results(self, respondent: str, quiz_id: str | None = None) -> list[QuizResult]:
        entry = self._entries.get(respondent)
        if entry is None:
            return []
        if quiz_id is None:
            return list(entry.results)
        return [r for r in entry.results if r.quiz_id == quiz_id]

    def get_progress(self, respondent: str) -> RespondentProgress:
        """Summarize a respondent's attempts; an unknown respondent has an empty history."""
        entry = self._entries.get(respondent)
        if entry is None or not entry.results:
            return RespondentProgress(
                respondent=respondent,
                attempts=0,
                best_score=0,
                average_score=0.0,
                passed_attempts=0,
            )
        results = entry.results
        quiz_ids: list[str] = []
        for result in results:
            if result.quiz_id not in quiz_ids:
                quiz_ids.append(result.quiz_id)
        return RespondentProgress(
            respondent=respondent,
            attempts=len(results),
            best_score=entry.best_score,
            average_score=sum(r.score for r in results) / len(results),
            passed_attempts=sum(1 for r in results if r.passed),
            last_submitted_at=entry.last_updated,
            quiz_ids=quiz_ids,
        )

    def get_top_performers(
        self, quiz_id: str, limit: int = DEFAULT_TOP_PERFORMER_COUNT
    ) -> list[tuple[str, QuizResult]]:
        """Best attempt per respondent on a quiz, ranked by score then time spent."""
        best: list[tuple[str, QuizResult]] = []
        for entry in self._entries.values():
            attempts = [r for r in entry.results if r.quiz_id == quiz_id]
            if not attempts:
                continue
            top = min(attempts, key=lambda r: (-r.score, r.time_spent_seconds))
            best.append((entry.respondent, top))
        best.sort(key=lambda item: (-item[1].score, item[1].time_spent_seconds))
        return best[:limit]

    def clear(self) -> None:
        self._entries.clear()
