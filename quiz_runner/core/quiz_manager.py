"""Business logic for running quiz attempts shared between the ticker and the API."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from threading import Lock

from quiz_runner.constants.quiz_constants import (
    DEFAULT_TOP_PERFORMER_COUNT,
    SUBMITTED_ATTEMPT_RETENTION_SECONDS,
)
from quiz_runner.core.errors import UnknownAttemptError
from quiz_runner.core.models import (
    QuestionReview,
    QuizDefinition,
    QuizQuestion,
    QuizResult,
    RespondentProgress,
    SessionStatus,
)
from quiz_runner.core.result_sinks import ResultSink
from quiz_runner.core.services.attempt_ledger import AttemptLedger
from quiz_runner.core.services.quiz_repository import QuizRepository
from quiz_runner.core.services.quiz_session import Clock, QuizSession, utc_now

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Attempt:
    respondent: str
    session: QuizSession


@dataclass(frozen=True, slots=True)
class AttemptSnapshot:
    """Read-only copy of an attempt's state, safe to hand across threads."""

    attempt_id: str
    respondent: str
    quiz_id: str
    quiz_title: str
    definition: QuizDefinition
    status: SessionStatus
    current_question_index: int
    current_question: QuizQuestion
    question_count: int
    answers: dict[int, int]
    answered_count: int
    progress_percent: int
    remaining_seconds: int | None
    is_low_on_time: bool
    require_all_answered: bool
    started_at: datetime
    submitted_at: datetime | None
    result: QuizResult | None


class QuizManager:
    """Facade over the quiz catalog, live attempts and result sinks.

    Every attempt is mutated under a single lock: HTTP handlers run on the
    server thread while the ticker fires on the Qt event loop. Finished results
    are recorded in the ledger under that lock and handed to the external sinks
    after it is released, so a sink may be called from several threads at once.

    Submitted attempts stay available for review until they are discarded or
    ``retention_seconds`` have passed since submission.
    """

    def __init__(
        self,
        repository: QuizRepository | None = None,
        *,
        clock: Clock = utc_now,
        require_all_answered: bool = False,
        sinks: Iterable[ResultSink] = (),
        retention_seconds: int = SUBMITTED_ATTEMPT_RETENTION_SECONDS,
    ) -> None:
        self._lock = Lock()
        self._clock = clock
        self._require_all_answered = require_all_answered
        self._retention = timedelta(seconds=retention_seconds)

        # Services
        self._repository = repository or QuizRepository()
        self._ledger = AttemptLedger()
        self._sinks: list[ResultSink] = list(sinks)
        self._attempts: dict[str, _Attempt] = {}

    # --- Quiz catalog ---

    def load_quiz(self, definition: QuizDefinition) -> QuizDefinition:
        with self._lock:
            return self._repository.add(definition)

    def get_quizzes(self) -> list[QuizDefinition]:
        with self._lock:
            return self._repository.get_all()

    def get_quiz(self, quiz_id: str) -> QuizDefinition:
        with self._lock:
            return self._repository.get(quiz_id)

    # --- Attempt lifecycle ---

    def start_attempt(self, quiz_id: str, respondent: str) -> AttemptSnapshot:
        with self._lock:
            definition = self._repository.get(quiz_id)
            session = QuizSession(
                definition,
                clock=self._clock,
                require_all_answered=self._require_all_answered,
            )
            return self._register(respondent, session)

    def restart_attempt(self, attempt_id: str) -> AttemptSnapshot:
        """Start a new attempt at the same quiz. The old one stays available for review."""
        with self._lock:
            attempt = self._get(attempt_id)
            return self._register(attempt.respondent, attempt.session.restart())

    def discard_attempt(self, attempt_id: str) -> None:
        """Forget an attempt. An unsubmitted attempt is abandoned and its answers are lost."""
        with self._lock:
            attempt = self._attempts.pop(attempt_id, None)
            if attempt is None:
                raise UnknownAttemptError(f"No attempt registered with id '{attempt_id}'.")
            if attempt.session.is_submitted:
                logger.info("Closed attempt %s for %s", attempt_id, attempt.respondent)
            else:
                logger.info(
                    "Abandoned attempt %s for %s with %d/%d answers",
                    attempt_id,
                    attempt.respondent,
                    attempt.session.answered_count,
                    attempt.session.question_count,
                )

    def get_attempt(self, attempt_id: str) -> AttemptSnapshot:
        with self._lock:
            return self._snapshot(attempt_id, self._get(attempt_id))

    def active_attempt_count(self) -> int:
        with self._lock:
            return sum(1 for a in self._attempts.values() if not a.session.is_submitted)

    # --- Respondent operations ---

    def select_answer(self, attempt_id: str, question_index: int, option_index: int) -> AttemptSnapshot:
        with self._lock:
            attempt = self._get(attempt_id)
            attempt.session.select_answer(question_index, option_index)
            return self._snapshot(attempt_id, attempt)

    def go_to_question(self, attempt_id: str, index: int) -> AttemptSnapshot:
        with self._lock:
            attempt = self._get(attempt_id)
            attempt.session.go_to_question(index)
            return self._snapshot(attempt_id, attempt)

    def next_question(self, attempt_id: str) -> AttemptSnapshot:
        with self._lock:
            attempt = self._get(attempt_id)
            attempt.session.next()
            return self._snapshot(attempt_id, attempt)

    def previous_question(self, attempt_id: str) -> AttemptSnapshot:
        with self._lock:
            attempt = self._get(attempt_id)
            attempt.session.previous()
            return self._snapshot(attempt_id, attempt)

    def submit_attempt(self, attempt_id: str) -> QuizResult:
        with self._lock:
            attempt = self._get(attempt_id)
            result = attempt.session.submit()
            self._record(attempt.respondent, result)
        self._deliver(attempt.respondent, result)
        return result

    def review_attempt(self, attempt_id: str) -> list[QuestionReview]:
        with self._lock:
            return self._get(attempt_id).session.review()

    # --- Timer ---

    def tick_all(self) -> list[QuizResult]:
        """Advance every live attempt by one second and return those that timed out.

        Submitted attempts past the retention window are dropped on the way.
        """
        expired: list[tuple[str, QuizResult]] = []
        with self._lock:
            now = self._clock()
            for attempt_id, attempt in list(self._attempts.items()):
                session = attempt.session
                if session.is_submitted:
                    if now - session.submitted_at >= self._retention:
                        del self._attempts[attempt_id]
                        logger.info("Evicted attempt %s for %s", attempt_id, attempt.respondent)
                    continue
                result = session.tick()
                if result is not None:
                    self._record(attempt.respondent, result)
                    expired.append((attempt.respondent, result))
        for respondent, result in expired:
            self._deliver(respondent, result)
        return [result for _, result in expired]

    # --- Progress ---

    def get_progress(self, respondent: str) -> RespondentProgress:
        with self._lock:
            return self._ledger.get_progress(respondent)

    def get_results(self, respondent: str, quiz_id: str | None = None) -> list[QuizResult]:
        with self._lock:
            return self._ledger.get_results(respondent, quiz_id)

    def get_top_performers(
        self, quiz_id: str, limit: int = DEFAULT_TOP_PERFORMER_COUNT
    ) -> list[tuple[str, QuizResult]]:
        with self._lock:
            return self._ledger.get_top_performers(quiz_id, limit)

    # --- Internals (callers hold the lock unless noted) ---

    def _register(self, respondent: str, session: QuizSession) -> AttemptSnapshot:
        attempt = _Attempt(respondent=respondent, session=session)
        self._attempts[session.session_id] = attempt
        logger.info(
            "Started attempt %s at quiz '%s' for %s",
            session.session_id,
            session.definition.id,
            respondent,
        )
        return self._snapshot(session.session_id, attempt)

    def _get(self, attempt_id: str) -> _Attempt:
        attempt = self._attempts.get(attempt_id)
        if attempt is None:
            raise UnknownAttemptError(f"No attempt registered with id '{attempt_id}'.")
        return attempt

    def _record(self, respondent: str, result: QuizResult) -> None:
        logger.info(
            "Attempt %s by %s submitted (%s): score %d%% in %ds",
            result.session_id,
            respondent,
            result.reason.value,
            result.score,
            result.time_spent_seconds,
        )
        self._ledger.record(respondent, result)

    def _deliver(self, respondent: str, result: QuizResult) -> None:
        # Called after the lock is released.
        for sink in self._sinks:
            try:
                sink.record(respondent, result)
            except Exception:
                # A broken sink must not undo or block the submission.
                logger.exception("Result sink %r failed for attempt %s", sink, result.session_id)

    @staticmethod
    def _snapshot(attempt_id: str, attempt: _Attempt) -> AttemptSnapshot:
        session = attempt.session
        return AttemptSnapshot(
            attempt_id=attempt_id,
            respondent=attempt.respondent,
            quiz_id=session.definition.id,
            quiz_title=session.definition.title,
            definition=session.definition,
            status=session.status,
            current_question_index=session.current_question_index,
            current_question=session.current_question,
            question_count=session.question_count,
            answers=session.answers,
            answered_count=session.answered_count,
            progress_percent=session.progress_percent,
            remaining_seconds=session.remaining_seconds,
            is_low_on_time=session.is_low_on_time,
            require_all_answered=session.require_all_answered,
            started_at=session.started_at,
            submitted_at=session.submitted_at,
            result=session.result,
        )
