"""State machine for a single quiz attempt: navigation, timing, grading and review.

A session is owned by exactly one caller. It has no lock, clock thread or
timer of its own: the host forwards respondent events to the methods below
and calls ``tick()`` once per elapsed second. Wall-clock timestamps come from
the injected ``clock`` so tests can run on synthetic time.

After submission every respondent operation raises ``InvalidStateError``.
``tick()`` is the exception: it is a passive time source and becomes a no-op.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from types import MappingProxyType
from uuid import uuid4

from quiz_runner.constants.quiz_constants import (
    LOW_TIME_WARNING_SECONDS,
    PASSING_SCORE_PERCENT,
    SECONDS_PER_MINUTE,
)
from quiz_runner.core.errors import (
    IncompleteAttemptError,
    InvalidArgumentError,
    InvalidStateError,
)
from quiz_runner.core.models import (
    QuestionReview,
    QuizDefinition,
    QuizQuestion,
    QuizResult,
    ReviewOutcome,
    SessionStatus,
    SubmissionReason,
)
from quiz_runner.core.validation import validate_definition

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def percentage_score(correct_count: int, question_count: int) -> int:
    """Integer percentage rounded half-up, so 1 of 8 gives 13 rather than 12."""
    return (200 * correct_count + question_count) // (2 * question_count)


class QuizSession:
    """Drives one attempt from start to a finished, scored result."""

    def __init__(
        self,
        definition: QuizDefinition,
        *,
        clock: Clock = utc_now,
        require_all_answered: bool = False,
        passing_score: int = PASSING_SCORE_PERCENT,
    ) -> None:
        self._definition = validate_definition(definition)
        self._clock = clock
        self._require_all_answered = require_all_answered
        self._passing_score = passing_score

        self._session_id: str = uuid4().hex
        self._status = SessionStatus.IN_PROGRESS
        self._current_index: int = 0
        self._answers: dict[int, int] = {}
        self._remaining_seconds: int | None = (
            definition.time_limit_minutes * SECONDS_PER_MINUTE if definition.is_timed else None
        )
        self._started_at: datetime = clock()
        self._submitted_at: datetime | None = None
        self._result: QuizResult | None = None

    # --- Read-only state ---

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def definition(self) -> QuizDefinition:
        return self._definition

    @property
    def status(self) -> SessionStatus:
        return self._status

    @property
    def is_submitted(self) -> bool:
        return self._status is SessionStatus.SUBMITTED

    @property
    def current_question_index(self) -> int:
        return self._current_index

    @property
    def current_question(self) -> QuizQuestion:
        return self._definition.questions[self._current_index]

    @property
    def question_count(self) -> int:
        return self._definition.question_count

    @property
    def answers(self) -> dict[int, int]:
        """Copy of the recorded answers, keyed by question index."""
        return dict(self._answers)

    @property
    def remaining_seconds(self) -> int | None:
        """Seconds left on the clock, or None for an untimed quiz."""
        return self._remaining_seconds

    @property
    def started_at(self) -> datetime:
        return self._started_at

    @property
    def submitted_at(self) -> datetime | None:
        return self._submitted_at

    @property
    def require_all_answered(self) -> bool:
        return self._require_all_answered

    @property
    def result(self) -> QuizResult | None:
        return self._result

    @property
    def answered_count(self) -> int:
        return len(self._answers)

    @property
    def all_answered(self) -> bool:
        return self.answered_count == self.question_count

    @property
    def progress_percent(self) -> int:
        """Position of the cursor through the quiz, as shown in a progress bar."""
        return percentage_score(self._current_index + 1, self.question_count)

    @property
    def is_low_on_time(self) -> bool:
        return self._remaining_seconds is not None and self._remaining_seconds < LOW_TIME_WARNING_SECONDS

    def is_answered(self, question_index: int) -> bool:
        self._check_question_index(question_index)
        return question_index in self._answers

    def unanswered_indices(self) -> list[int]:
        return [index for index in range(self.question_count) if index not in self._answers]

    # --- Respondent operations ---

    def select_answer(self, question_index: int, option_index: int) -> None:
        """Record or overwrite the answer for a question. Does not move the cursor."""
        self._ensure_in_progress("select an answer")
        question = self._check_question_index(question_index)
        if isinstance(option_index, bool) or not isinstance(option_index, int):
            raise InvalidArgumentError(f"Option index must be an integer, got {option_index!r}.")
        if not 0 <= option_index < len(question.options):
            raise InvalidArgumentError(
                f"Option index {option_index} out of range for question {question_index} "
                f"({len(question.options)} options)."
            )
        self._answers[question_index] = option_index

    def go_to_question(self, index: int) -> None:
        self._ensure_in_progress("navigate")
        self._check_question_index(index)
        self._current_index = index

    def next(self) -> None:
        self._ensure_in_progress("navigate")
        if self._current_index < self.question_count - 1:
            self._current_index += 1

    def previous(self) -> None:
        self._ensure_in_progress("navigate")
        if self._current_index > 0:
            self._current_index -= 1

    def tick(self) -> QuizResult | None:
        """Account for one elapsed second.

        Returns the result when this tick ran the clock out and auto-submitted
        the attempt, otherwise None.
        """
        if self.is_submitted or self._remaining_seconds is None:
            return None
        if self._remaining_seconds > 0:
            self._remaining_seconds -= 1
        if self._remaining_seconds == 0:
            return self._finalize(SubmissionReason.TIMEOUT)
        return None

    def submit(self) -> QuizResult:
        """Grade the attempt and move it to the terminal state."""
        self._ensure_in_progress("submit")
        if self._require_all_answered and not self.all_answered:
            raise IncompleteAttemptError(self.unanswered_indices())
        return self._finalize(SubmissionReason.EXPLICIT)

    def restart(self) -> QuizSession:
        """Return a fresh attempt at the same quiz. This session is left untouched."""
        return QuizSession(
            self._definition,
            clock=self._clock,
            require_all_answered=self._require_all_answered,
            passing_score=self._passing_score,
        )

    def review(self) -> list[QuestionReview]:
        """Per-question outcome for a submitted attempt."""
        if not self.is_submitted:
            raise InvalidStateError("Review is only available after the quiz is submitted.")
        entries: list[QuestionReview] = []
        for index, question in enumerate(self._definition.questions):
            selected = self._answers.get(index)
            if selected is None:
                outcome = ReviewOutcome.UNANSWERED
            elif selected == question.correct_option_index:
                outcome = ReviewOutcome.CORRECT
            else:
                outcome = ReviewOutcome.INCORRECT
            entries.append(
                QuestionReview(
                    question_index=index,
                    selected_option_index=selected,
                    correct_option_index=question.correct_option_index,
                    outcome=outcome,
                    explanation=question.explanation,
                )
            )
        return entries

    # --- Internals ---

    def _finalize(self, reason: SubmissionReason) -> QuizResult:
        # Shared by explicit submission and timeout so both grade identically.
        questions = self._definition.questions
        correct_count = sum(
            1
            for index, question in enumerate(questions)
            if self._answers.get(index) == question.correct_option_index
        )
        score = percentage_score(correct_count, len(questions))
        submitted_at = self._clock()

        self._status = SessionStatus.SUBMITTED
        self._submitted_at = submitted_at
        self._result = QuizResult(
            quiz_id=self._definition.id,
            session_id=self._session_id,
            answers=MappingProxyType(dict(self._answers)),
            score=score,
            correct_count=correct_count,
            question_count=len(questions),
            time_spent_seconds=self._time_spent_seconds(submitted_at),
            submitted_at=submitted_at,
            reason=reason,
            passed=score >= self._passing_score,
        )
        return self._result

    def _time_spent_seconds(self, submitted_at: datetime) -> int:
        if self._remaining_seconds is not None:
            return self._definition.time_limit_minutes * SECONDS_PER_MINUTE - self._remaining_seconds
        elapsed = (submitted_at - self._started_at).total_seconds()
        return max(0, int(elapsed))

    def _ensure_in_progress(self, action: str) -> None:
        if self.is_submitted:
            raise InvalidStateError(f"Cannot {action}: the quiz has already been submitted.")

    def _check_question_index(self, index: int) -> QuizQuestion:
        if isinstance(index, bool) or not isinstance(index, int):
            raise InvalidArgumentError(f"Question index must be an integer, got {index!r}.")
        if not 0 <= index < self.question_count:
            raise InvalidArgumentError(
                f"Question index {index} out of range (quiz has {self.question_count} questions)."
            )
        return self._definition.questions[index]
