"""Domain models for the quiz runner."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SessionStatus(str, Enum):
    """Lifecycle state of a single quiz attempt."""

    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"


class SubmissionReason(str, Enum):
    """What caused an attempt to be submitted."""

    EXPLICIT = "explicit"
    TIMEOUT = "timeout"


class ReviewOutcome(str, Enum):
    CORRECT = "correct"
    INCORRECT = "incorrect"
    UNANSWERED = "unanswered"


@dataclass(frozen=True, slots=True)
class QuizQuestion:
    """Multiple-choice question with two or more options."""

    id: str
    prompt: str
    options: tuple[str, ...]
    correct_option_index: int
    explanation: str | None = None


@dataclass(frozen=True, slots=True)
class QuizDefinition:
    """Immutable question set and rules for a quiz. Shared by every attempt."""

    id: str
    title: str
    questions: tuple[QuizQuestion, ...]
    description: str = ""
    time_limit_minutes: int = 0  # 0 means untimed

    @property
    def question_count(self) -> int:
        return len(self.questions)

    @property
    def is_timed(self) -> bool:
        return self.time_limit_minutes > 0


@dataclass(frozen=True, slots=True)
class QuizResult:
    """Finished attempt record handed to result sinks."""

    quiz_id: str
    session_id: str
    answers: Mapping[int, int]  # read-only view, keyed by question index
    score: int
    correct_count: int
    question_count: int
    time_spent_seconds: int
    submitted_at: datetime
    reason: SubmissionReason
    passed: bool


@dataclass(frozen=True, slots=True)
class QuestionReview:
    """Per-question entry shown after submission."""

    question_index: int
    selected_option_index: int | None
    correct_option_index: int
    outcome: ReviewOutcome
    explanation: str | None = None

    @property
    def is_correct(self) -> bool:
        return self.outcome is ReviewOutcome.CORRECT


@dataclass(slots=True)
class RespondentProgress:
    """Snapshot of one respondent's attempt history."""

    respondent: str
    attempts: int
    best_score: int
    average_score: float
    passed_attempts: int
    last_submitted_at: datetime | None = None
    quiz_ids: list[str] = field(default_factory=list)
