from datetime import datetime, timedelta, timezone

import pytest

from quiz_runner.core.models import QuizDefinition, QuizQuestion


class FakeClock:
    """Manually advanced clock for deterministic timestamps."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def make_definition(
    correct_indices=(1, 0, 2),
    time_limit_minutes=0,
    quiz_id="quiz-1",
    option_count=3,
    explanations=None,
) -> QuizDefinition:
    questions = tuple(
        QuizQuestion(
            id=f"q{i + 1}",
            prompt=f"Question {i + 1}?",
            options=tuple(f"Option {chr(65 + k)}" for k in range(option_count)),
            correct_option_index=correct,
            explanation=explanations[i] if explanations else None,
        )
        for i, correct in enumerate(correct_indices)
    )
    return QuizDefinition(
        id=quiz_id,
        title="Sample quiz",
        description="Used by the test suite.",
        time_limit_minutes=time_limit_minutes,
        questions=questions,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def definition():
    return make_definition()


@pytest.fixture
def timed_definition():
    return make_definition(time_limit_minutes=1)
