"""Convert question records produced by a text-generation service into quizzes.

The generator is expected to return a JSON array shaped like::

    [{"question": "...", "options": ["...", "..."], "correctAnswer": 0,
      "explanation": "..."}]

Models frequently wrap that array in markdown fences or a sentence of prose,
so ``extract_question_records`` pulls out the outermost array first.
"""

from __future__ import annotations

import json
import re

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, model_validator

from quiz_runner.core.errors import InvalidDefinitionError
from quiz_runner.core.models import QuizDefinition, QuizQuestion
from quiz_runner.core.validation import validate_definition

_FENCE_PATTERN = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


class GeneratedQuestion(BaseModel):
    """One record as emitted by the generator."""

    question: str = Field(min_length=1)
    options: list[str] = Field(min_length=2)
    correctAnswer: int = Field(ge=0)
    explanation: str | None = None

    @model_validator(mode="after")
    def check_correct_answer(self) -> "GeneratedQuestion":
        if self.correctAnswer >= len(self.options):
            raise ValueError(
                f"correctAnswer {self.correctAnswer} does not match any of {len(self.options)} options"
            )
        return self


_RECORDS_ADAPTER = TypeAdapter(list[GeneratedQuestion])


def extract_question_records(text: str) -> list[dict[str, object]]:
    """Parse the JSON array embedded in a generator response."""
    cleaned = _FENCE_PATTERN.sub("", text.strip())
    start = cleaned.find("[")
    end = cleaned.rfind("]")
    if start == -1 or end < start:
        raise InvalidDefinitionError("Generated content does not contain a JSON array of questions.")
    try:
        payload = json.loads(cleaned[start : end + 1])
    except json.JSONDecodeError as exc:
        raise InvalidDefinitionError(f"Generated content is not valid JSON: {exc.msg}.") from exc
    if not isinstance(payload, list):
        raise InvalidDefinitionError("Generated content must be a list of question records.")
    return payload


def build_definition_from_records(
    records: list[dict[str, object]],
    *,
    quiz_id: str,
    title: str,
    description: str = "",
    time_limit_minutes: int = 0,
) -> QuizDefinition:
    """Validate generated records and wrap them into an immutable definition."""
    try:
        parsed = _RECORDS_ADAPTER.validate_python(records)
    except ValidationError as exc:
        raise InvalidDefinitionError(f"Generated questions are malformed: {exc}") from exc

    questions = tuple(
        QuizQuestion(
            id=f"generated_{index}",
            prompt=record.question.strip(),
            options=tuple(option.strip() for option in record.options),
            correct_option_index=record.correctAnswer,
            explanation=(record.explanation or "").strip() or None,
        )
        for index, record in enumerate(parsed)
    )
    return validate_definition(
        QuizDefinition(
            id=quiz_id,
            title=title,
            description=description,
            time_limit_minutes=time_limit_minutes,
            questions=questions,
        )
    )


def build_definition_from_response(text: str, *, quiz_id: str, title: str, **options) -> QuizDefinition:
    return build_definition_from_records(
        extract_question_records(text), quiz_id=quiz_id, title=title, **options
    )
