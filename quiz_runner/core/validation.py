"""Structural checks applied to quiz definitions before any attempt starts."""

from __future__ import annotations

from dataclasses import replace

from quiz_runner.constants.quiz_constants import MIN_OPTIONS_PER_QUESTION
from quiz_runner.core.errors import InvalidDefinitionError
from quiz_runner.core.models import QuizDefinition, QuizQuestion


def validate_definition(definition: QuizDefinition) -> QuizDefinition:
    """Return a definition safe to share between sessions, or raise InvalidDefinitionError.

    A definition that already holds tuples is returned as is. Lists passed for
    ``questions`` or ``options`` are copied into tuples so a caller cannot
    change a definition after sessions start sharing it.
    """
    if not isinstance(definition, QuizDefinition):
        raise InvalidDefinitionError(f"Expected a QuizDefinition, got {type(definition).__name__}.")
    if not isinstance(definition.id, str) or not definition.id.strip():
        raise InvalidDefinitionError("Quiz id must be a non-empty string.")
    if not isinstance(definition.title, str) or not isinstance(definition.description, str):
        raise InvalidDefinitionError(f"Quiz '{definition.id}' must have text title and description.")
    if not isinstance(definition.questions, (list, tuple)):
        raise InvalidDefinitionError(f"Quiz '{definition.id}' questions must be a sequence of questions.")
    if not definition.questions:
        raise InvalidDefinitionError(f"Quiz '{definition.id}' must contain at least one question.")

    limit = definition.time_limit_minutes
    if isinstance(limit, bool) or not isinstance(limit, int):
        raise InvalidDefinitionError("Time limit must be a whole number of minutes.")
    if limit < 0:
        raise InvalidDefinitionError("Time limit cannot be negative.")

    questions: list[QuizQuestion] = []
    seen_ids: set[str] = set()
    for position, question in enumerate(definition.questions, start=1):
        question = _validate_question(question, position)
        if question.id in seen_ids:
            raise InvalidDefinitionError(f"Duplicate question id '{question.id}'.")
        seen_ids.add(question.id)
        questions.append(question)

    if isinstance(definition.questions, tuple) and all(
        checked is original for checked, original in zip(questions, definition.questions)
    ):
        return definition
    return replace(definition, questions=tuple(questions))


def _validate_question(question: object, position: int) -> QuizQuestion:
    if not isinstance(question, QuizQuestion):
        raise InvalidDefinitionError(
            f"Question {position} must be a QuizQuestion, got {type(question).__name__}."
        )
    if not isinstance(question.id, str) or not question.id:
        raise InvalidDefinitionError(f"Question {position} needs a text id.")
    if not isinstance(question.prompt, str) or not question.prompt.strip():
        raise InvalidDefinitionError(f"Question {position} has no prompt text.")
    if question.explanation is not None and not isinstance(question.explanation, str):
        raise InvalidDefinitionError(f"Question {position} explanation must be text.")

    options = question.options
    if not isinstance(options, (list, tuple)):
        raise InvalidDefinitionError(f"Question {position} options must be a sequence of strings.")
    if len(options) < MIN_OPTIONS_PER_QUESTION:
        raise InvalidDefinitionError(
            f"Question {position} must offer at least {MIN_OPTIONS_PER_QUESTION} options."
        )
    if any(not isinstance(option, str) or not option.strip() for option in options):
        raise InvalidDefinitionError(f"Question {position} has an empty option.")

    index = question.correct_option_index
    if isinstance(index, bool) or not isinstance(index, int) or not 0 <= index < len(options):
        raise InvalidDefinitionError(
            f"Question {position} has correct option index {index!r} outside 0..{len(options) - 1}."
        )
    if isinstance(options, tuple):
        return question
    return replace(question, options=tuple(options))
