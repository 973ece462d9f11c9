"""Catalog of quiz definitions available to respondents."""

from __future__ import annotations

from dataclasses import replace

from quiz_runner.core.errors import UnknownQuizError
from quiz_runner.core.models import QuizDefinition, QuizQuestion
from quiz_runner.core.validation import validate_definition


class QuizRepository:
    """Stores validated, immutable quiz definitions by id."""

    def __init__(self) -> None:
        self._definitions: dict[str, QuizDefinition] = {}

    def add(self, definition: QuizDefinition) -> QuizDefinition:
        """Validate, normalize and register a definition, replacing any with the same id."""
        # Checks compare stripped text, so normalizing cannot invalidate a checked definition.
        prepared = self._prepare_definition(validate_definition(definition))
        self._definitions[prepared.id] = prepared
        return prepared

    def get(self, quiz_id: str) -> QuizDefinition:
        try:
            return self._definitions[quiz_id]
        except KeyError:
            raise UnknownQuizError(f"No quiz registered with id '{quiz_id}'.") from None

    def get_all(self) -> list[QuizDefinition]:
        return sorted(self._definitions.values(), key=lambda d: d.title.lower())

    def remove(self, quiz_id: str) -> None:
        if self._definitions.pop(quiz_id, None) is None:
            raise UnknownQuizError(f"No quiz registered with id '{quiz_id}'.")

    def __contains__(self, quiz_id: object) -> bool:
        return quiz_id in self._definitions

    def __len__(self) -> int:
        return len(self._definitions)

    def _prepare_definition(self, definition: QuizDefinition) -> QuizDefinition:
        return replace(
            definition,
            title=definition.title.strip() or definition.id,
            description=definition.description.strip(),
            questions=tuple(self._prepare_question(q) for q in definition.questions),
        )

    @staticmethod
    def _prepare_question(question: QuizQuestion) -> QuizQuestion:
        explanation = question.explanation.strip() if question.explanation else None
        return replace(
            question,
            prompt=question.prompt.strip(),
            options=tuple(option.strip() for option in question.options),
            explanation=explanation or None,
        )
