"""Exceptions raised by the quiz engine and its collaborators."""

from __future__ import annotations


class QuizEngineError(Exception):
    """Base class for every quiz engine failure."""


class InvalidDefinitionError(QuizEngineError):
    """Raised when a quiz definition is empty or malformed."""


class InvalidArgumentError(QuizEngineError, ValueError):
    """Raised when a question or option index is out of range."""


class InvalidStateError(QuizEngineError, RuntimeError):
    """Raised when an operation is not allowed in the session's current state."""


class IncompleteAttemptError(InvalidStateError):
    """Raised on explicit submission with unanswered questions when completeness is required."""

    def __init__(self, unanswered: list[int]) -> None:
        self.unanswered = unanswered
        numbers = ", ".join(str(index + 1) for index in unanswered)
        super().__init__(f"Answer all questions before submitting (unanswered: {numbers}).")


class UnknownQuizError(KeyError):
    """Raised when no quiz definition is registered under an id."""


class UnknownAttemptError(KeyError):
    """Raised when no live attempt is registered under an id."""
