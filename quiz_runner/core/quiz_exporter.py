"""Utilities for exporting quizzes to the plain-text format used for imports."""

from __future__ import annotations

from pathlib import Path
from string import ascii_uppercase

from quiz_runner.core.models import QuizDefinition, QuizQuestion


def save_quiz_to_file(file_path: Path, definition: QuizDefinition) -> None:
    """Persist the definition to disk in the text import format."""

    if not definition.questions:
        raise ValueError("Cannot export an empty quiz.")

    file_path = file_path.resolve()
    file_path.parent.mkdir(parents=True, exist_ok=True)
    file_path.write_text(serialize_quiz(definition), encoding="utf-8")


def serialize_quiz(definition: QuizDefinition) -> str:
    header = [f"ID: {definition.id}", f"TITLE: {definition.title}"]
    if definition.description:
        header.append(f"DESCRIPTION: {' '.join(definition.description.split())}")
    if definition.time_limit_minutes:
        header.append(f"TIMELIMIT: {definition.time_limit_minutes}")

    blocks = ["\n".join(header)]
    blocks.extend(_serialize_question(question) for question in definition.questions)
    return "\n\n---\n\n".join(blocks) + "\n"


def _serialize_question(question: QuizQuestion) -> str:
    lines: list[str] = []

    question_lines = question.prompt.splitlines() or [question.prompt]
    lines.append(f"Q: {question_lines[0]}")
    lines.extend(question_lines[1:])

    for letter, option_text in zip(ascii_uppercase, question.options):
        option_lines = option_text.splitlines() or [option_text]
        lines.append(f"{letter}: {option_lines[0]}")
        lines.extend(option_lines[1:])

    lines.append(f"CORRECT: {ascii_uppercase[question.correct_option_index]}")

    if question.explanation:
        explanation_lines = question.explanation.splitlines()
        lines.append(f"EXPLANATION: {explanation_lines[0]}")
        lines.extend(explanation_lines[1:])

    return "\n".join(lines)
