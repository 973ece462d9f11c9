"""Utilities for importing quizzes from a human-friendly text file.

File format. An optional header comes first, then question blocks separated
by '---' or by a blank line before the next 'Q:'. Any other blank line is kept
as a paragraph break in the question, option or explanation it belongs to:

    TITLE: Quiz title
    DESCRIPTION: One line shown before the attempt starts
    TIMELIMIT: minutes (optional, 0 or omitted for an untimed quiz)

    Q: Question text (supports markdown + LaTeX). Additional lines until the
       next marker are treated as part of the question.
    A: First option text
    B: Second option text
    ...                 (two or more options, consecutive letters from A)
    CORRECT: B
    EXPLANATION: Optional text shown when reviewing the attempt.

Example:

    TITLE: Arithmetic warm-up
    TIMELIMIT: 5

    Q: What is $2 + 2$?
    A: 3
    B: 4
    C: 5
    CORRECT: B
    EXPLANATION: Two plus two is four.
"""

from __future__ import annotations

import logging
from pathlib import Path
from string import ascii_uppercase

from quiz_runner.core.errors import InvalidDefinitionError
from quiz_runner.core.models import QuizDefinition, QuizQuestion
from quiz_runner.core.validation import validate_definition

logger = logging.getLogger(__name__)


class QuizImportError(InvalidDefinitionError):
    """Raised when a quiz definition cannot be parsed."""


_HEADER_KEYS = ("ID", "TITLE", "DESCRIPTION", "TIMELIMIT")


def load_quiz_from_file(file_path: Path) -> QuizDefinition:
    text = file_path.read_text(encoding="utf-8")
    definition = parse_quiz_text(text, default_id=file_path.stem)
    logger.info(
        "Loaded quiz '%s' (%d questions) from %s",
        definition.id,
        definition.question_count,
        file_path,
    )
    return definition


def parse_quiz_text(text: str, default_id: str) -> QuizDefinition:
    blocks = _split_blocks(text)
    header: dict[str, str] = {}
    if blocks and not _is_question_block(blocks[0]):
        header = _parse_header(blocks.pop(0))

    questions = tuple(
        _parse_block(block, position) for position, block in enumerate(blocks, start=1)
    )
    if not questions:
        raise QuizImportError("Quiz file did not contain any questions.")

    quiz_id = header.get("ID") or default_id
    definition = QuizDefinition(
        id=quiz_id,
        title=header.get("TITLE") or quiz_id,
        description=header.get("DESCRIPTION", ""),
        time_limit_minutes=_parse_time_limit(header.get("TIMELIMIT")),
        questions=questions,
    )
    try:
        return validate_definition(definition)
    except InvalidDefinitionError as exc:
        raise QuizImportError(str(exc)) from exc


def _split_blocks(text: str) -> list[str]:
    # A blank line only ends a block when a new question starts after it;
    # otherwise it is a paragraph break inside the current section.
    blocks: list[str] = []
    current_block: list[str] = []
    blank_lines = 0
    for raw_line in text.splitlines():
        stripped = raw_line.strip()
        if stripped == "---":
            if current_block:
                blocks.append("\n".join(current_block).strip())
                current_block = []
            blank_lines = 0
            continue
        if not stripped:
            if current_block:
                blank_lines += 1
            continue
        if blank_lines:
            if _is_question_block(stripped) or _is_header_block(current_block):
                blocks.append("\n".join(current_block).strip())
                current_block = []
            else:
                current_block.extend([""] * blank_lines)
            blank_lines = 0
        current_block.append(raw_line)
    if current_block:
        blocks.append("\n".join(current_block).strip())
    return [block for block in blocks if block]


def _is_header_block(lines: list[str]) -> bool:
    return bool(lines) and not _is_question_block(lines[0])


def _is_question_block(block: str) -> bool:
    return block.lstrip().upper().startswith("Q:")


def _parse_header(block: str) -> dict[str, str]:
    header: dict[str, str] = {}
    for raw_line in block.splitlines():
        line = raw_line.strip()
        key, sep, value = line.partition(":")
        key = key.strip().upper()
        if not sep or key not in _HEADER_KEYS:
            raise QuizImportError(f"Unexpected line in quiz header: '{line}'.")
        header[key] = value.strip()
    return header


def _parse_time_limit(raw_value: str | None) -> int:
    if raw_value is None or raw_value == "":
        return 0
    try:
        minutes = int(raw_value)
    except ValueError as exc:
        raise QuizImportError("TIMELIMIT must be a whole number of minutes.") from exc
    if minutes < 0:
        raise QuizImportError("TIMELIMIT cannot be negative.")
    return minutes


def _parse_block(block: str, position: int) -> QuizQuestion:
    question_lines: list[str] = []
    explanation_lines: list[str] = []
    options: dict[str, str] = {}
    correct_letter: str | None = None
    current_section: str | None = None

    for raw_line in block.splitlines():
        line = raw_line.strip()
        if not line:
            # Paragraph break inside a multi-line section.
            if current_section == "Q":
                question_lines.append("")
            elif current_section == "EXPLANATION":
                explanation_lines.append("")
            elif current_section in options:
                options[current_section] += "\n"
            continue

        upper = line.upper()
        if upper.startswith("Q:"):
            question_lines = [line[2:].strip()]
            current_section = "Q"
            continue

        if upper.startswith("CORRECT:"):
            correct_letter = line.split(":", 1)[1].strip().upper()
            current_section = None
            continue

        if upper.startswith("EXPLANATION:"):
            explanation_lines = [line.split(":", 1)[1].strip()]
            current_section = "EXPLANATION"
            continue

        if len(line) > 2 and line[0].upper() in ascii_uppercase and line[1] == ":":
            letter = line[0].upper()
            if letter in options:
                raise QuizImportError(f"Question {position} defines option {letter} twice.")
            options[letter] = line[2:].strip()
            current_section = letter
            continue

        if current_section == "Q":
            question_lines.append(line)
        elif current_section == "EXPLANATION":
            explanation_lines.append(line)
        elif current_section in options:
            options[current_section] = options[current_section] + f"\n{line}"
        else:
            raise QuizImportError(
                f"Encountered text outside of a known section: '{line}'."
            )

    question_text = "\n".join(question_lines).strip()
    if not question_text:
        raise QuizImportError(f"Question {position}: question text missing (Q: ...)")

    letters = sorted(options)
    expected = list(ascii_uppercase[: len(letters)])
    if letters != expected:
        raise QuizImportError(
            f"Question {position}: options must use consecutive letters starting at A."
        )
    if len(letters) < 2:
        raise QuizImportError(f"Question {position}: define at least two options (A, B).")

    option_list = tuple(options[letter].strip() for letter in letters)
    if any(not opt for opt in option_list):
        raise QuizImportError(f"Question {position}: option text cannot be empty.")

    if correct_letter is None:
        raise QuizImportError(f"Question {position}: CORRECT line is required.")
    if correct_letter not in letters:
        raise QuizImportError(
            f"Question {position}: CORRECT must be one of {', '.join(letters)}."
        )

    explanation = "\n".join(explanation_lines).strip() or None
    return QuizQuestion(
        id=f"q{position}",
        prompt=question_text,
        options=option_list,
        correct_option_index=letters.index(correct_letter),
        explanation=explanation,
    )
