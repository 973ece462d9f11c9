from dataclasses import replace
from pathlib import Path

import pytest

from quiz_runner.core.errors import InvalidDefinitionError
from quiz_runner.core.models import QuizQuestion
from quiz_runner.core.quiz_exporter import save_quiz_to_file, serialize_quiz
from quiz_runner.core.quiz_importer import QuizImportError, load_quiz_from_file, parse_quiz_text

from conftest import make_definition

SAMPLE_QUIZ = Path(__file__).resolve().parent.parent / "quiz_runner" / "data" / "sample_quiz.txt"


def test_parses_header_and_questions():
    text = """
TITLE: Arithmetic
DESCRIPTION: Warm-up
TIMELIMIT: 5

Q: What is $2 + 2$?
A: 3
B: 4
CORRECT: B
EXPLANATION: Two plus two
is four.
---
Q: Pick the prime.
   It is the only even one.
A: 1
B: 2
C: 4
D: 9
CORRECT: b
"""
    definition = parse_quiz_text(text, default_id="arith")

    assert definition.id == "arith"
    assert definition.title == "Arithmetic"
    assert definition.description == "Warm-up"
    assert definition.time_limit_minutes == 5
    assert definition.question_count == 2
    first, second = definition.questions
    assert first.options == ("3", "4")
    assert first.correct_option_index == 1
    assert first.explanation == "Two plus two\nis four."
    assert second.prompt == "Pick the prime.\nIt is the only even one."
    assert second.correct_option_index == 1
    assert second.explanation is None


def test_quiz_without_header_is_untimed():
    definition = parse_quiz_text("Q: Yes?\nA: yes\nB: no\nCORRECT: A\n", default_id="yn")

    assert definition.title == "yn"
    assert definition.time_limit_minutes == 0


@pytest.mark.parametrize(
    "text, message",
    [
        ("TITLE: Empty\n", "did not contain any questions"),
        ("Q: One option\nA: only\nCORRECT: A\n", "at least two options"),
        ("Q: Gap\nA: one\nC: three\nCORRECT: A\n", "consecutive letters"),
        ("Q: Missing\nA: one\nB: two\n", "CORRECT line is required"),
        ("Q: Wrong\nA: one\nB: two\nCORRECT: C\n", "CORRECT must be one of A, B"),
        ("TIMELIMIT: soon\n\nQ: T\nA: a\nB: b\nCORRECT: A\n", "whole number of minutes"),
        ("AUTHOR: me\n\nQ: T\nA: a\nB: b\nCORRECT: A\n", "Unexpected line in quiz header"),
    ],
)
def test_rejects_malformed_quizzes(text, message):
    with pytest.raises(QuizImportError, match=message):
        parse_quiz_text(text, default_id="bad")


def test_import_errors_are_definition_errors():
    with pytest.raises(InvalidDefinitionError):
        parse_quiz_text("", default_id="empty")


def test_bundled_sample_quiz_loads():
    definition = load_quiz_from_file(SAMPLE_QUIZ)

    assert definition.id == "python-basics"
    assert definition.time_limit_minutes == 5
    assert [q.correct_option_index for q in definition.questions] == [1, 1, 2]


def test_exported_quiz_imports_back(tmp_path):
    original = make_definition(
        correct_indices=(2, 0),
        time_limit_minutes=3,
        option_count=4,
        explanations=["First para.\n\nSecond para.", "Line one\nLine two"],
    )
    target = tmp_path / "nested" / "quiz.txt"

    save_quiz_to_file(target, original)
    loaded = load_quiz_from_file(target)

    assert loaded.id == original.id
    assert loaded.title == original.title
    assert loaded.time_limit_minutes == 3
    assert [(q.prompt, q.options, q.correct_option_index, q.explanation) for q in loaded.questions] == [
        (q.prompt, q.options, q.correct_option_index, q.explanation) for q in original.questions
    ]


def test_multi_paragraph_text_survives_export(tmp_path):
    original = replace(
        make_definition(),
        questions=(
            QuizQuestion(
                id="q1",
                prompt="Read the snippet.\n\n```python\nx = 1\n```\n\n\nWhat is `x`?",
                options=("One\n\nas an int", "Two"),
                correct_option_index=0,
                explanation="First para.\n\nSecond para.",
            ),
            QuizQuestion(id="q2", prompt="Next?", options=("a", "b"), correct_option_index=1),
        ),
    )
    target = tmp_path / "quiz.txt"

    save_quiz_to_file(target, original)
    loaded = load_quiz_from_file(target)

    first, second = loaded.questions
    assert first.prompt == original.questions[0].prompt
    assert first.options == ("One\n\nas an int", "Two")
    assert first.explanation == "First para.\n\nSecond para."
    assert (second.prompt, second.options, second.correct_option_index) == ("Next?", ("a", "b"), 1)


def test_blank_line_before_next_question_still_separates_blocks():
    text = "Q: One?\nA: a\nB: b\nCORRECT: A\nEXPLANATION: Start.\n\nMore.\n\nQ: Two?\nA: c\nB: d\nCORRECT: B\n"

    first, second = parse_quiz_text(text, default_id="blocks").questions

    assert first.explanation == "Start.\n\nMore."
    assert second.prompt == "Two?"
    assert second.correct_option_index == 1


def test_serialized_untimed_quiz_omits_time_limit():
    assert "TIMELIMIT" not in serialize_quiz(make_definition())
