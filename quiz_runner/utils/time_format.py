"""Formatting helpers for countdowns and durations."""

from __future__ import annotations

from quiz_runner.constants.quiz_constants import SECONDS_PER_MINUTE


def format_clock(seconds: int | None) -> str | None:
    """Render seconds as ``m:ss`` (``None`` stays ``None`` for untimed quizzes)."""
    if seconds is None:
        return None
    seconds = max(0, seconds)
    minutes, remainder = divmod(seconds, SECONDS_PER_MINUTE)
    return f"{minutes}:{remainder:02d}"
