"""Markdown rendering for question prompts, options and explanations.

LaTeX is left untouched (``$...$`` passes through CommonMark as text) so a
MathJax-enabled client can typeset it at display time.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

from quiz_runner.core.models import QuizQuestion


@dataclass(slots=True)
class MarkdownMathRenderer:
    """Converts markdown-with-math into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        """Render a markdown string into a block-level HTML fragment."""
        sanitized = markdown_text.strip()
        if not sanitized:
            return "<p><em>No content provided.</em></p>"
        return self._markdown.render(sanitized)

    def render_inline(self, markdown_text: str) -> str:
        """Render short text such as an option label without a wrapping paragraph."""
        return self._markdown.renderInline(markdown_text.strip())

    def render_question(self, question: QuizQuestion) -> dict[str, object]:
        return {
            "prompt_html": self.render_fragment(question.prompt),
            "options_html": [self.render_inline(option) for option in question.options],
        }

    def render_explanation(self, explanation: str | None) -> str | None:
        if not explanation:
            return None
        return self.render_fragment(explanation)


renderer = MarkdownMathRenderer()
# Shared instance: MarkdownIt is safe for concurrent read-only renders.
