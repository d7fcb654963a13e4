"""Markdown rendering of question text for the participant view.

Architecture note:
    Question text is authored (or generated) as plain text that may contain
    light markdown such as code spans or emphasis. It is rendered to an HTML
    fragment on every read rather than stored pre-rendered, so the stored
    question stays the exact text that scoring and CSV export see. Raw HTML in
    the source is escaped, never passed through.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from markdown_it import MarkdownIt

_EMPTY_FRAGMENT = "<p><em>No question text.</em></p>"


@dataclass(slots=True)
class QuestionRenderer:
    """Converts question markdown into HTML fragments."""

    enable_html: bool = False
    _markdown: MarkdownIt = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._markdown = (
            MarkdownIt("commonmark", {"html": self.enable_html})
            .enable("table")
            .enable("strikethrough")
        )

    def render_fragment(self, markdown_text: str) -> str:
        text = markdown_text.strip()
        if not text:
            return _EMPTY_FRAGMENT
        return self._markdown.render(text)


# Shared instance; MarkdownIt renders are read-only, so request threads may reuse it.
renderer = QuestionRenderer()
