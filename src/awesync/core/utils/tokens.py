"""Shared markdown-it token utilities"""

from markdown_it import MarkdownIt
from markdown_it.token import Token


CODE_TOKEN_TYPES = {'fence'}


def _make_parser() -> MarkdownIt:
    return MarkdownIt("commonmark")


def _is_closed(token: Token, lines: list[str]) -> bool:
    """True if the fence's last mapped line is a closing marker (markdown-it runs unclosed fences to EOF)."""
    start, end = token.map
    if end - start < 2 or end > len(lines):
        return False
    closing = lines[end - 1].strip()
    marker = token.markup
    return (
        len(closing) >= len(marker)
        and closing.startswith(marker)
        and set(closing) == {marker[0]}
    )


def code_line_indexes(markdown: str) -> set[int]:
    """Return 0-based indexes of lines inside closed fenced code blocks (fences included)."""
    lines = markdown.split("\n")
    indexes: set[int] = set()
    for token in _make_parser().parse(markdown):
        if token.type in CODE_TOKEN_TYPES and token.map and _is_closed(token, lines):
            start, end = token.map
            indexes.update(range(start, end))
    return indexes
