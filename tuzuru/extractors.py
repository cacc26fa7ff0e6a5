"""Title and excerpt extraction for Tuzuru.

Both extractors work on the mistune token tree rather than on rendered
HTML, so markup never leaks into the plain text they produce.

Key classes:
- TitleExtractor: Takes the first level-1 heading as the title and removes
  it, together with everything before it, from the document.
- ExcerptExtractor: Builds a bounded plain-text summary of the body.
"""

from __future__ import annotations

from typing import Any

Token = dict[str, Any]

DEFAULT_EXCERPT_LENGTH = 150
ELLIPSIS = "..."

# Block tokens that do not contribute to the excerpt.
_EXCERPT_SKIPPED = frozenset({"block_code", "block_html", "thematic_break", "blank_line"})
# Inline tokens whose text is not prose.
_PLAIN_TEXT_SKIPPED = frozenset({"inline_html", "image"})


def plain_text(tokens: list[Token]) -> str:
    """Concatenate the visible text of inline tokens.

    Args:
        tokens: Inline token list, e.g. the children of a heading.

    Returns:
        Text with markup removed; line breaks become single spaces.
    """
    parts: list[str] = []
    for token in tokens:
        kind = token["type"]
        if kind in _PLAIN_TEXT_SKIPPED:
            continue
        if kind in ("text", "codespan"):
            parts.append(token.get("raw", ""))
        elif kind in ("softbreak", "linebreak"):
            parts.append(" ")
        elif isinstance(token.get("children"), list):
            parts.append(plain_text(token["children"]))
    return "".join(parts)


class TitleExtractor:
    """Extracts the document title from its first level-1 heading.

    Only top-level headings count. Content before the title heading is
    dropped along with it; later level-1 headings stay in the body.
    """

    def extract(self, tokens: list[Token]) -> tuple[str | None, list[Token]]:
        """Split a token tree into its title and the remaining body.

        Args:
            tokens: Top-level token list of a parsed document.

        Returns:
            Tuple of (title, body tokens). The title is None, and the tokens
            are returned unchanged, when the document has no level-1 heading.
        """
        for index, token in enumerate(tokens):
            if token["type"] == "heading" and token.get("attrs", {}).get("level") == 1:
                title = " ".join(plain_text(token.get("children", [])).split())
                return title, tokens[index + 1 :]
        return None, tokens


class ExcerptExtractor:
    """Builds a plain-text excerpt of at most ``max_length`` characters.

    Headings, paragraphs, list items and table cells contribute their text;
    code blocks and raw HTML do not. When the text is cut short the excerpt
    ends with ``...`` and still fits within ``max_length``.
    """

    def __init__(self, max_length: int = DEFAULT_EXCERPT_LENGTH):
        self.max_length = max_length

    def extract(self, tokens: list[Token]) -> str:
        blocks: list[str] = []
        self._collect(tokens, blocks)
        text = " ".join(" ".join(blocks).split())
        if len(text) <= self.max_length:
            return text
        budget = max(self.max_length - len(ELLIPSIS), 0)
        return text[:budget].rstrip() + ELLIPSIS[: self.max_length]

    def _collect(self, tokens: list[Token], blocks: list[str]) -> None:
        for token in tokens:
            kind = token["type"]
            if kind in _EXCERPT_SKIPPED:
                continue
            if kind in ("heading", "paragraph", "block_text", "table_cell"):
                blocks.append(plain_text(token.get("children", [])))
            elif isinstance(token.get("children"), list):
                self._collect(token["children"], blocks)
