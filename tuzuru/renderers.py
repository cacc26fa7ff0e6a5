"""Markdown parsing and HTML rendering for Tuzuru.

Parsing and rendering are split so the rewriting passes can run on the
token tree in between. Both sides are configured with the same mistune
plugins, so every token the parser can produce has a renderer.

Key functions:
- parse_markdown: Markdown text to a mistune token list.
- render_tokens: Token list to HTML.
- tighten_list_items: Remove paragraph wrappers inside list items.
"""

from __future__ import annotations

import re
from typing import Any

import mistune
from mistune.core import BlockState

from .html_utils import escape_html

MARKDOWN_PLUGINS = ["strikethrough", "table"]

_LIST_ITEM_RE = re.compile(r"(<li(?:\s[^>]*)?>)(.*?)(</li>)", re.DOTALL)
_PARAGRAPH_TAG_RE = re.compile(r"<\s*/?\s*p(?:\s+[^>]*)?>", re.IGNORECASE)
_BLOCK_TAG_SPACE_RE = re.compile(
    r"\s*(</?(?:ul|ol|li|blockquote|pre|div|table|thead|tbody|tr|th|td|h[1-6])\b[^>]*>)\s*",
    re.IGNORECASE,
)


class _BodyRenderer(mistune.HTMLRenderer):
    """HTML renderer for post bodies.

    Raw HTML (including generated embeds) passes through untouched, and code
    blocks are written verbatim because their contents were escaped earlier
    in the pipeline.
    """

    def __init__(self):
        super().__init__(escape=False)

    def block_code(self, code: str, info: str | None = None) -> str:
        """Render a code block without escaping its contents again.

        Args:
            code: Already escaped code.
            info: Fence info string; its first word becomes the language class.

        Returns:
            HTML ``pre``/``code`` block.
        """
        attrs = ""
        if info:
            language = info.strip().split(None, 1)[0]
            attrs = f' class="language-{escape_html(language)}"'
        return f"<pre><code{attrs}>{code}</code></pre>\n"


def parse_markdown(text: str) -> list[dict[str, Any]]:
    """Parse markdown into mistune's token tree.

    A parser is built per call; instances are not shared between threads.
    """
    parser = mistune.create_markdown(renderer="ast", plugins=MARKDOWN_PLUGINS)
    return parser(text)


def render_tokens(tokens: list[dict[str, Any]]) -> str:
    """Render a (possibly rewritten) token tree to HTML."""
    markdown = mistune.create_markdown(renderer=_BodyRenderer(), plugins=MARKDOWN_PLUGINS)
    return markdown.renderer(tokens, BlockState())


def tighten_list_items(html: str) -> str:
    """Strip paragraph tags inside list items and the whitespace around block tags.

    ``<li><p>Item</p>\\n<ul>`` becomes ``<li>Item<ul>``. Whitespace next to
    inline tags such as ``<a>`` or ``<code>`` is kept.

    Args:
        html: Rendered body HTML.

    Returns:
        HTML with compact list items.
    """

    def repl(match: re.Match) -> str:
        inner = _PARAGRAPH_TAG_RE.sub("", match.group(2))
        inner = _BLOCK_TAG_SPACE_RE.sub(r"\1", inner).strip()
        return f"{match.group(1)}{inner}{match.group(3)}"

    return _LIST_ITEM_RE.sub(repl, html)
