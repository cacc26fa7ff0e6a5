"""AST rewriting passes for Tuzuru's markdown pipeline.

Markdown is parsed by mistune into a list of token dictionaries (``{"type":
"paragraph", "children": [...]}``). Each pass here is a ``TokenRewriter``:
it walks that tree and returns a new one, dispatching on the token type the
way ``ast.NodeTransformer`` dispatches on node classes.

Key classes:
- TokenRewriter: Base visitor; ``visit_<type>`` methods, recursive default.
- XPostLinkConverter: Bare X (Twitter) status URLs become embed blocks.
- URLLinker: Bare http(s) URLs become links.
- CodeBlockHTMLEscaper: Escapes code block contents once, up front.

Order matters: the X converter runs before the linker, otherwise the status
URL would already be wrapped in a link and never be embedded.
"""

from __future__ import annotations

import re
from typing import Any

from mistune.util import escape_url

from .html_utils import escape_html

Token = dict[str, Any]

# Inline tokens whose children are still ordinary prose.
_INLINE_CONTAINERS = frozenset({"emphasis", "strong", "strikethrough"})

X_STATUS_RE = re.compile(r"https://x\.com/([^/\s]+)/status/(\d+)(?:\?[^\s]*)?")
URL_RE = re.compile(r"https?://[^\s<>\"{}|\\^`\[\]]+")

_TRAILING_PUNCTUATION = ".,;:!?"

X_EMBED_TEMPLATE = (
    '<blockquote class="twitter-tweet" data-dnt="true">\n'
    "    <p>Loading tweet...</p>\n"
    '    <a href="https://twitter.com/{user}/status/{status_id}">Tweet by @{user}</a>\n'
    "</blockquote>\n"
    '<script async src="https://platform.twitter.com/widgets.js" charset="utf-8"></script>'
)


def text_token(raw: str) -> Token:
    return {"type": "text", "raw": raw}


def merge_text(children: list[Token]) -> list[Token]:
    """Join adjacent text tokens so a URL is never split across two of them."""
    merged: list[Token] = []
    for child in children:
        if child["type"] == "text" and merged and merged[-1]["type"] == "text":
            merged[-1] = text_token(merged[-1]["raw"] + child["raw"])
        else:
            merged.append(child)
    return merged


class TokenRewriter:
    """Base class for passes that rewrite a mistune token tree.

    ``visit`` looks up ``visit_<type>`` and falls back to ``generic_visit``,
    which keeps the token and rewrites its children. Every visit method
    returns a list, so a token can be dropped (``[]``), kept, or replaced by
    several tokens.
    """

    def rewrite(self, tokens: list[Token]) -> list[Token]:
        result: list[Token] = []
        for token in tokens:
            result.extend(self.visit(token))
        return result

    def visit(self, token: Token) -> list[Token]:
        method = getattr(self, f"visit_{token['type']}", self.generic_visit)
        return method(token)

    def generic_visit(self, token: Token) -> list[Token]:
        children = token.get("children")
        if isinstance(children, list):
            return [{**token, "children": self.rewrite(children)}]
        return [token]


class ParagraphTextRewriter(TokenRewriter):
    """Rewrite the plain text of paragraphs, leaving every other construct alone.

    Subclasses implement ``split_text``. Text inside links, images, inline
    code and headings is never handed to it.
    """

    def visit_paragraph(self, token: Token) -> list[Token]:
        return [{**token, "children": self._rewrite_inline(token.get("children", []))}]

    # Items of tight lists hold their text in block_text instead of paragraph.
    visit_block_text = visit_paragraph

    def visit_heading(self, token: Token) -> list[Token]:
        return [token]

    def _rewrite_inline(self, children: list[Token]) -> list[Token]:
        result: list[Token] = []
        for child in merge_text(children):
            if child["type"] == "text":
                result.extend(self.split_text(child["raw"]))
            elif child["type"] in _INLINE_CONTAINERS:
                result.append({**child, "children": self._rewrite_inline(child.get("children", []))})
            else:
                result.append(child)
        return result

    def split_text(self, text: str) -> list[Token]:
        raise NotImplementedError


class XPostLinkConverter(ParagraphTextRewriter):
    """Replace bare ``https://x.com/<user>/status/<id>`` URLs with an embed."""

    def split_text(self, text: str) -> list[Token]:
        tokens: list[Token] = []
        position = 0
        for match in X_STATUS_RE.finditer(text):
            if match.start() > position:
                tokens.append(text_token(text[position : match.start()]))
            user, status_id = match.group(1), match.group(2)
            tokens.append(
                {
                    "type": "inline_html",
                    "raw": X_EMBED_TEMPLATE.format(
                        user=escape_html(user), status_id=status_id
                    ),
                }
            )
            position = match.end()
        if position == 0:
            return [text_token(text)]
        if position < len(text):
            tokens.append(text_token(text[position:]))
        return tokens


class URLLinker(ParagraphTextRewriter):
    """Turn bare http(s) URLs into links whose text is the URL itself.

    Sentence punctuation directly after a URL stays outside the link. The
    text around each URL is preserved exactly.
    """

    def split_text(self, text: str) -> list[Token]:
        tokens: list[Token] = []
        position = 0
        for match in URL_RE.finditer(text):
            url = match.group(0).rstrip(_TRAILING_PUNCTUATION)
            if not url or url.endswith("://"):
                continue
            start = match.start()
            end = start + len(url)
            if start > position:
                tokens.append(text_token(text[position:start]))
            tokens.append(
                {"type": "link", "children": [text_token(url)], "attrs": {"url": escape_url(url)}}
            )
            position = end
        if position == 0:
            return [text_token(text)]
        if position < len(text):
            tokens.append(text_token(text[position:]))
        return tokens


class CodeBlockHTMLEscaper(TokenRewriter):
    """Escape ``& < > " '`` in code block contents.

    The body renderer emits code blocks verbatim, so this is the only place
    their contents are escaped.
    """

    def visit_block_code(self, token: Token) -> list[Token]:
        return [{**token, "raw": escape_html(token.get("raw", ""))}]
