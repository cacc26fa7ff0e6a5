"""HTML utility functions for Tuzuru.

Functions:
    escape_html: Escape special HTML characters in a string.
    join_root_url: Join a base URL with a path.
"""

from __future__ import annotations


def escape_html(text: str) -> str:
    """Escape special HTML characters in a string.

    Converts ``&``, ``<``, ``>``, ``"`` and ``'`` to their entity equivalents.
    The ampersand is replaced first so existing entities are escaped once.

    Args:
        text: The string to escape.

    Returns:
        The escaped string, safe for inclusion in HTML text and attributes.

    Examples:
        >>> escape_html('<script>alert("XSS")</script>')
        '&lt;script&gt;alert(&quot;XSS&quot;)&lt;/script&gt;'

        >>> escape_html("Tom & Jerry's")
        'Tom &amp; Jerry&#39;s'
    """
    return (
        text.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
        .replace("'", "&#39;")
    )


def join_root_url(root_url: str, path: str) -> str:
    """Safely join a root URL and a path, avoiding double slashes.

    Args:
        root_url: Base URL (e.g., https://example.com/blog).
        path: Path beginning with or without a leading slash.

    Returns:
        Combined URL with proper slash handling.

    Examples:
        >>> join_root_url('https://example.com', '/about/')
        'https://example.com/about/'

        >>> join_root_url('https://example.com/', '')
        'https://example.com/'
    """
    if not root_url:
        return path
    base = root_url.rstrip("/")
    suffix = path if path.startswith("/") else f"/{path}"
    return f"{base}{suffix}"
