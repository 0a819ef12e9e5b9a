"""Text helpers shared by the store and the renderer."""

from __future__ import annotations

import re
import unicodedata

_STRIP_RE = re.compile(r"[^\w\s-]", re.UNICODE)
_MULTI_DASH_RE = re.compile(r"[-\s_]+")


def slugify(text: str) -> str:
    """Convert a title or tag to a URL-friendly slug.

    Examples:
        "Hello, World!" → "hello-world"
        "Rust & Go" → "rust-go"
        "Café au lait" → "café-au-lait"
    """
    text = unicodedata.normalize("NFC", text.strip().lower())
    text = _STRIP_RE.sub("", text)
    text = _MULTI_DASH_RE.sub("-", text)
    return text.strip("-")


def truncate_words(text: str, limit: int) -> str:
    """Cut ``text`` after ``limit`` words, appending an ellipsis if cut."""
    words = text.split()
    if len(words) <= limit:
        return " ".join(words)
    return " ".join(words[:limit]) + " …"
