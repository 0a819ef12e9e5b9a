"""Whitespace minification for rendered HTML and XML documents.

Collapses whitespace runs and drops whitespace around block-level tags.
Contents of <pre>, <code>, <textarea>, <script> and <style> are kept
verbatim.
"""

from __future__ import annotations

import re

_PRESERVE_RE = re.compile(
    r"<(pre|code|textarea|script|style)\b[^>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_COMMENT_RE = re.compile(r"<!--(?!\[if).*?-->", re.DOTALL)
_WHITESPACE_RE = re.compile(r"\s+")
_BLOCK_TAG_RE = re.compile(
    r"\s*(</?(?:!doctype|html|head|body|title|meta|link|main|header|footer|nav|"
    r"section|article|aside|div|p|ul|ol|li|dl|dt|dd|h[1-6]|hr|br|table|thead|"
    r"tbody|tfoot|tr|th|td|blockquote|figure|figcaption|form|"
    r"rss|channel|item|guid|pubdate|lastbuilddate|language|description|"
    r"urlset|url|loc|lastmod|\?xml)\b[^>]*>)\s*",
    re.IGNORECASE,
)


def _squeeze(chunk: str) -> str:
    chunk = _COMMENT_RE.sub("", chunk)
    chunk = _WHITESPACE_RE.sub(" ", chunk)
    return _BLOCK_TAG_RE.sub(r"\1", chunk)


def minify_html(document: str) -> str:
    """Return ``document`` with redundant whitespace removed."""
    parts: list[str] = []
    last = 0
    for match in _PRESERVE_RE.finditer(document):
        parts.append(_squeeze(document[last:match.start()]))
        parts.append(match.group(0))
        last = match.end()
    parts.append(_squeeze(document[last:]))
    return "".join(parts).strip() + "\n"
