"""Helpers to turn feed items into classifier input."""

import hashlib
import re
from typing import Optional

_TAG_RE = re.compile(r"<[^>]+>")


def strip_html(html: str) -> str:
    """Replace every markup tag with a space."""
    return _TAG_RE.sub(" ", html)


def item_text(
    title: str,
    author: Optional[str] = None,
    content: Optional[str] = None,
    html: Optional[str] = None,
) -> str:
    """Build the review text of an item.

    Title, author, plain body and the tag-stripped HTML body are joined with
    newlines, in that order. Missing parts are left out.
    """
    parts = [title]
    if author:
        parts.append(f"by {author}")
    if content:
        parts.append(content)
    if html:
        parts.append(strip_html(html))
    return "\n".join(parts)


def fingerprint(text: str) -> str:
    """MD5 hex digest of the text, used to detect changed content."""
    return hashlib.md5(text.encode("utf-8")).hexdigest()


def truncate(text: str, max_length: int) -> str:
    """Shorten text to max_length characters, ending with an ellipsis when cut."""
    if len(text) <= max_length:
        return text
    return text[: max(max_length - 1, 0)] + "…"
