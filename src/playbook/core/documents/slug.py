"""Filename slugs for documents written to repositories."""

from __future__ import annotations

import re
import time

MAX_SLUG_LENGTH = 50

_HEADING_RE = re.compile(r"^#\s+(.*)$", re.MULTILINE)


def slugify(name: str, max_length: int = MAX_SLUG_LENGTH) -> str:
    """
    Lowercase, whitespace to dashes, drop anything outside ``[a-z0-9_-]``.

    Example:
        >>> slugify("Auth Flow (v2)")
        'auth-flow-v2'
    """
    slug = re.sub(r"\s+", "-", name.strip().lower())
    slug = re.sub(r"[^a-z0-9_-]", "", slug)
    return slug[:max_length]


def heading_slug(content: str) -> str | None:
    """Slug of the first level-one markdown heading, if there is one."""
    match = _HEADING_RE.search(content)
    if not match:
        return None
    return slugify(match.group(1)) or None


def unix_millis() -> int:
    return int(time.time() * 1000)
