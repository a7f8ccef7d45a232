"""Author bookkeeping in markdown frontmatter."""

from __future__ import annotations

import json
from typing import Any

import frontmatter  # type: ignore[import-untyped]


def _as_author_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v is not None]
    text = str(value).strip()
    # Older documents store the list as a JSON string on one line
    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            parsed = None
        if isinstance(parsed, list):
            return [str(v) for v in parsed]
    return [text.strip("'\"")] if text else []


def inject_author(content: str, username: str) -> str:
    """
    Add ``username`` to the ``authors`` list in the document's frontmatter.

    Creates the frontmatter block (or the ``authors`` key) when missing and
    leaves the list alone when the user is already in it. Other metadata
    keys and the body are preserved.
    """
    post = frontmatter.loads(content)
    authors = _as_author_list(post.metadata.get("authors"))
    if username not in authors:
        authors.append(username)
    post.metadata["authors"] = authors
    return frontmatter.dumps(post) + "\n"
