"""Slug derivation for articles."""
import re

_SLUG_STRIP_RE = re.compile(r"[^\w\s~-]")
_SLUG_SPACE_RE = re.compile(r"\s+")


def slugify(title: str) -> str:
    """
    Return a URL-safe slug for *title*.

    Case and existing hyphens are kept; whitespace runs become a single
    ``-`` and punctuation is dropped, so ``"How to eat a fish"`` maps to
    ``"How-to-eat-a-fish"``.
    """
    text = _SLUG_STRIP_RE.sub("", title.strip())
    return _SLUG_SPACE_RE.sub("-", text).strip("-")


def next_slug(current_title: str, current_slug: str, new_title: str | None) -> str:
    """Slug an article should carry after an update that sets *new_title*."""
    if new_title is None or new_title == current_title:
        return current_slug
    return slugify(new_title)
