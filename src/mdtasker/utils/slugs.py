"""
Heading anchor slugs.

Slugs are unique per parse pass: the first "Notes" heading gets ``notes``,
the second ``notes-2``, and so on. They are regenerated on every parse.
"""

import re
from typing import Set


def slugify(text: str) -> str:
    """Lowercase, drop punctuation, join words with ``-``."""
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug, flags=re.ASCII)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


class SlugGenerator:
    """Hands out collision-free slugs for one document."""

    def __init__(self, fallback: str = "section") -> None:
        self._used: Set[str] = set()
        self._fallback = fallback

    def next(self, text: str) -> str:
        base = slugify(text) or self._fallback
        slug = base
        suffix = 2
        while slug in self._used:
            slug = f"{base}-{suffix}"
            suffix += 1
        self._used.add(slug)
        return slug
