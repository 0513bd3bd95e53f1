"""
User model and alias helpers.

The alias is the stable identifier used in markdown text (``(@alias)``).
Display name, email and avatar are presentation only.
"""

import re
from dataclasses import dataclass


def sanitize_alias(alias: str) -> str:
    """Lowercase, turn whitespace runs into ``_`` and drop anything outside ``[a-z0-9_]``."""
    alias = re.sub(r"\s+", "_", alias.strip().lower())
    return re.sub(r"[^a-z0-9_]", "", alias)


def default_avatar_url(alias: str) -> str:
    return f"https://picsum.photos/seed/{alias}/40/40"


@dataclass
class User:
    """A person tasks can be assigned to."""

    alias: str
    name: str
    email: str = ""
    avatar_url: str = ""

    @property
    def emails(self) -> list[str]:
        """Comma-separated ``email`` field split into addresses."""
        return [e.strip() for e in self.email.split(",") if e.strip()]
