"""
Metadata tokens on a task line.

A task line may carry any of these whitespace-delimited tokens, in any order:

    (@alias)      assignee
    ($1500.50)    cost
    ~2024-07-20   completion date
    +2024-07-01   creation date
    !2024-08-10   due date

Extraction is order-independent: every kind is matched and stripped by its
own pattern. Rendering always uses one canonical order:

    +creation !due text (@assignee) ($cost) ~completion
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Tuple

DATE = r"\d{4}-\d{2}-\d{2}"

# Token bodies, without the leading boundary. Group 1 is the token value.
_TOKEN_BODIES: Dict[str, str] = {
    "assignee": r"\(@([A-Za-z0-9_]+)\)",
    "cost": r"\(\$(\d+(?:\.\d{1,2})?)\)",
    "completion": rf"~({DATE})(?!\S)",
    "creation": rf"\+({DATE})(?!\S)",
    "due": rf"!({DATE})(?!\S)",
}

# For finding a token and reading its value.
TOKEN_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    kind: re.compile(rf"(?<!\S){body}") for kind, body in _TOKEN_BODIES.items()
}

# For deleting a token together with the whitespace that separates it.
_STRIP_PATTERNS: Dict[str, "re.Pattern[str]"] = {
    kind: re.compile(rf"(?:^|\s){body}") for kind, body in _TOKEN_BODIES.items()
}

_TOKEN_PREFIX = {
    "completion": "~",
    "creation": "+",
    "due": "!",
}

DATE_KINDS = ("creation", "due", "completion")


@dataclass
class TaskTokens:
    """Clean task text plus the typed values of its metadata tokens."""

    clean_text: str
    assignee_alias: Optional[str] = None
    completion_date: Optional[str] = None
    creation_date: Optional[str] = None
    due_date: Optional[str] = None
    cost: Optional[Decimal] = None


def parse_cost(value: str) -> Optional[Decimal]:
    """Parse a cost amount, returning None for anything that is not a non-negative number."""
    try:
        amount = Decimal(str(value).strip().lstrip("$"))
    except (InvalidOperation, ValueError):
        return None
    if not amount.is_finite() or amount < 0:
        return None
    return amount.quantize(Decimal("0.01"))


def format_cost(amount: Decimal) -> str:
    """Render an amount for a cost token: whole numbers bare, otherwise two decimals."""
    amount = Decimal(amount).quantize(Decimal("0.01"))
    if amount == amount.to_integral_value():
        return str(int(amount))
    return f"{amount:.2f}"


def token_text(kind: str, value) -> str:
    """Render one token, e.g. ``token_text("due", "2024-08-10") -> "!2024-08-10"``."""
    if kind == "assignee":
        return f"(@{value})"
    if kind == "cost":
        return f"(${format_cost(value)})"
    return f"{_TOKEN_PREFIX[kind]}{value}"


def find_token(content: str, kind: str) -> Optional["re.Match[str]"]:
    """First occurrence of a token kind in ``content``, or None."""
    return TOKEN_PATTERNS[kind].search(content)


def strip_token(content: str, kind: str) -> str:
    """Remove every token of ``kind`` along with its separating whitespace."""
    return _STRIP_PATTERNS[kind].sub("", content)


def replace_token(content: str, kind: str, value) -> Tuple[str, bool]:
    """
    Replace the first token of ``kind`` in place.

    Returns:
        (new_content, replaced) where replaced is False if no token was found
    """
    match = find_token(content, kind)
    if not match:
        return content, False
    new = content[: match.start()] + token_text(kind, value) + content[match.end():]
    return new, True


def extract_tokens(raw: str) -> TaskTokens:
    """
    Split raw task text (everything after the checkbox) into clean text and tokens.

    Each kind's value is taken from its first occurrence; every occurrence is
    removed from the clean text.
    """
    values: Dict[str, Optional[str]] = {}
    text = raw
    for kind in _TOKEN_BODIES:
        match = TOKEN_PATTERNS[kind].search(raw)
        values[kind] = match.group(1) if match else None
        text = strip_token(text, kind)

    return TaskTokens(
        clean_text=text.strip(),
        assignee_alias=values["assignee"],
        completion_date=values["completion"],
        creation_date=values["creation"],
        due_date=values["due"],
        cost=parse_cost(values["cost"]) if values["cost"] is not None else None,
    )


def render_tokens(clean_text: str, tokens: TaskTokens) -> str:
    """Inverse of extract_tokens, using the canonical token order."""
    parts = []
    if tokens.creation_date:
        parts.append(token_text("creation", tokens.creation_date))
    if tokens.due_date:
        parts.append(token_text("due", tokens.due_date))
    if clean_text:
        parts.append(clean_text)
    if tokens.assignee_alias:
        parts.append(token_text("assignee", tokens.assignee_alias))
    if tokens.cost is not None:
        parts.append(token_text("cost", tokens.cost))
    if tokens.completion_date:
        parts.append(token_text("completion", tokens.completion_date))
    return " ".join(parts)


def extract_update_alias(text: str) -> Tuple[str, Optional[str]]:
    """Split an update's text into (text, assignee alias)."""
    match = find_token(text, "assignee")
    if not match:
        return text.strip(), None
    return strip_token(text, "assignee").strip(), match.group(1)
