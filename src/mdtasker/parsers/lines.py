"""
Per-line tokenizer for the task document grammar.

Each raw line is classified into exactly one line type:

    heading  := "#"+ " " text
    task     := "- [" (" "|"x") "] " text
    update   := "  - " YYYY-MM-DD ": " text
    blank    := whitespace only
    plain    := anything else

Classification is total: every line gets a type, unrecognised lines are
``PlainLine``. A heading is checked first so it can never be read as task
content.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Union

HEADING_RE = re.compile(r"^(#+) (.*)$")
TASK_RE = re.compile(r"^- \[( |x)\] (.*)$")
UPDATE_RE = re.compile(r"^  - (\d{4}-\d{2}-\d{2}): (.*)$")


@dataclass(frozen=True)
class HeadingLine:
    index: int
    level: int
    text: str


@dataclass(frozen=True)
class TaskLine:
    index: int
    completed: bool
    content: str


@dataclass(frozen=True)
class UpdateLine:
    index: int
    date: str
    text: str


@dataclass(frozen=True)
class BlankLine:
    index: int


@dataclass(frozen=True)
class PlainLine:
    index: int
    text: str


LineToken = Union[HeadingLine, TaskLine, UpdateLine, BlankLine, PlainLine]


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` only, keeping a trailing empty line, so line numbers match editors."""
    return text.split("\n")


def classify_line(index: int, line: str) -> LineToken:
    """Classify a single raw line."""
    if not line.strip():
        return BlankLine(index)

    m = HEADING_RE.match(line)
    if m:
        return HeadingLine(index, len(m.group(1)), m.group(2).strip())

    m = TASK_RE.match(line)
    if m:
        return TaskLine(index, m.group(1) == "x", m.group(2))

    m = UPDATE_RE.match(line)
    if m:
        return UpdateLine(index, m.group(1), m.group(2))

    return PlainLine(index, line)


def tokenize(lines: List[str], start: int = 0) -> Iterator[LineToken]:
    """Yield a token per line, numbering from ``start``."""
    for offset, line in enumerate(lines):
        yield classify_line(start + offset, line)
