"""
Core document models.

Every entity here is a view derived from the document text and tagged with the
line span it came from. Nothing outlives the parse that produced it: a Task is
identified by its line position within one parse result, never by a stored id.
Alias references are plain strings resolved by lookup against the user list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional

from mdtasker.models.user import User


@dataclass(frozen=True)
class HeadingRef:
    """A (text, level) pair naming one step of a heading path."""

    text: str
    level: int


@dataclass
class Heading:
    """A level 1-3 heading with its document-unique slug."""

    text: str
    slug: str
    level: int
    line: int


@dataclass
class TaskUpdate:
    """A dated note nested two spaces under a task."""

    line_index: int
    date: str
    text: str
    assignee_alias: Optional[str] = None


@dataclass
class Task:
    """
    A single checkbox list item and its contiguous update lines.

    ``block_end_line`` is the last line belonging to the task (its own line
    when there are no updates), so mutations know the full extent of the block.
    """

    line_index: int
    text: str
    completed: bool = False
    assignee_alias: Optional[str] = None
    creation_date: Optional[str] = None
    completion_date: Optional[str] = None
    due_date: Optional[str] = None
    cost: Optional[Decimal] = None
    updates: List[TaskUpdate] = field(default_factory=list)
    block_end_line: int = -1
    project_title: str = ""
    section: Optional[str] = None
    heading_path: List[HeadingRef] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.block_end_line < self.line_index:
            self.block_end_line = self.line_index

    @property
    def line_count(self) -> int:
        """Number of lines the task block spans (marker line included)."""
        return self.block_end_line - self.line_index + 1


@dataclass
class TaskGroup:
    """Tasks assigned to one known user."""

    user: User
    tasks: List[Task] = field(default_factory=list)


@dataclass
class Overview:
    """Tasks bucketed by assignee with a cost total."""

    title: str
    grouped_tasks: Dict[str, TaskGroup] = field(default_factory=dict)
    unassigned_tasks: List[Task] = field(default_factory=list)
    total_cost: Decimal = Decimal("0")

    def all_tasks(self) -> List[Task]:
        """Every task in the overview, ordered by line."""
        result = list(self.unassigned_tasks)
        for group in self.grouped_tasks.values():
            result.extend(group.tasks)
        return sorted(result, key=lambda t: t.line_index)


@dataclass
class Project(Overview):
    """
    A top-level section starting at a level-1 heading.

    When the document has no level-1 heading the whole document is one
    implicit project. ``end_line`` is inclusive.
    """

    start_line: int = 0
    end_line: int = 0
    headings: List[Heading] = field(default_factory=list)
