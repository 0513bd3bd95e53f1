"""
Parser for task documents.

Main API:
    parse_document(text, users)  → List[Project]
    parse_headings(text)         → List[Heading]

The parser is pure and total: any line that does not match the grammar is
inert content, never an error. It runs as a single pass over the line tokens
produced by parsers.lines:

1. Level-1 headings split the document into projects. Without any, the whole
   document is one implicit project titled "Project Overview". Content before
   the first level-1 heading belongs to the first project.
2. Headings up to level 3 are recorded with a document-unique slug.
3. A task line starts a Task; the update lines that follow it (blank lines
   allowed in between) are consumed as TaskUpdates until any other non-blank
   line is met.
"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from mdtasker.models.task import Heading, HeadingRef, Project, Task, TaskGroup, TaskUpdate
from mdtasker.models.user import User
from mdtasker.parsers.lines import (
    BlankLine,
    HeadingLine,
    LineToken,
    TaskLine,
    UpdateLine,
    split_lines,
    tokenize,
)
from mdtasker.parsers.tokens import extract_tokens, extract_update_alias
from mdtasker.utils.slugs import SlugGenerator

DEFAULT_PROJECT_TITLE = "Project Overview"
MAX_HEADING_LEVEL = 3


# ---------------------------------------------------------------------------
# Project boundaries
# ---------------------------------------------------------------------------

def _project_bounds(tokens: Sequence[LineToken]) -> List[Tuple[str, int, int]]:
    """Return (title, start_line, end_line) for every project."""
    last = len(tokens) - 1
    starts = [(t.text, t.index) for t in tokens if isinstance(t, HeadingLine) and t.level == 1]
    if not starts:
        return [(DEFAULT_PROJECT_TITLE, 0, last)]

    bounds = []
    for idx, (title, start) in enumerate(starts):
        if idx == 0:
            start = 0
        end = starts[idx + 1][1] - 1 if idx + 1 < len(starts) else last
        bounds.append((title, start, end))
    return bounds


# ---------------------------------------------------------------------------
# Task scanning
# ---------------------------------------------------------------------------

def _consume_updates(tokens: Sequence[LineToken], pos: int, end: int) -> Tuple[List[TaskUpdate], int]:
    """
    Collect the update run following a task line.

    Args:
        tokens: Line tokens for the whole document
        pos: Index of the first line after the task line
        end: Last line (inclusive) the run may extend to

    Returns:
        (updates, next_pos) where next_pos is the first unconsumed line
    """
    updates: List[TaskUpdate] = []
    while pos <= end:
        token = tokens[pos]
        if isinstance(token, UpdateLine):
            text, alias = extract_update_alias(token.text)
            updates.append(TaskUpdate(
                line_index=token.index,
                date=token.date,
                text=text,
                assignee_alias=alias,
            ))
        elif not isinstance(token, BlankLine):
            break
        pos += 1
    return updates, pos


def _build_task(token: TaskLine, updates: List[TaskUpdate], project_title: str,
                heading_path: List[HeadingRef]) -> Task:
    tokens = extract_tokens(token.content)
    return Task(
        line_index=token.index,
        text=tokens.clean_text,
        completed=token.completed,
        assignee_alias=tokens.assignee_alias,
        creation_date=tokens.creation_date,
        completion_date=tokens.completion_date,
        due_date=tokens.due_date,
        cost=tokens.cost,
        updates=updates,
        block_end_line=updates[-1].line_index if updates else token.index,
        project_title=project_title,
        section=heading_path[-1].text if heading_path else None,
        heading_path=list(heading_path),
    )


def _scan_project(tokens: Sequence[LineToken], title: str, start: int, end: int,
                  slugs: SlugGenerator) -> Tuple[List[Heading], List[Task]]:
    headings: List[Heading] = []
    tasks: List[Task] = []
    heading_stack: List[HeadingRef] = []

    pos = start
    while pos <= end:
        token = tokens[pos]

        if isinstance(token, HeadingLine):
            if token.level <= MAX_HEADING_LEVEL:
                headings.append(Heading(
                    text=token.text,
                    slug=slugs.next(token.text),
                    level=token.level,
                    line=token.index,
                ))
                while heading_stack and heading_stack[-1].level >= token.level:
                    heading_stack.pop()
                heading_stack.append(HeadingRef(token.text, token.level))
            pos += 1
            continue

        if isinstance(token, TaskLine):
            updates, next_pos = _consume_updates(tokens, pos + 1, end)
            tasks.append(_build_task(token, updates, title, heading_stack))
            pos = next_pos
            continue

        pos += 1

    return headings, tasks


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

def group_tasks(tasks: Iterable[Task], users: Sequence[User]) -> Tuple[Dict[str, TaskGroup], List[Task], Decimal]:
    """
    Partition tasks by resolved assignee.

    Every known user gets a bucket, even an empty one. Tasks whose alias does
    not resolve to a known user are unassigned; their text is left alone.

    Returns:
        (grouped_tasks, unassigned_tasks, total_cost)
    """
    grouped: Dict[str, TaskGroup] = {user.alias: TaskGroup(user=user) for user in users}
    unassigned: List[Task] = []
    total = Decimal("0")

    for task in tasks:
        if task.cost is not None:
            total += task.cost
        if task.assignee_alias and task.assignee_alias in grouped:
            grouped[task.assignee_alias].tasks.append(task)
        else:
            unassigned.append(task)

    return grouped, unassigned, total


# ---------------------------------------------------------------------------
# Main API
# ---------------------------------------------------------------------------

def parse_document(text: str, users: Optional[Sequence[User]] = None) -> List[Project]:
    """
    Parse document text into projects.

    Args:
        text: Full document text
        users: Known users for assignee resolution

    Returns:
        Projects in document order; never empty
    """
    users = users or []
    tokens = list(tokenize(split_lines(text)))
    slugs = SlugGenerator()

    projects: List[Project] = []
    for title, start, end in _project_bounds(tokens):
        headings, tasks = _scan_project(tokens, title, start, end, slugs)
        grouped, unassigned, total = group_tasks(tasks, users)
        projects.append(Project(
            title=title,
            grouped_tasks=grouped,
            unassigned_tasks=unassigned,
            total_cost=total,
            start_line=start,
            end_line=end,
            headings=headings,
        ))
    return projects


def parse_headings(text: str) -> List[Heading]:
    """All level 1-3 headings of a document, with the same slugs parse_document assigns."""
    headings: List[Heading] = []
    for project in parse_document(text):
        headings.extend(project.headings)
    return headings


def parse_tasks(text: str) -> List[Task]:
    """Every task in the document, in line order."""
    tasks: List[Task] = []
    for project in parse_document(text):
        tasks.extend(project.all_tasks())
    return tasks


def find_task(text: str, line_index: int) -> Optional[Task]:
    """The task whose marker is on ``line_index``, or None."""
    for task in parse_tasks(text):
        if task.line_index == line_index:
            return task
    return None
