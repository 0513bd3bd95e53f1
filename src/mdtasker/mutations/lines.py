"""
Line-level mutation operations.

Every operation takes the full document text and returns the full new text.
They never raise for a bad target: an out-of-range line, or a line that is not
the kind of line the operation expects, returns the input unchanged (logged at
DEBUG).

Token rewrites follow one canonical layout for the tokens they add:

    - [ ] +creation !due text (@assignee) ($cost) ~completion

Tokens an operation does not touch stay where they are.
"""

import logging
import re
from decimal import Decimal
from typing import Callable, Iterable, Optional, Tuple, Union

from mdtasker.parsers.document_parser import parse_document
from mdtasker.parsers.lines import TASK_RE, UPDATE_RE, split_lines
from mdtasker.parsers.tokens import (
    DATE_KINDS,
    find_token,
    parse_cost,
    replace_token,
    strip_token,
    token_text,
)
from mdtasker.utils.dates import is_iso_date, today_iso

log = logging.getLogger(__name__)

ALIAS_RE = re.compile(r"^[A-Za-z0-9_]+$")

TaskRewrite = Callable[[bool, str], Optional[Tuple[bool, str]]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _in_range(lines, line: int) -> bool:
    if 0 <= line < len(lines):
        return True
    log.debug("Line %d out of range (document has %d lines)", line, len(lines))
    return False


def _append(content: str, token: str) -> str:
    content = content.rstrip()
    return f"{content} {token}" if content else token


def _insert_before(content: str, pos: int, token: str) -> str:
    before, after = content[:pos], content[pos:]
    if before and not before[-1].isspace():
        before += " "
    return f"{before}{token} {after}"


def _prepend(content: str, token: str) -> str:
    content = content.lstrip()
    return f"{token} {content}" if content else token


def _rewrite_task(text: str, line: int, rewrite: TaskRewrite) -> str:
    """
    Apply ``rewrite(completed, content)`` to the task on ``line``.

    ``content`` is everything after the checkbox. The rewrite returns the new
    (completed, content) pair, or None to leave the document alone.
    """
    lines = split_lines(text)
    if not _in_range(lines, line):
        return text
    m = TASK_RE.match(lines[line])
    if not m:
        log.debug("Line %d is not a task: %r", line, lines[line])
        return text

    result = rewrite(m.group(1) == "x", m.group(2))
    if result is None:
        return text
    completed, content = result
    lines[line] = f"- [{'x' if completed else ' '}] {content}"
    return "\n".join(lines)


def _content_lines(content: str) -> list:
    """Split replacement content into lines; one trailing newline is ignored."""
    if content.endswith("\n"):
        content = content[:-1]
    return split_lines(content) if content else []


def _update_run_end(lines, task_line: int) -> int:
    """Last update line under the task on ``task_line`` (the task line itself if none)."""
    last = task_line
    pos = task_line + 1
    while pos < len(lines):
        if UPDATE_RE.match(lines[pos]):
            last = pos
        elif lines[pos].strip():
            break
        pos += 1
    return last


def _update_line(date: str, update_text: str, alias: Optional[str]) -> str:
    body = " ".join(update_text.split())
    suffix = f" {token_text('assignee', alias)}" if alias else ""
    return f"  - {date}: {body}{suffix}"


# ---------------------------------------------------------------------------
# Task token operations
# ---------------------------------------------------------------------------

def toggle_completion(text: str, line: int, completed: Optional[bool] = None,
                      today: Optional[str] = None) -> str:
    """
    Set a task's checkbox, or flip it when ``completed`` is None.

    Any existing completion date is removed; completing appends today's.
    """
    def rewrite(done: bool, content: str):
        target = (not done) if completed is None else bool(completed)
        content = strip_token(content, "completion")
        if target:
            content = _append(content, token_text("completion", today or today_iso()))
        return target, content

    return _rewrite_task(text, line, rewrite)


def set_assignee(text: str, line: int, alias: Optional[str] = None) -> str:
    """
    Assign a task to ``alias``, or unassign it when alias is None/empty.

    Every existing assignee token is removed. The new one goes in front of the
    first cost or completion token (appended if there are none), so cost and
    completion keep their relative order.
    """
    if alias and not ALIAS_RE.match(alias):
        log.debug("Ignoring invalid alias %r", alias)
        return text

    def rewrite(done: bool, content: str):
        content = strip_token(content, "assignee")
        if not alias:
            return done, content
        token = token_text("assignee", alias)
        anchors = [m.start() for m in (find_token(content, "cost"), find_token(content, "completion")) if m]
        if anchors:
            return done, _insert_before(content, min(anchors), token)
        return done, _append(content, token)

    return _rewrite_task(text, line, rewrite)


def set_date(text: str, line: int, kind: str, new_date: Optional[str] = None) -> str:
    """
    Set or remove (``new_date=None``) a creation, due or completion date.

    An existing token is replaced in place. A missing creation or due token is
    inserted right after the checkbox (creation first, due after it); a
    missing completion token is appended.
    """
    if kind not in DATE_KINDS:
        log.debug("Unknown date kind %r", kind)
        return text
    if new_date is not None and not is_iso_date(new_date):
        log.debug("Ignoring invalid %s date %r", kind, new_date)
        return text

    def rewrite(done: bool, content: str):
        if new_date is None:
            return done, strip_token(content, kind)
        content, replaced = replace_token(content, kind, new_date)
        if replaced:
            return done, content
        token = token_text(kind, new_date)
        if kind == "completion":
            return done, _append(content, token)
        if kind == "due":
            creation = find_token(content, "creation")
            if creation and not content[:creation.start()].strip():
                return done, f"{content[:creation.end()]} {token}{content[creation.end():]}"
        return done, _prepend(content, token)

    return _rewrite_task(text, line, rewrite)


def set_cost(text: str, line: int, amount: Union[Decimal, str, float, int, None] = None) -> str:
    """
    Set or remove (``amount=None``) a task's cost.

    An existing cost token is replaced in place; otherwise the token goes in
    front of the completion token, or at the end of the line.
    """
    cost = None
    if amount is not None:
        cost = parse_cost(str(amount))
        if cost is None:
            log.debug("Ignoring invalid cost %r", amount)
            return text

    def rewrite(done: bool, content: str):
        if cost is None:
            return done, strip_token(content, "cost")
        content, replaced = replace_token(content, "cost", cost)
        if replaced:
            return done, content
        token = token_text("cost", cost)
        completion = find_token(content, "completion")
        if completion:
            return done, _insert_before(content, completion.start(), token)
        return done, _append(content, token)

    return _rewrite_task(text, line, rewrite)


# ---------------------------------------------------------------------------
# Block and section text
# ---------------------------------------------------------------------------

def edit_block(text: str, start: int, original_line_count: int, new_content: str) -> str:
    """
    Replace ``original_line_count`` lines starting at ``start`` with new content.

    Used for free-form edits of one task block (marker line plus updates).
    Everything after the block shifts by the difference in line count; nothing
    before it moves. Empty content deletes the block.
    """
    lines = split_lines(text)
    if not _in_range(lines, start) or original_line_count < 1 or start + original_line_count > len(lines):
        log.debug("Invalid block %d+%d", start, original_line_count)
        return text
    lines[start:start + original_line_count] = _content_lines(new_content)
    return "\n".join(lines)


def update_section(text: str, start: int, end: int, content: str) -> str:
    """Replace lines ``start..end`` (inclusive) with ``content``."""
    lines = split_lines(text)
    if not _in_range(lines, start) or not start <= end < len(lines):
        log.debug("Invalid section %d..%d", start, end)
        return text
    lines[start:end + 1] = _content_lines(content)
    return "\n".join(lines)


def replace_project(text: str, project_index: int, content: str) -> str:
    """Replace the whole text of one project (by position in parse order)."""
    projects = parse_document(text)
    if not 0 <= project_index < len(projects):
        log.debug("Project %d out of range", project_index)
        return text
    project = projects[project_index]
    end = project.end_line
    lines = split_lines(text)
    # Keep the document's final newline out of the replaced range
    if end == len(lines) - 1 and lines[end] == "" and end > project.start_line:
        end -= 1
    return update_section(text, project.start_line, end, content)


# ---------------------------------------------------------------------------
# Task updates
# ---------------------------------------------------------------------------

def add_update(text: str, task_line: int, update_text: str, alias: Optional[str] = None,
               date: Optional[str] = None) -> str:
    """
    Add a dated update line under a task.

    The new line goes right after the task's last update, skipping blank lines
    inside the run and stopping at the first other line.
    """
    lines = split_lines(text)
    if not _in_range(lines, task_line) or not TASK_RE.match(lines[task_line]):
        log.debug("No task on line %d for update", task_line)
        return text
    if not update_text or not update_text.strip():
        return text
    if alias and not ALIAS_RE.match(alias):
        log.debug("Ignoring invalid alias %r", alias)
        alias = None
    date = date if is_iso_date(date) else today_iso()

    insert_at = _update_run_end(lines, task_line) + 1
    lines.insert(insert_at, _update_line(date, update_text, alias))
    return "\n".join(lines)


def add_bulk_updates(text: str, task_lines: Iterable[int], update_text: str,
                     alias: Optional[str] = None, date: Optional[str] = None) -> str:
    """Add the same update under several tasks, bottom-up so line numbers stay valid."""
    for line in sorted(set(task_lines), reverse=True):
        text = add_update(text, line, update_text, alias=alias, date=date)
    return text


def update_task_update(text: str, line: int, update_text: str, date: Optional[str] = None,
                       alias: Optional[str] = None) -> str:
    """Rewrite one update line. The existing date is kept unless a new one is given."""
    lines = split_lines(text)
    if not _in_range(lines, line):
        return text
    m = UPDATE_RE.match(lines[line])
    if not m:
        log.debug("Line %d is not an update", line)
        return text
    if alias and not ALIAS_RE.match(alias):
        alias = None
    lines[line] = _update_line(date if is_iso_date(date) else m.group(1), update_text, alias)
    return "\n".join(lines)


def delete_task_update(text: str, line: int) -> str:
    lines = split_lines(text)
    if not _in_range(lines, line) or not UPDATE_RE.match(lines[line]):
        return text
    del lines[line]
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# User references
# ---------------------------------------------------------------------------

def rename_user_references(text: str, old_alias: str, new_alias: str) -> str:
    """Rewrite every ``(@old_alias)`` to ``(@new_alias)``."""
    if not old_alias or not new_alias or old_alias == new_alias:
        return text
    return re.sub(rf"\(@{re.escape(old_alias)}\)", f"(@{new_alias})", text)


def delete_user_references(text: str, alias: str) -> str:
    """Remove every `` (@alias)`` together with its leading whitespace."""
    if not alias:
        return text
    return re.sub(rf"[ \t]+\(@{re.escape(alias)}\)", "", text)
