"""Handler functions shared by MCP tools and REST API."""

import logging
from datetime import date
from typing import Any, Dict, List, Optional

from mdtasker.models.task import Heading, Overview, Project, Task
from mdtasker.models.user import User
from mdtasker.mutations import UnknownOperationError
from mdtasker.mutations.hierarchy import section_bounds
from mdtasker.reports import aggregate_projects, all_tasks, build_timeline, daily_report, filter_overview
from mdtasker.store.project_file import parse_project_data
from mdtasker.utils.dates import parse_date, today_iso

log = logging.getLogger(__name__)

# Operation parameters that carry a date and accept natural-language input
_DATE_PARAMS = ("new_date", "date", "today")


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------

def _cost(value) -> Optional[str]:
    return None if value is None else f"{value:.2f}"


def _user_to_dict(user: User) -> dict:
    return {
        "alias": user.alias,
        "name": user.name,
        "email": user.email,
        "emails": user.emails,
        "avatar_url": user.avatar_url,
    }


def _task_to_dict(task: Task) -> dict:
    """Serialize a Task to a JSON-serializable dict."""
    return {
        "line_index": task.line_index,
        "block_end_line": task.block_end_line,
        "text": task.text,
        "completed": task.completed,
        "assignee_alias": task.assignee_alias,
        "creation_date": task.creation_date,
        "completion_date": task.completion_date,
        "due_date": task.due_date,
        "cost": _cost(task.cost),
        "updates": [
            {
                "line_index": u.line_index,
                "date": u.date,
                "text": u.text,
                "assignee_alias": u.assignee_alias,
            }
            for u in task.updates
        ],
        "project_title": task.project_title,
        "section": task.section,
        "heading_path": [{"text": h.text, "level": h.level} for h in task.heading_path],
    }


def _heading_to_dict(heading: Heading) -> dict:
    return {"text": heading.text, "slug": heading.slug, "level": heading.level, "line": heading.line}


def _overview_to_dict(overview: Overview) -> dict:
    d = {
        "title": overview.title,
        "total_cost": _cost(overview.total_cost),
        "grouped_tasks": {
            alias: {"user": _user_to_dict(group.user), "tasks": [_task_to_dict(t) for t in group.tasks]}
            for alias, group in overview.grouped_tasks.items()
        },
        "unassigned_tasks": [_task_to_dict(t) for t in overview.unassigned_tasks],
    }
    if isinstance(overview, Project):
        d["start_line"] = overview.start_line
        d["end_line"] = overview.end_line
        d["headings"] = [_heading_to_dict(h) for h in overview.headings]
    return d


def _pick_projects(session, project_index: Optional[int], archive: bool = False) -> Optional[List[Project]]:
    projects = session.projects(archive)
    if project_index is None:
        return projects
    if not 0 <= project_index < len(projects):
        return None
    return [projects[project_index]]


# ---------------------------------------------------------------------------
# Model reads
# ---------------------------------------------------------------------------

def handle_status(session) -> dict:
    return session.status()


def handle_project_list(session, *, archive: bool = False, hide_completed: bool = False) -> list[dict]:
    return [
        _overview_to_dict(filter_overview(p, hide_completed=hide_completed))
        for p in session.projects(archive)
    ]


def handle_project_get(session, *, project_index: int, archive: bool = False,
                       hide_completed: bool = False) -> dict:
    picked = _pick_projects(session, project_index, archive)
    if not picked:
        return {"error": f"Project {project_index} not found"}
    return _overview_to_dict(filter_overview(picked[0], hide_completed=hide_completed))


def handle_overview(session, *, hide_completed: bool = False) -> dict:
    """Cross-project overview, every user bucketed."""
    overview = aggregate_projects(session.projects(), session.users)
    return _overview_to_dict(filter_overview(overview, hide_completed=hide_completed))


def handle_heading_list(session, *, archive: bool = False) -> list[dict]:
    return [_heading_to_dict(h) for h in session.headings(archive)]


def handle_document_get(session, *, archive: bool = False) -> dict:
    return {"markdown": session.document(archive)}


def handle_document_put(session, *, markdown: str, archive: bool = False) -> dict:
    session.set_document(markdown, archive=archive)
    return {"markdown": session.document(archive)}


def handle_timeline(session, *, project_index: Optional[int] = None, today: Optional[str] = None) -> dict:
    picked = _pick_projects(session, project_index)
    if picked is None:
        return {"error": f"Project {project_index} not found"}
    day = date.fromisoformat(parse_date(today) or today_iso()) if today else None
    buckets = build_timeline(all_tasks(picked), today=day)
    return {name: [_task_to_dict(t) for t in tasks] for name, tasks in buckets.items()}


def handle_daily_report(session, *, day: Optional[str] = None, project_index: Optional[int] = None) -> dict:
    picked = _pick_projects(session, project_index)
    if picked is None:
        return {"error": f"Project {project_index} not found"}
    report_day = (parse_date(day) if day else None) or today_iso()
    reports = daily_report(picked, session.users, report_day)
    return {
        "date": report_day,
        "projects": [
            {
                "title": r.title,
                "assignees": [
                    {"alias": a.alias, "name": a.name, "tasks": [_task_to_dict(t) for t in a.tasks]}
                    for a in r.assignees
                ],
            }
            for r in reports
        ],
    }


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def handle_operation(session, *, operation: str, params: Optional[Dict[str, Any]] = None,
                     archive: bool = False) -> dict:
    """
    Apply a named mutation. Dates may be given in natural language.

    Raises:
        TypeError: if params do not fit the operation
    """
    params = dict(params or {})
    for key in _DATE_PARAMS:
        value = params.get(key)
        if isinstance(value, str) and value:
            parsed = parse_date(value)
            if not parsed:
                return {"error": f"Unrecognised date for {key}: {value!r}"}
            params[key] = parsed
    try:
        markdown = session.apply(operation, archive=archive, **params)
    except UnknownOperationError:
        return {"error": f"Operation '{operation}' not found"}
    return {"markdown": markdown}


def _resolve_span(text: str, start: Optional[int], end: Optional[int],
                  heading_line: Optional[int]) -> Optional[tuple]:
    if heading_line is not None:
        return section_bounds(text, heading_line)
    if start is None or end is None:
        return None
    return start, end


def handle_archive_section(session, *, start: Optional[int] = None, end: Optional[int] = None,
                           heading_line: Optional[int] = None) -> dict:
    span = _resolve_span(session.markdown, start, end, heading_line)
    if span is None:
        return {"error": "No section at the given lines"}
    changed = session.archive_section(*span)
    return {"changed": changed, "markdown": session.markdown, "archive_markdown": session.archive_markdown}


def handle_restore_section(session, *, start: Optional[int] = None, end: Optional[int] = None,
                           heading_line: Optional[int] = None) -> dict:
    span = _resolve_span(session.archive_markdown, start, end, heading_line)
    if span is None:
        return {"error": "No archived section at the given lines"}
    changed = session.restore_section(*span)
    return {"changed": changed, "markdown": session.markdown, "archive_markdown": session.archive_markdown}


def handle_archive_tasks(session, *, task_lines: List[int]) -> dict:
    changed = session.archive_tasks(task_lines)
    return {"changed": changed, "markdown": session.markdown, "archive_markdown": session.archive_markdown}


def handle_clear_archive(session) -> dict:
    return {"changed": session.clear_archive(), "archive_markdown": session.archive_markdown}


def handle_undo(session) -> dict:
    return {"changed": session.undo(), "markdown": session.markdown, "archive_markdown": session.archive_markdown}


def handle_redo(session) -> dict:
    return {"changed": session.redo(), "markdown": session.markdown, "archive_markdown": session.archive_markdown}


# ---------------------------------------------------------------------------
# Users and settings
# ---------------------------------------------------------------------------

def handle_user_list(session) -> list[dict]:
    return [_user_to_dict(u) for u in session.users]


def handle_user_add(session, *, alias: str, name: str, email: str = "", avatar_url: str = "") -> dict:
    """Raises UserError for an empty or duplicate alias."""
    return _user_to_dict(session.add_user(alias, name, email=email, avatar_url=avatar_url))


def handle_user_update(session, *, old_alias: str, alias: Optional[str] = None, name: Optional[str] = None,
                       email: Optional[str] = None, avatar_url: Optional[str] = None) -> dict:
    user = session.update_user(old_alias, alias=alias, name=name, email=email, avatar_url=avatar_url)
    if user is None:
        return {"error": f"User '@{old_alias}' not found"}
    return _user_to_dict(user)


def handle_user_delete(session, *, alias: str) -> dict:
    if not session.delete_user(alias):
        return {"error": f"User '@{alias}' not found"}
    return {"deleted": alias}


def handle_settings_get(session) -> dict:
    return session.settings.model_dump(by_alias=True)


def handle_settings_update(session, *, changes: Dict[str, Any]) -> dict:
    return session.update_settings(changes).model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------

def handle_import(session, *, data: Any) -> dict:
    """Raises ProjectFileError if the payload is not a valid project file."""
    session.import_state(parse_project_data(data))
    return {"imported": True, "users": len(session.users)}


def handle_export(session) -> dict:
    return session.export().model_dump(by_alias=True)
