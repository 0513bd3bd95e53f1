"""
MCP tool registration for mdtasker.

Core logic lives in the handle_* functions of mdtasker.api.handlers (return
dicts). The MCP wrappers here serialize them to JSON strings.
"""

import json
import logging
from typing import List, Optional

from mcp.server.fastmcp import FastMCP

from mdtasker.api.handlers import (
    handle_archive_section,
    handle_archive_tasks,
    handle_daily_report,
    handle_document_get,
    handle_heading_list,
    handle_operation,
    handle_overview,
    handle_project_list,
    handle_restore_section,
    handle_status,
    handle_timeline,
    handle_undo,
    handle_user_add,
    handle_user_list,
)
from mdtasker.store.session import UserError

log = logging.getLogger(__name__)


def register_document_tools(mcp: FastMCP, session) -> None:
    """Register all MCP tools onto the FastMCP instance."""

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @mcp.tool()
    def project_list(archive: bool = False, hide_completed: bool = False) -> str:
        """
        List projects (level-1 sections) with their tasks grouped by assignee.

        Args:
            archive: Read the archive document instead of the live one
            hide_completed: Leave completed tasks out

        Returns:
            JSON array of project objects. Each task carries its line_index,
            which is what the mutation tools take as "line".
        """
        return json.dumps(handle_project_list(session, archive=archive, hide_completed=hide_completed))

    @mcp.tool()
    def overview(hide_completed: bool = False) -> str:
        """Cross-project view: every user's tasks across all projects, plus unassigned ones."""
        return json.dumps(handle_overview(session, hide_completed=hide_completed))

    @mcp.tool()
    def heading_list(archive: bool = False) -> str:
        """List level 1-3 headings with slugs and line numbers."""
        return json.dumps(handle_heading_list(session, archive=archive))

    @mcp.tool()
    def document_get(archive: bool = False) -> str:
        """Return the raw markdown of the live (or archive) document."""
        return json.dumps(handle_document_get(session, archive=archive))

    @mcp.tool()
    def timeline(project_index: Optional[int] = None, today: Optional[str] = None) -> str:
        """
        Incomplete tasks with due dates, bucketed into overdue, today,
        this_week, this_month and later.

        Args:
            project_index: Restrict to one project (0-based); omit for all
            today: Reference date (YYYY-MM-DD or natural language); defaults to today
        """
        return json.dumps(handle_timeline(session, project_index=project_index, today=today))

    @mcp.tool()
    def daily_report(day: Optional[str] = None, project_index: Optional[int] = None) -> str:
        """Tasks that received updates on ``day`` (default today), grouped by assignee."""
        return json.dumps(handle_daily_report(session, day=day, project_index=project_index))

    @mcp.tool()
    def session_status() -> str:
        """Project file path, counts and undo/redo depth."""
        return json.dumps(handle_status(session))

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    @mcp.tool()
    def apply_operation(operation: str, params: Optional[dict] = None, archive: bool = False) -> str:
        """
        Apply a named edit to the document.

        Operations and their params:
            toggle_completion   line, completed (bool, omit to flip)
            set_assignee        line, alias (omit to unassign)
            set_date            line, kind (creation|due|completion), new_date (omit to remove)
            set_cost            line, amount (omit to remove)
            edit_block          start, original_line_count, new_content
            add_update          task_line, update_text, alias, date
            add_bulk_updates    task_lines, update_text, alias, date
            update_task_update  line, update_text, date, alias
            delete_task_update  line
            update_section      start, end, content
            replace_project     project_index, content
            reorder_task        line, direction (up|down|top|bottom)
            move_section        start, end, destination
            duplicate_section   start, end, destination

        Line numbers are 0-based and come from project_list / heading_list.
        A stale or out-of-range line leaves the document unchanged.

        Returns:
            JSON object with the new markdown, or an error
        """
        try:
            return json.dumps(handle_operation(session, operation=operation, params=params, archive=archive))
        except TypeError as e:
            return json.dumps({"error": f"Bad parameters for {operation}: {e}"})

    @mcp.tool()
    def archive_section(start: Optional[int] = None, end: Optional[int] = None,
                        heading_line: Optional[int] = None) -> str:
        """
        Move a section to the archive document under the same heading path.

        Give either heading_line (the section runs to the next heading of the
        same or higher level) or an explicit start/end line range.
        """
        return json.dumps(handle_archive_section(session, start=start, end=end, heading_line=heading_line))

    @mcp.tool()
    def restore_section(start: Optional[int] = None, end: Optional[int] = None,
                        heading_line: Optional[int] = None) -> str:
        """Move an archived section back into the live document. Lines refer to the archive."""
        return json.dumps(handle_restore_section(session, start=start, end=end, heading_line=heading_line))

    @mcp.tool()
    def archive_tasks(task_lines: List[int]) -> str:
        """Move individual tasks (with their updates) to the archive."""
        return json.dumps(handle_archive_tasks(session, task_lines=task_lines))

    @mcp.tool()
    def undo() -> str:
        """Undo the last change."""
        return json.dumps(handle_undo(session))

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    @mcp.tool()
    def user_list() -> str:
        """List known users in display order."""
        return json.dumps(handle_user_list(session))

    @mcp.tool()
    def user_add(name: str, alias: str = "", email: str = "") -> str:
        """
        Add a user. The alias is lowercased and limited to a-z, 0-9 and _;
        it defaults to one derived from the name.
        """
        try:
            return json.dumps(handle_user_add(session, alias=alias, name=name, email=email))
        except UserError as e:
            return json.dumps({"error": str(e)})
