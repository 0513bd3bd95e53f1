"""
Mutation engine.

Every operation is a pure ``(text, **params) -> text`` function. OPERATIONS
maps the public operation names to them, and apply_operation is the reducer
the session and the API go through.
"""

from typing import Callable, Dict

from .lines import (
    add_bulk_updates,
    add_update,
    delete_task_update,
    delete_user_references,
    edit_block,
    rename_user_references,
    replace_project,
    set_assignee,
    set_cost,
    set_date,
    toggle_completion,
    update_section,
    update_task_update,
)
from .structure import duplicate_section, move_section, reorder_task
from .hierarchy import find_or_create_list, find_or_create_path, heading_path_for, section_bounds
from .archive import archive_section, archive_tasks, restore_section

Operation = Callable[..., str]

OPERATIONS: Dict[str, Operation] = {
    "toggle_completion": toggle_completion,
    "set_assignee": set_assignee,
    "set_date": set_date,
    "set_cost": set_cost,
    "edit_block": edit_block,
    "add_update": add_update,
    "add_bulk_updates": add_bulk_updates,
    "update_task_update": update_task_update,
    "delete_task_update": delete_task_update,
    "update_section": update_section,
    "replace_project": replace_project,
    "reorder_task": reorder_task,
    "move_section": move_section,
    "duplicate_section": duplicate_section,
}


class UnknownOperationError(KeyError):
    """Raised by apply_operation for a name not in OPERATIONS."""


def apply_operation(text: str, name: str, **params) -> str:
    """
    Apply the named operation to ``text``.

    Raises:
        UnknownOperationError: if ``name`` is not a known operation
        TypeError: if ``params`` do not fit the operation's signature
    """
    operation = OPERATIONS.get(name)
    if operation is None:
        raise UnknownOperationError(name)
    return operation(text, **params)


__all__ = [
    "OPERATIONS",
    "UnknownOperationError",
    "apply_operation",
    "toggle_completion",
    "set_assignee",
    "set_date",
    "set_cost",
    "edit_block",
    "add_update",
    "add_bulk_updates",
    "update_task_update",
    "delete_task_update",
    "update_section",
    "replace_project",
    "rename_user_references",
    "delete_user_references",
    "reorder_task",
    "move_section",
    "duplicate_section",
    "find_or_create_path",
    "find_or_create_list",
    "heading_path_for",
    "section_bounds",
    "archive_section",
    "restore_section",
    "archive_tasks",
]
