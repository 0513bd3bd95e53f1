"""
mdtasker: markdown task documents as a queryable, editable model.

    parse_document(text, users)          → List[Project]
    apply_operation(text, name, **params) → new text
    ProjectSession                        → load/save, history, users, archive
"""

from .models import Heading, HeadingRef, Overview, Project, Task, TaskGroup, TaskUpdate, User
from .parsers import extract_tokens, parse_blocks, parse_document, parse_headings, render_blocks, render_tokens
from .mutations import OPERATIONS, UnknownOperationError, apply_operation
from .reports import aggregate_projects
from .store import ProjectFile, ProjectFileError, ProjectSession, UserError

__version__ = "0.1.0"

__all__ = [
    "Heading",
    "HeadingRef",
    "Overview",
    "Project",
    "Task",
    "TaskGroup",
    "TaskUpdate",
    "User",
    "extract_tokens",
    "parse_blocks",
    "parse_document",
    "parse_headings",
    "render_blocks",
    "render_tokens",
    "OPERATIONS",
    "UnknownOperationError",
    "apply_operation",
    "aggregate_projects",
    "ProjectFile",
    "ProjectFileError",
    "ProjectSession",
    "UserError",
]
