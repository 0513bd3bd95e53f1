from .project_file import (
    ProjectFile,
    ProjectFileError,
    Settings,
    UserRecord,
    dump_project_file,
    load_project_file,
    parse_project_data,
    parse_project_file,
    write_project_file,
)
from .session import ProjectSession, UserError

__all__ = [
    "ProjectFile",
    "ProjectFileError",
    "Settings",
    "UserRecord",
    "dump_project_file",
    "load_project_file",
    "parse_project_data",
    "parse_project_file",
    "write_project_file",
    "ProjectSession",
    "UserError",
]
