from .user import User, default_avatar_url, sanitize_alias
from .task import Heading, HeadingRef, Overview, Project, Task, TaskGroup, TaskUpdate

__all__ = [
    "Heading",
    "HeadingRef",
    "Overview",
    "Project",
    "Task",
    "TaskGroup",
    "TaskUpdate",
    "User",
    "default_avatar_url",
    "sanitize_alias",
]
