"""
Aggregator: cross-project overview and filters.

All functions are pure over parsed projects and the user list.
"""

from dataclasses import replace
from decimal import Decimal
from typing import Dict, List, Sequence, TypeVar

from mdtasker.models.task import Overview, Project, Task, TaskGroup
from mdtasker.models.user import User

ALL_PROJECTS_TITLE = "All Projects"

O = TypeVar("O", bound=Overview)


def aggregate_projects(projects: Sequence[Project], users: Sequence[User],
                       title: str = ALL_PROJECTS_TITLE) -> Overview:
    """
    Merge every project's buckets by alias into one overview.

    Every known user gets a bucket even with no tasks anywhere. Unassigned
    tasks are concatenated in project order and costs summed.
    """
    grouped: Dict[str, TaskGroup] = {user.alias: TaskGroup(user=user) for user in users}
    unassigned: List[Task] = []
    total = Decimal("0")

    for project in projects:
        for alias, group in project.grouped_tasks.items():
            bucket = grouped.setdefault(alias, TaskGroup(user=group.user))
            bucket.tasks.extend(group.tasks)
        unassigned.extend(project.unassigned_tasks)
        total += project.total_cost

    return Overview(title=title, grouped_tasks=grouped, unassigned_tasks=unassigned, total_cost=total)


def all_tasks(projects: Sequence[Project]) -> List[Task]:
    """Every task of every project, in document order."""
    tasks: List[Task] = []
    for project in projects:
        tasks.extend(project.all_tasks())
    return tasks


def filter_overview(overview: O, hide_completed: bool = False) -> O:
    """
    Copy of an overview (or project) without the filtered-out tasks.

    Buckets are kept even when they end up empty; the cost total is
    recomputed from the remaining tasks.
    """
    if not hide_completed:
        return overview

    def keep(tasks: List[Task]) -> List[Task]:
        return [t for t in tasks if not t.completed]

    grouped = {alias: TaskGroup(user=g.user, tasks=keep(g.tasks)) for alias, g in overview.grouped_tasks.items()}
    unassigned = keep(overview.unassigned_tasks)
    total = sum((t.cost for group in grouped.values() for t in group.tasks if t.cost is not None), Decimal("0"))
    total += sum((t.cost for t in unassigned if t.cost is not None), Decimal("0"))
    return replace(overview, grouped_tasks=grouped, unassigned_tasks=unassigned, total_cost=total)
