"""Daily update report: which tasks got updates on a given day, by assignee."""

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from mdtasker.models.task import Project, Task
from mdtasker.models.user import User


@dataclass
class AssigneeReport:
    alias: Optional[str]
    name: str
    tasks: List[Task] = field(default_factory=list)


@dataclass
class ProjectReport:
    title: str
    assignees: List[AssigneeReport] = field(default_factory=list)


def daily_report(projects: Sequence[Project], users: Sequence[User], day: str) -> List[ProjectReport]:
    """
    Tasks with at least one update dated ``day``, per project.

    Each task is copied with only that day's updates. Within a project, tasks
    are grouped by assignee in user-list order, then an "Unassigned" group for
    tasks with no alias or an unknown one. Projects without matching updates
    are left out.
    """
    known = {user.alias: user for user in users}
    reports: List[ProjectReport] = []

    for project in projects:
        by_alias: Dict[Optional[str], List[Task]] = {}
        for task in project.all_tasks():
            updates = [u for u in task.updates if u.date == day]
            if not updates:
                continue
            key = task.assignee_alias if task.assignee_alias in known else None
            by_alias.setdefault(key, []).append(replace(task, updates=updates))
        if not by_alias:
            continue

        report = ProjectReport(title=project.title)
        for user in users:
            if user.alias in by_alias:
                report.assignees.append(AssigneeReport(user.alias, user.name, by_alias[user.alias]))
        if None in by_alias:
            report.assignees.append(AssigneeReport(None, "Unassigned", by_alias[None]))
        reports.append(report)

    return reports
