from .aggregate import ALL_PROJECTS_TITLE, aggregate_projects, all_tasks, filter_overview
from .timeline import BUCKETS, build_timeline
from .daily import AssigneeReport, ProjectReport, daily_report

__all__ = [
    "ALL_PROJECTS_TITLE",
    "aggregate_projects",
    "all_tasks",
    "filter_overview",
    "BUCKETS",
    "build_timeline",
    "AssigneeReport",
    "ProjectReport",
    "daily_report",
]
