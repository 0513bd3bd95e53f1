"""Due-date timeline buckets for incomplete tasks."""

from datetime import date, timedelta
from typing import Dict, Iterable, List, Optional

from mdtasker.models.task import Task
from mdtasker.utils.dates import is_iso_date

BUCKETS = ("overdue", "today", "this_week", "this_month", "later")


def end_of_week(today: date) -> date:
    """The coming Sunday; on a Sunday, the Sunday after."""
    days_since_sunday = (today.weekday() + 1) % 7
    return today + timedelta(days=7 - days_since_sunday)


def end_of_month(today: date) -> date:
    first_of_next = date(today.year + today.month // 12, today.month % 12 + 1, 1)
    return first_of_next - timedelta(days=1)


def build_timeline(tasks: Iterable[Task], today: Optional[date] = None) -> Dict[str, List[Task]]:
    """
    Bucket incomplete tasks with a due date by how soon they are due.

    Completed tasks and tasks without a (valid) due date are left out. Each
    bucket is sorted by due date, then by line.
    """
    today = today or date.today()
    week_end = end_of_week(today)
    month_end = end_of_month(today)
    buckets: Dict[str, List[Task]] = {name: [] for name in BUCKETS}

    for task in tasks:
        if task.completed or not is_iso_date(task.due_date):
            continue
        due = date.fromisoformat(task.due_date)
        if due < today:
            buckets["overdue"].append(task)
        elif due == today:
            buckets["today"].append(task)
        elif due <= week_end:
            buckets["this_week"].append(task)
        elif due <= month_end:
            buckets["this_month"].append(task)
        else:
            buckets["later"].append(task)

    for name in BUCKETS:
        buckets[name].sort(key=lambda t: (t.due_date, t.line_index))
    return buckets
