"""
Tests for parsers/document_parser.py.

Covers:
- project boundaries (explicit, implicit, preamble)
- headings and slug uniqueness
- task tokens, update runs and block_end_line
- heading paths
- assignee grouping against the user list
- parse / render / parse stability
"""

import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from mdtasker.models.task import HeadingRef
from mdtasker.models.user import User
from mdtasker.parsers.document_parser import (
    DEFAULT_PROJECT_TITLE,
    find_task,
    parse_document,
    parse_headings,
    parse_tasks,
)
from mdtasker.parsers.tokens import TaskTokens, render_tokens

DOC = (
    "# Alpha\n"
    "\n"
    "## Tasks\n"
    "\n"
    "- [ ] Write plan (@amy) ($100)\n"
    "  - 2024-03-01: Drafted outline (@bob)\n"
    "\n"
    "  - 2024-03-02: Shared with team\n"
    "- [x] Kickoff ~2024-02-20\n"
    "\n"
    "# Beta\n"
    "\n"
    "## Notes\n"
    "- [ ] Unknown person task (@zed) ($50.50)\n"
    "## Notes\n"
    "Plain text line\n"
)

USERS = [User(alias="amy", name="Amy Adams"), User(alias="bob", name="Bob Brown")]


@pytest.fixture
def projects():
    return parse_document(DOC, USERS)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

class TestProjects:
    def test_titles_and_bounds(self, projects):
        assert [p.title for p in projects] == ["Alpha", "Beta"]
        assert (projects[0].start_line, projects[0].end_line) == (0, 9)
        assert (projects[1].start_line, projects[1].end_line) == (10, 16)

    def test_implicit_project(self):
        projects = parse_document("- [ ] a\n- [ ] b")
        assert len(projects) == 1
        assert projects[0].title == DEFAULT_PROJECT_TITLE
        assert (projects[0].start_line, projects[0].end_line) == (0, 1)
        assert [t.text for t in projects[0].all_tasks()] == ["a", "b"]

    def test_empty_document(self):
        projects = parse_document("")
        assert len(projects) == 1
        assert projects[0].all_tasks() == []

    def test_preamble_belongs_to_first_project(self):
        projects = parse_document("- [ ] early\n# Alpha\n- [ ] late\n")
        assert projects[0].title == "Alpha"
        assert projects[0].start_line == 0
        assert [t.text for t in projects[0].all_tasks()] == ["early", "late"]

    def test_bounds_cover_all_headings_and_tasks(self, projects):
        for project in projects:
            for heading in project.headings:
                assert project.start_line <= heading.line <= project.end_line
            for task in project.all_tasks():
                assert project.start_line <= task.line_index <= task.block_end_line <= project.end_line


# ---------------------------------------------------------------------------
# Headings
# ---------------------------------------------------------------------------

class TestHeadings:
    def test_slugs_unique(self):
        slugs = [h.slug for h in parse_headings(DOC)]
        assert slugs == ["alpha", "tasks", "beta", "notes", "notes-2"]

    def test_deep_headings_ignored(self):
        headings = parse_headings("# A\n#### Deep\n### Shallow\n")
        assert [(h.text, h.level) for h in headings] == [("A", 1), ("Shallow", 3)]

    def test_heading_checkbox_is_not_a_task(self):
        assert parse_tasks("# - [ ] not a task\n") == []


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

class TestTasks:
    def test_tokens(self):
        task = find_task(DOC, 4)
        assert task.text == "Write plan"
        assert task.assignee_alias == "amy"
        assert task.cost == Decimal("100.00")
        assert task.completed is False

    def test_update_run_skips_blank_lines(self):
        task = find_task(DOC, 4)
        assert [(u.line_index, u.date, u.text) for u in task.updates] == [
            (5, "2024-03-01", "Drafted outline"),
            (7, "2024-03-02", "Shared with team"),
        ]
        assert task.updates[0].assignee_alias == "bob"
        assert task.block_end_line == 7
        assert task.line_count == 4

    def test_completed(self):
        task = find_task(DOC, 8)
        assert task.completed is True
        assert task.completion_date == "2024-02-20"
        assert task.block_end_line == 8

    def test_bad_update_is_not_consumed(self):
        task = find_task("- [ ] a\n  - not a date: x\n", 0)
        assert task.updates == []
        assert task.block_end_line == 0

    def test_heading_path(self):
        task = find_task(DOC, 4)
        assert task.heading_path == [HeadingRef("Alpha", 1), HeadingRef("Tasks", 2)]
        assert task.section == "Tasks"
        assert task.project_title == "Alpha"

    def test_find_task_misses(self):
        assert find_task(DOC, 5) is None
        assert find_task(DOC, 99) is None


# ---------------------------------------------------------------------------
# Grouping
# ---------------------------------------------------------------------------

class TestGrouping:
    def test_every_user_has_a_bucket(self, projects):
        alpha = projects[0]
        assert list(alpha.grouped_tasks) == ["amy", "bob"]
        assert [t.text for t in alpha.grouped_tasks["amy"].tasks] == ["Write plan"]
        assert alpha.grouped_tasks["bob"].tasks == []
        assert [t.text for t in alpha.unassigned_tasks] == ["Kickoff"]

    def test_unknown_alias_is_unassigned(self, projects):
        beta = projects[1]
        assert [t.text for t in beta.unassigned_tasks] == ["Unknown person task"]
        assert beta.unassigned_tasks[0].assignee_alias == "zed"

    def test_total_cost(self, projects):
        assert projects[0].total_cost == Decimal("100.00")
        assert projects[1].total_cost == Decimal("50.50")

    def test_without_users_everything_is_unassigned(self):
        projects = parse_document(DOC)
        assert projects[0].grouped_tasks == {}
        assert len(projects[0].unassigned_tasks) == 2


# ---------------------------------------------------------------------------
# Stability
# ---------------------------------------------------------------------------

def _render_task_lines(text: str) -> str:
    lines = text.split("\n")
    for task in parse_tasks(text):
        tokens = TaskTokens(
            clean_text=task.text,
            assignee_alias=task.assignee_alias,
            completion_date=task.completion_date,
            creation_date=task.creation_date,
            due_date=task.due_date,
            cost=task.cost,
        )
        box = "x" if task.completed else " "
        lines[task.line_index] = f"- [{box}] {render_tokens(task.text, tokens)}"
    return "\n".join(lines)


def test_reparse_is_stable():
    source = DOC + "- [ ] ~2024-01-09 Odd order !2024-01-10 (@amy) +2024-01-01\n"

    def summary(text):
        return [
            (t.text, t.completed, t.assignee_alias, t.creation_date, t.due_date,
             t.completion_date, t.cost, [(u.date, u.text) for u in t.updates])
            for t in parse_tasks(text)
        ]

    assert summary(_render_task_lines(source)) == summary(source)
