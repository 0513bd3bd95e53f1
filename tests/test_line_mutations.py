"""
Tests for mutations/lines.py.

Covers:
- completion toggle symmetry and the completion date
- assignee, date and cost token placement
- block/section/project replacement and line shifts
- task update add/edit/delete
- user reference rename/delete
- no-ops for stale or out-of-range targets
"""

import sys
from decimal import Decimal
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from mdtasker.mutations.lines import (
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
from mdtasker.parsers.document_parser import find_task, parse_tasks


# ---------------------------------------------------------------------------
# toggle_completion
# ---------------------------------------------------------------------------

class TestToggleCompletion:
    def test_complete_then_uncomplete_is_identity(self):
        doc = "- [ ] Write docs (@amy)\n"
        done = toggle_completion(doc, 0, completed=True, today="2024-05-01")
        assert done == "- [x] Write docs (@amy) ~2024-05-01\n"
        assert toggle_completion(done, 0, completed=False) == doc

    def test_flip_when_unspecified(self):
        doc = "- [x] Done ~2024-01-01"
        assert toggle_completion(doc, 0) == "- [ ] Done"

    def test_recomplete_replaces_date(self):
        doc = "- [x] Done ~2024-01-01"
        assert toggle_completion(doc, 0, completed=True, today="2024-02-02") == "- [x] Done ~2024-02-02"

    def test_stale_targets(self):
        doc = "# Heading\n- [ ] Task\n"
        assert toggle_completion(doc, 0) == doc
        assert toggle_completion(doc, 99) == doc
        assert toggle_completion(doc, -1) == doc


def test_unassign_then_complete_keeps_other_tokens():
    doc = "- [ ] Ship release (@bob) ($2000) +2024-01-01 !2024-02-01"
    unassigned = set_assignee(doc, 0, None)
    assert unassigned == "- [ ] Ship release ($2000) +2024-01-01 !2024-02-01"
    done = toggle_completion(unassigned, 0, completed=True, today="2024-02-10")
    assert done == "- [x] Ship release ($2000) +2024-01-01 !2024-02-01 ~2024-02-10"


# ---------------------------------------------------------------------------
# set_assignee
# ---------------------------------------------------------------------------

class TestSetAssignee:
    def test_append(self):
        assert set_assignee("- [ ] Buy milk", 0, "amy") == "- [ ] Buy milk (@amy)"

    def test_goes_before_cost_and_completion(self):
        assert set_assignee("- [x] Buy ($5) ~2024-01-02", 0, "amy") == "- [x] Buy (@amy) ($5) ~2024-01-02"

    def test_replaces_existing(self):
        assert set_assignee("- [ ] Buy (@bob) ($5)", 0, "amy") == "- [ ] Buy (@amy) ($5)"

    def test_invalid_alias_is_ignored(self):
        doc = "- [ ] Buy (@bob)"
        assert set_assignee(doc, 0, "bad alias!") == doc

    def test_parses_back(self):
        text = set_assignee("- [ ] Buy ($5)", 0, "amy")
        task = find_task(text, 0)
        assert task.assignee_alias == "amy"
        assert task.cost == Decimal("5.00")
        assert task.text == "Buy"


# ---------------------------------------------------------------------------
# set_date
# ---------------------------------------------------------------------------

class TestSetDate:
    def test_due_prepended(self):
        assert set_date("- [ ] Task (@amy)", 0, "due", "2024-05-01") == "- [ ] !2024-05-01 Task (@amy)"

    def test_due_after_creation(self):
        assert set_date("- [ ] +2024-01-01 Task", 0, "due", "2024-05-01") == "- [ ] +2024-01-01 !2024-05-01 Task"

    def test_creation_prepended(self):
        assert set_date("- [ ] !2024-05-01 Task", 0, "creation", "2024-01-01") == "- [ ] +2024-01-01 !2024-05-01 Task"

    def test_replace_in_place(self):
        assert set_date("- [ ] Task !2024-05-01 (@amy)", 0, "due", "2024-06-01") == "- [ ] Task !2024-06-01 (@amy)"

    def test_remove(self):
        assert set_date("- [ ] Task !2024-05-01 (@amy)", 0, "due", None) == "- [ ] Task (@amy)"

    def test_completion_appended(self):
        assert set_date("- [x] Task ($5)", 0, "completion", "2024-05-01") == "- [x] Task ($5) ~2024-05-01"

    @pytest.mark.parametrize("kind,value", [("due", "2024-13-01"), ("due", "soon"), ("start", "2024-01-01")])
    def test_invalid_is_ignored(self, kind, value):
        doc = "- [ ] Task"
        assert set_date(doc, 0, kind, value) == doc


# ---------------------------------------------------------------------------
# set_cost
# ---------------------------------------------------------------------------

class TestSetCost:
    def test_before_completion(self):
        doc = "- [x] Task (@amy) ~2024-01-01"
        assert set_cost(doc, 0, 12.5) == "- [x] Task (@amy) ($12.50) ~2024-01-01"

    def test_replace(self):
        assert set_cost("- [ ] Task ($5) (@amy)", 0, 7) == "- [ ] Task ($7) (@amy)"

    def test_append(self):
        assert set_cost("- [ ] Task", 0, "99.99") == "- [ ] Task ($99.99)"

    def test_remove(self):
        assert set_cost("- [ ] Task ($5)", 0, None) == "- [ ] Task"

    @pytest.mark.parametrize("amount", ["-3", "abc"])
    def test_invalid(self, amount):
        doc = "- [ ] Task ($5)"
        assert set_cost(doc, 0, amount) == doc


# ---------------------------------------------------------------------------
# Blocks, sections, projects
# ---------------------------------------------------------------------------

BLOCKS = "- [ ] A\n  - 2024-01-01: a1\n- [ ] B\n- [ ] C\n"


class TestEditBlock:
    def test_following_lines_shift(self):
        new = "- [ ] A2\n  - 2024-01-01: a1\n  - 2024-01-02: a2\n"
        text = edit_block(BLOCKS, 0, 2, new)
        assert [(t.text, t.line_index) for t in parse_tasks(text)] == [("A2", 0), ("B", 3), ("C", 4)]

    def test_empty_content_deletes(self):
        text = edit_block(BLOCKS, 0, 2, "")
        assert text == "- [ ] B\n- [ ] C\n"

    def test_out_of_range(self):
        assert edit_block(BLOCKS, 3, 5, "x") == BLOCKS
        assert edit_block(BLOCKS, 0, 0, "x") == BLOCKS


PROJECTS = "# A\nx\n# B\ny\n"


class TestSections:
    def test_update_section(self):
        assert update_section(PROJECTS, 1, 1, "z\nw") == "# A\nz\nw\n# B\ny\n"

    def test_update_section_invalid(self):
        assert update_section(PROJECTS, 3, 1, "z") == PROJECTS

    def test_replace_last_project_keeps_final_newline(self):
        assert replace_project(PROJECTS, 1, "# B\nz") == "# A\nx\n# B\nz\n"

    def test_replace_first_project(self):
        assert replace_project(PROJECTS, 0, "# A\nw\n") == "# A\nw\n# B\ny\n"

    def test_replace_missing_project(self):
        assert replace_project(PROJECTS, 5, "nope") == PROJECTS


# ---------------------------------------------------------------------------
# Task updates
# ---------------------------------------------------------------------------

UPDATES = (
    "- [ ] A\n"
    "  - 2024-01-01: first\n"
    "\n"
    "  - 2024-01-02: second\n"
    "- [ ] B"
)


class TestAddUpdate:
    def test_after_last_update(self):
        text = add_update(UPDATES, 0, "third", alias="amy", date="2024-01-03")
        lines = text.split("\n")
        assert lines[4] == "  - 2024-01-03: third (@amy)"
        assert lines[5] == "- [ ] B"
        assert [u.text for u in find_task(text, 0).updates] == ["first", "second", "third"]

    def test_task_without_updates(self):
        text = add_update(UPDATES, 4, "kicked off", date="2024-01-05")
        assert text.endswith("- [ ] B\n  - 2024-01-05: kicked off")

    def test_stops_at_paragraph(self):
        text = add_update("- [ ] A\n\nPara", 0, "x", date="2024-01-01")
        assert text == "- [ ] A\n  - 2024-01-01: x\n\nPara"

    def test_whitespace_collapsed(self):
        text = add_update("- [ ] A", 0, "  many   spaces\nhere ", date="2024-01-01")
        assert text == "- [ ] A\n  - 2024-01-01: many spaces here"

    def test_defaults_to_today(self, monkeypatch):
        monkeypatch.setattr("mdtasker.mutations.lines.today_iso", lambda: "2030-01-01")
        assert add_update("- [ ] A", 0, "x") == "- [ ] A\n  - 2030-01-01: x"

    def test_noops(self):
        assert add_update(UPDATES, 1, "x") == UPDATES
        assert add_update(UPDATES, 0, "   ") == UPDATES


def test_add_bulk_updates():
    text = add_bulk_updates(UPDATES, [0, 4], "sync", date="2024-02-01")
    assert text.split("\n") == [
        "- [ ] A",
        "  - 2024-01-01: first",
        "",
        "  - 2024-01-02: second",
        "  - 2024-02-01: sync",
        "- [ ] B",
        "  - 2024-02-01: sync",
    ]


class TestEditUpdate:
    def test_keeps_date(self):
        text = update_task_update(UPDATES, 1, "edited", alias="bob")
        assert text.split("\n")[1] == "  - 2024-01-01: edited (@bob)"

    def test_new_date(self):
        text = update_task_update(UPDATES, 1, "edited", date="2024-01-09")
        assert text.split("\n")[1] == "  - 2024-01-09: edited"

    def test_delete(self):
        text = delete_task_update(UPDATES, 1)
        assert [u.text for u in find_task(text, 0).updates] == ["second"]

    def test_not_an_update(self):
        assert update_task_update(UPDATES, 0, "x") == UPDATES
        assert delete_task_update(UPDATES, 0) == UPDATES


# ---------------------------------------------------------------------------
# User references
# ---------------------------------------------------------------------------

REFS = "- [ ] a (@bob)\n  - 2024-01-01: x (@bob)\n- [ ] b (@bobby)"


def test_rename_user_references():
    assert rename_user_references(REFS, "bob", "rob") == (
        "- [ ] a (@rob)\n  - 2024-01-01: x (@rob)\n- [ ] b (@bobby)"
    )


def test_delete_user_references():
    assert delete_user_references(REFS, "bob") == "- [ ] a\n  - 2024-01-01: x\n- [ ] b (@bobby)"
