"""
Tests for mutations/hierarchy.py and mutations/archive.py.

Covers:
- heading paths and section bounds
- find_or_create_path scoping
- archive_section / restore_section round trip
- restoring sections with sub-headings
- archive_tasks into per-path lists
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mdtasker.models.task import HeadingRef
from mdtasker.mutations.archive import archive_section, archive_tasks, restore_section
from mdtasker.mutations.hierarchy import (
    find_or_create_list,
    find_or_create_path,
    heading_path_for,
    section_bounds,
)
from mdtasker.parsers.blocks import parse_blocks
from mdtasker.parsers.document_parser import parse_tasks


# ---------------------------------------------------------------------------
# Hierarchy
# ---------------------------------------------------------------------------

OUTLINE = "# P\n## A\ntext\n### A1\nmore\n## B\nb\n"


class TestHeadingPath:
    def test_block_under_subsection(self):
        tree = parse_blocks("# P\n## A\n### A1\ntext\n## B\n")
        assert heading_path_for(tree, 3) == [HeadingRef("P", 1), HeadingRef("A", 2), HeadingRef("A1", 3)]

    def test_heading_ends_its_own_path(self):
        tree = parse_blocks("# P\n## A\n### A1\ntext\n## B\n")
        assert heading_path_for(tree, 4) == [HeadingRef("P", 1), HeadingRef("B", 2)]

    def test_no_headings(self):
        assert heading_path_for(parse_blocks("just text\n"), 0) == []


class TestSectionBounds:
    def test_runs_to_next_sibling(self):
        assert section_bounds(OUTLINE, 1) == (1, 4)

    def test_runs_to_end(self):
        assert section_bounds(OUTLINE, 5) == (5, 7)
        assert section_bounds(OUTLINE, 0) == (0, 7)

    def test_not_a_heading(self):
        assert section_bounds(OUTLINE, 2) is None
        assert section_bounds(OUTLINE, 99) is None


class TestFindOrCreatePath:
    def test_creates_in_empty_document(self):
        tree = parse_blocks("")
        index = find_or_create_path(tree, [HeadingRef("Alpha", 1), HeadingRef("Tasks", 2)])
        assert index == 2
        assert tree.render() == "# Alpha\n\n## Tasks\n"

    def test_existing_path_is_untouched(self):
        text = "# Alpha\n\n## Tasks\n\n- [ ] x\n"
        tree = parse_blocks(text)
        assert find_or_create_path(tree, [HeadingRef("Alpha", 1), HeadingRef("Tasks", 2)]) == 2
        assert tree.render() == text

    def test_search_is_scoped_to_parent(self):
        tree = parse_blocks("# Alpha\n## Notes\n# Beta\n")
        index = find_or_create_path(tree, [HeadingRef("Beta", 1), HeadingRef("Notes", 2)])
        assert index == 4
        assert tree.render() == "# Alpha\n## Notes\n# Beta\n\n## Notes\n"

    def test_level_must_match(self):
        tree = parse_blocks("# Alpha\n### Tasks\n")
        find_or_create_path(tree, [HeadingRef("Alpha", 1), HeadingRef("Tasks", 2)])
        assert tree.render() == "# Alpha\n### Tasks\n\n## Tasks\n"

    def test_list_is_reused(self):
        tree = parse_blocks("# Alpha\n\n- [ ] x\n")
        assert find_or_create_list(tree, [HeadingRef("Alpha", 1)]) is tree.blocks[1]


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------

LIVE = (
    "# Alpha\n"
    "\n"
    "## Tasks\n"
    "\n"
    "- [ ] a (@amy)\n"
    "  - 2024-01-01: note\n"
    "- [x] b ~2024-01-02\n"
    "\n"
    "## Later\n"
    "\n"
    "- [ ] c\n"
)

ARCHIVED = (
    "# Alpha\n"
    "\n"
    "## Tasks\n"
    "\n"
    "- [ ] a (@amy)\n"
    "  - 2024-01-01: note\n"
    "- [x] b ~2024-01-02\n"
    "\n"
    "_Archived on: 2024-03-01_\n"
)


class TestArchiveSection:
    def test_archive(self):
        start, end = section_bounds(LIVE, 2)
        live, archive = archive_section(LIVE, "", start, end, today="2024-03-01")
        assert live == "# Alpha\n\n## Later\n\n- [ ] c\n"
        assert archive == ARCHIVED

    def test_restore(self):
        live, archive = restore_section("# Alpha\n\n## Later\n\n- [ ] c\n", ARCHIVED, 2, 9)
        assert archive == "# Alpha\n"
        assert live == (
            "# Alpha\n\n## Later\n\n- [ ] c\n\n## Tasks\n\n"
            "- [ ] a (@amy)\n  - 2024-01-01: note\n- [x] b ~2024-01-02\n"
        )

    def test_round_trip_keeps_tasks(self):
        live, archive = archive_section(LIVE, "", 2, 7, today="2024-03-01")
        live, archive = restore_section(live, archive, 2, 9)
        before = {(t.text, t.completed, tuple(t.heading_path)) for t in parse_tasks(LIVE)}
        after = {(t.text, t.completed, tuple(t.heading_path)) for t in parse_tasks(live)}
        assert after == before
        restored = [line for line in live.split("\n") if line.startswith(("- [", "  - "))]
        assert "- [ ] a (@amy)" in restored
        assert "  - 2024-01-01: note" in restored

    def test_restore_into_existing_list(self):
        live = "# Alpha\n\n## Tasks\n\n- [ ] existing\n"
        archive = "# Alpha\n\n## Tasks\n\n- [x] old\n\n_Archived on: 2024-03-01_\n"
        live, archive = restore_section(live, archive, 2, 7)
        assert live == "# Alpha\n\n## Tasks\n\n- [ ] existing\n- [x] old\n"
        assert archive == "# Alpha\n"

    def test_nothing_in_range(self):
        assert archive_section(LIVE, "", 50, 60) == (LIVE, "")
        assert restore_section(LIVE, "", 0, 3) == (LIVE, "")


NESTED = (
    "# Alpha\n"
    "\n"
    "## Tasks\n"
    "\n"
    "### Sub A\n"
    "\n"
    "- [ ] a1\n"
    "\n"
    "### Sub B\n"
    "\n"
    "- [ ] b1\n"
    "\n"
    "## Later\n"
    "\n"
    "- [ ] c\n"
)


class TestRestoreSubsections:
    def _archived(self):
        live, archive = archive_section(NESTED, "", *section_bounds(NESTED, 2), today="2024-03-01")
        assert live == "# Alpha\n\n## Later\n\n- [ ] c\n"
        return live, archive

    def test_tasks_return_under_their_own_subheading(self):
        live, archive = self._archived()
        live, archive = restore_section(live, archive, *section_bounds(archive, 2))
        assert archive == "# Alpha\n"
        assert live == (
            "# Alpha\n\n## Later\n\n- [ ] c\n\n## Tasks\n\n"
            "### Sub A\n\n- [ ] a1\n\n### Sub B\n\n- [ ] b1\n"
        )
        paths = {t.text: [h.text for h in t.heading_path] for t in parse_tasks(live)}
        assert paths["a1"] == ["Alpha", "Tasks", "Sub A"]
        assert paths["b1"] == ["Alpha", "Tasks", "Sub B"]

    def test_merges_into_existing_subsection(self):
        _, archive = self._archived()
        live = "# Alpha\n\n## Tasks\n\n### Sub A\n\n- [ ] kept\n"
        live, archive = restore_section(live, archive, *section_bounds(archive, 2))
        assert live == (
            "# Alpha\n\n## Tasks\n\n### Sub A\n\n- [ ] kept\n- [ ] a1\n\n### Sub B\n\n- [ ] b1\n"
        )


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------

MIXED = (
    "# Alpha\n"
    "\n"
    "## Tasks\n"
    "\n"
    "- [ ] keep\n"
    "- [x] done one\n"
    "  - 2024-01-05: wrapped up\n"
    "\n"
    "## Solo\n"
    "\n"
    "- [x] only\n"
)


class TestArchiveTasks:
    def test_files_tasks_under_their_paths(self):
        live, archive = archive_tasks(MIXED, "", [5, 10])
        assert live == "# Alpha\n\n## Tasks\n\n- [ ] keep\n\n## Solo\n"
        assert archive == (
            "# Alpha\n\n## Tasks\n\n- [x] done one\n  - 2024-01-05: wrapped up\n\n## Solo\n\n- [x] only\n"
        )

    def test_without_headings(self):
        live, archive = archive_tasks("- [x] done\n- [ ] open\n", "", [0])
        assert live == "- [ ] open\n"
        assert archive == "# Project Overview\n\n- [x] done\n"

    def test_no_tasks_on_lines(self):
        assert archive_tasks(MIXED, "", [0, 99]) == (MIXED, "")
