"""
Tests for tools/document_tools.py.

Exercises the MCP tool functions directly (bypasses transport) against an
in-memory ProjectSession.
"""

import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

import pytest

from mdtasker.store.project_file import ProjectFile, UserRecord
from mdtasker.store.session import ProjectSession
from mdtasker.tools import register_document_tools

DOC = (
    "# Alpha\n"
    "\n"
    "## Tasks\n"
    "\n"
    "- [ ] Write plan (@amy)\n"
    "- [x] Kickoff\n"
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class _FakeMCP:
    """Minimal fake to capture tool registrations."""

    def __init__(self):
        self._tools = {}

    def tool(self, *args, **kwargs):
        """Decorator that records functions by name."""
        def decorator(fn):
            self._tools[fn.__name__] = fn
            return fn
        return decorator

    def get(self, name: str):
        return self._tools[name]


@pytest.fixture
def setup():
    session = ProjectSession(autosave=False)
    session.import_state(ProjectFile(users=[UserRecord(alias="amy", name="Amy Adams")], markdown=DOC))
    mcp = _FakeMCP()
    register_document_tools(mcp, session)
    return mcp, session


# ---------------------------------------------------------------------------
# Registration
# ---------------------------------------------------------------------------

def test_all_tools_registered(setup):
    mcp, _ = setup
    assert set(mcp._tools) == {
        "project_list",
        "overview",
        "heading_list",
        "document_get",
        "timeline",
        "daily_report",
        "session_status",
        "apply_operation",
        "archive_section",
        "restore_section",
        "archive_tasks",
        "undo",
        "user_list",
        "user_add",
    }


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

class TestReadTools:
    def test_project_list(self, setup):
        mcp, _ = setup
        data = json.loads(mcp.get("project_list")())
        assert data[0]["title"] == "Alpha"
        assert data[0]["grouped_tasks"]["amy"]["tasks"][0]["line_index"] == 4

    def test_hide_completed(self, setup):
        mcp, _ = setup
        data = json.loads(mcp.get("project_list")(hide_completed=True))
        assert data[0]["unassigned_tasks"] == []

    def test_heading_list(self, setup):
        mcp, _ = setup
        data = json.loads(mcp.get("heading_list")())
        assert [h["slug"] for h in data] == ["alpha", "tasks"]

    def test_document_get(self, setup):
        mcp, _ = setup
        assert json.loads(mcp.get("document_get")())["markdown"] == DOC

    def test_session_status(self, setup):
        mcp, _ = setup
        assert json.loads(mcp.get("session_status")())["tasks"] == 2


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

class TestMutationTools:
    def test_apply_operation(self, setup):
        mcp, session = setup
        data = json.loads(mcp.get("apply_operation")("set_assignee", {"line": 5, "alias": "amy"}))
        assert "- [x] Kickoff (@amy)" in data["markdown"]
        assert session.markdown == data["markdown"]

    def test_unknown_operation(self, setup):
        mcp, _ = setup
        data = json.loads(mcp.get("apply_operation")("explode"))
        assert data["error"] == "Operation 'explode' not found"

    def test_bad_parameters(self, setup):
        mcp, session = setup
        data = json.loads(mcp.get("apply_operation")("toggle_completion", {"row": 4}))
        assert data["error"].startswith("Bad parameters for toggle_completion")
        assert session.markdown == DOC

    def test_archive_restore_undo(self, setup):
        mcp, session = setup
        archived = json.loads(mcp.get("archive_section")(heading_line=2))
        assert archived["changed"] is True
        heading_line = session.archive_markdown.split("\n").index("## Tasks")
        restored = json.loads(mcp.get("restore_section")(heading_line=heading_line))
        assert restored["changed"] is True
        assert "- [ ] Write plan (@amy)" in restored["markdown"]
        assert json.loads(mcp.get("undo")())["changed"] is True

    def test_archive_tasks(self, setup):
        mcp, _ = setup
        data = json.loads(mcp.get("archive_tasks")([5]))
        assert "- [x] Kickoff" in data["archive_markdown"]


class TestUserTools:
    def test_user_add(self, setup):
        mcp, _ = setup
        data = json.loads(mcp.get("user_add")("Bob Brown"))
        assert data["alias"] == "bob_brown"
        assert [u["alias"] for u in json.loads(mcp.get("user_list")())] == ["amy", "bob_brown"]

    def test_user_add_duplicate(self, setup):
        mcp, _ = setup
        data = json.loads(mcp.get("user_add")("Amy Again", alias="amy"))
        assert "already taken" in data["error"]
