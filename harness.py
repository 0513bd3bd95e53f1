"""
Interactive harness for trying mdtasker without MCP integration.

Usage:
    python harness.py <PROJECT_FILE>

Loads the project file into a ProjectSession, prints a quick summary, then
drops you into a REPL where you can inspect the model and apply operations.
"""

import json
import sys
from pathlib import Path

# Add src/ to path so imports work
sys.path.insert(0, str(Path(__file__).parent / "src"))

from mdtasker.reports import aggregate_projects, all_tasks, build_timeline
from mdtasker.store.session import ProjectSession


def smoke_test(session: ProjectSession) -> None:
    """Quick summary after loading."""
    st = session.status()
    print("\n=== Smoke Test ===")
    print(f"  Project file:  {st['path']}")
    print(f"  Projects:      {st['projects']}")
    print(f"  Tasks:         {st['tasks']}")
    print(f"  Users:         {st['users']}")

    for index, project in enumerate(session.projects()):
        print(f"\n  [{index}] {project.title}  lines {project.start_line}-{project.end_line}  cost={project.total_cost}")
        for task in project.all_tasks()[:5]:
            mark = "x" if task.completed else " "
            who = f" @{task.assignee_alias}" if task.assignee_alias else ""
            print(f"      {task.line_index:4d} [{mark}] {task.text}{who}")

    overview = aggregate_projects(session.projects(), session.users)
    print("\n  Tasks per user:")
    for alias, group in overview.grouped_tasks.items():
        print(f"    @{alias:12s} {len(group.tasks)}")
    print(f"    {'unassigned':13s} {len(overview.unassigned_tasks)}")

    buckets = build_timeline(all_tasks(session.projects()))
    print("\n  Timeline: " + ", ".join(f"{name}={len(tasks)}" for name, tasks in buckets.items()))
    print("\n=== Smoke Test Complete ===\n")


def repl(session: ProjectSession) -> None:
    """Simple REPL for interactive exploration."""
    print("Interactive mode. Type 'help' for commands, 'quit' to exit.\n")

    commands = {
        "help":     "Show this help",
        "status":   "Show session status",
        "show":     "Print the document. Usage: show [archive]",
        "headings": "List headings with line numbers",
        "op":       "Apply an operation. Usage: op <name> <json params>",
        "undo":     "Undo the last change",
        "redo":     "Redo the last undone change",
        "quit":     "Exit",
    }

    while True:
        try:
            line = input("mdtasker> ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break

        if not line:
            continue

        parts = line.split(maxsplit=2)
        cmd = parts[0].lower()

        if cmd in ("quit", "exit"):
            break

        elif cmd == "help":
            for k, v in commands.items():
                print(f"  {k:10s} {v}")

        elif cmd == "status":
            print(json.dumps(session.status(), indent=2))

        elif cmd == "show":
            archive = len(parts) > 1 and parts[1] == "archive"
            for number, text in enumerate(session.document(archive).split("\n")):
                print(f"{number:4d} | {text}")

        elif cmd == "headings":
            for h in session.headings():
                print(f"  {h.line:4d} {'#' * h.level} {h.text}  ({h.slug})")

        elif cmd == "op":
            if len(parts) < 2:
                print("Usage: op <name> <json params>")
                continue
            try:
                params = json.loads(parts[2]) if len(parts) > 2 else {}
                session.apply(parts[1], **params)
            except (ValueError, KeyError, TypeError) as e:
                print(f"  Error: {e}")
                continue
            print("  ok")

        elif cmd == "undo":
            print("  undone" if session.undo() else "  nothing to undo")

        elif cmd == "redo":
            print("  redone" if session.redo() else "  nothing to redo")

        else:
            print(f"  Unknown command: {cmd}. Type 'help'.")


def main() -> None:
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    session = ProjectSession(Path(sys.argv[1]), autosave=False)
    session.load()
    smoke_test(session)
    repl(session)


if __name__ == "__main__":
    main()
