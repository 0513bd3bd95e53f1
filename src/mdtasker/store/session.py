"""
Project session: the one place the current document state lives.

State:
    markdown          live document text (source of truth)
    archive_markdown  archive document text
    users             ordered user list
    settings          reminder settings (opaque to the core)

Every change replaces whole texts through the mutation engine and drops the
cached parse; the model is re-derived on the next read. All access goes
through _lock (threading.RLock) because the REST API and the MCP server call
in from different threads; that keeps a single writer at a time.

Each change pushes the previous state onto a bounded undo stack. When the
session is bound to a file and autosave is on, each change is written back.
"""

import logging
import threading
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from mdtasker.models.task import Heading, Project
from mdtasker.models.user import User, default_avatar_url, sanitize_alias
from mdtasker.mutations import apply_operation
from mdtasker.mutations.archive import archive_section, archive_tasks, restore_section
from mdtasker.mutations.lines import delete_user_references, rename_user_references
from mdtasker.parsers.document_parser import parse_document
from mdtasker.store.project_file import (
    ProjectFile,
    Settings,
    UserRecord,
    dump_project_file,
    load_project_file,
    parse_project_file,
    starter_project,
    write_project_file,
)

log = logging.getLogger(__name__)

HISTORY_LIMIT = 50


class UserError(ValueError):
    """A user-management request that cannot be applied (bad or duplicate alias)."""


@dataclass(frozen=True)
class Snapshot:
    markdown: str
    archive_markdown: str
    users: Tuple[User, ...]


class ProjectSession:
    """
    Explicit document/session context.

    Usage:
        session = ProjectSession(Path("project.json"))
        session.load()
        session.apply("toggle_completion", line=4, completed=True)
    """

    def __init__(self, path: Optional[Path] = None, autosave: bool = True,
                 history_limit: int = HISTORY_LIMIT) -> None:
        self._lock = threading.RLock()
        self._path = path
        self._autosave = autosave
        self._history_limit = history_limit

        self._markdown = ""
        self._archive_markdown = ""
        self._users: List[User] = []
        self._settings = Settings()

        self._undo: List[Snapshot] = []
        self._redo: List[Snapshot] = []
        self._parsed: Dict[bool, List[Project]] = {}
        self._saved_mtime: Optional[float] = None

    # ------------------------------------------------------------------
    # Load / save
    # ------------------------------------------------------------------

    @property
    def path(self) -> Optional[Path]:
        return self._path

    @property
    def saved_mtime(self) -> Optional[float]:
        """mtime of the project file as of the last load or save by this session."""
        with self._lock:
            return self._saved_mtime

    def load(self) -> None:
        """
        Load state from the bound file, creating it with a starter document if
        it does not exist. History is cleared.

        Raises:
            ProjectFileError: if the file cannot be read or does not validate
        """
        if self._path is None:
            raise ValueError("Session is not bound to a project file")
        with self._lock:
            if not self._path.exists():
                log.info("Project file %s not found, creating it", self._path)
                write_project_file(self._path, starter_project())
            project = load_project_file(self._path)
            self._set_state(project)
            self._undo.clear()
            self._redo.clear()
            self._saved_mtime = self._path.stat().st_mtime
            log.info("Loaded project file %s (%d users)", self._path, len(self._users))

    def reload(self) -> None:
        """Re-read the bound file after an outside change. The replaced state can be undone."""
        if self._path is None:
            return
        with self._lock:
            project = load_project_file(self._path)
            self._push_history()
            self._set_state(project)
            self._saved_mtime = self._path.stat().st_mtime
            log.info("Reloaded project file %s", self._path)

    def save(self) -> None:
        if self._path is None:
            return
        with self._lock:
            write_project_file(self._path, self.export())
            self._saved_mtime = self._path.stat().st_mtime

    def _changed(self) -> None:
        self._parsed.clear()
        if self._autosave and self._path is not None:
            self.save()

    def _set_state(self, project: ProjectFile) -> None:
        self._markdown = project.markdown
        self._archive_markdown = project.archive_markdown
        self._users = [record.to_user() for record in project.users]
        self._settings = project.settings
        self._parsed.clear()

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def _snapshot(self) -> Snapshot:
        return Snapshot(self._markdown, self._archive_markdown, tuple(replace(u) for u in self._users))

    def _restore(self, snapshot: Snapshot) -> None:
        self._markdown = snapshot.markdown
        self._archive_markdown = snapshot.archive_markdown
        self._users = [replace(u) for u in snapshot.users]

    def _push_history(self) -> None:
        self._undo.append(self._snapshot())
        if len(self._undo) > self._history_limit:
            del self._undo[0]
        self._redo.clear()

    def _commit(self, markdown: Optional[str] = None, archive_markdown: Optional[str] = None,
                users: Optional[List[User]] = None) -> bool:
        """Record history and replace whichever parts changed. Returns False if nothing did."""
        new_markdown = self._markdown if markdown is None else markdown
        new_archive = self._archive_markdown if archive_markdown is None else archive_markdown
        new_users = self._users if users is None else users
        if (new_markdown, new_archive, new_users) == (self._markdown, self._archive_markdown, self._users):
            return False
        self._push_history()
        self._markdown, self._archive_markdown, self._users = new_markdown, new_archive, new_users
        self._changed()
        return True

    def undo(self) -> bool:
        with self._lock:
            if not self._undo:
                return False
            self._redo.append(self._snapshot())
            self._restore(self._undo.pop())
            self._changed()
            return True

    def redo(self) -> bool:
        with self._lock:
            if not self._redo:
                return False
            self._undo.append(self._snapshot())
            self._restore(self._redo.pop())
            self._changed()
            return True

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @property
    def markdown(self) -> str:
        with self._lock:
            return self._markdown

    @property
    def archive_markdown(self) -> str:
        with self._lock:
            return self._archive_markdown

    @property
    def users(self) -> List[User]:
        with self._lock:
            return list(self._users)

    @property
    def settings(self) -> Settings:
        with self._lock:
            return self._settings

    def document(self, archive: bool = False) -> str:
        return self.archive_markdown if archive else self.markdown

    def projects(self, archive: bool = False) -> List[Project]:
        """Parsed projects of the live (or archive) document; cached until the next change."""
        with self._lock:
            if archive not in self._parsed:
                self._parsed[archive] = parse_document(self.document(archive), self._users)
            return list(self._parsed[archive])

    def headings(self, archive: bool = False) -> List[Heading]:
        result: List[Heading] = []
        for project in self.projects(archive):
            result.extend(project.headings)
        return result

    def find_user(self, alias: str) -> Optional[User]:
        with self._lock:
            return next((u for u in self._users if u.alias == alias), None)

    def status(self) -> dict:
        with self._lock:
            projects = self.projects()
            return {
                "path": str(self._path) if self._path else None,
                "projects": len(projects),
                "tasks": sum(len(p.all_tasks()) for p in projects),
                "users": len(self._users),
                "undo_depth": len(self._undo),
                "redo_depth": len(self._redo),
            }

    # ------------------------------------------------------------------
    # Document changes
    # ------------------------------------------------------------------

    def apply(self, operation: str, archive: bool = False, **params: Any) -> str:
        """
        Apply a named mutation to the live (or archive) document.

        Returns:
            The new document text

        Raises:
            UnknownOperationError: for an unknown operation name
            TypeError: for parameters the operation does not accept
        """
        with self._lock:
            new_text = apply_operation(self.document(archive), operation, **params)
            if archive:
                self._commit(archive_markdown=new_text)
            else:
                self._commit(markdown=new_text)
            log.debug("Applied %s to %s document", operation, "archive" if archive else "live")
            return new_text

    def set_document(self, text: str, archive: bool = False) -> None:
        """Replace a whole document (full-document editor)."""
        with self._lock:
            if archive:
                self._commit(archive_markdown=text)
            else:
                self._commit(markdown=text)

    def archive_section(self, start: int, end: int, today: Optional[str] = None) -> bool:
        with self._lock:
            live, archive = archive_section(self._markdown, self._archive_markdown, start, end, today=today)
            return self._commit(markdown=live, archive_markdown=archive)

    def restore_section(self, start: int, end: int) -> bool:
        with self._lock:
            live, archive = restore_section(self._markdown, self._archive_markdown, start, end)
            return self._commit(markdown=live, archive_markdown=archive)

    def archive_tasks(self, task_lines: List[int]) -> bool:
        with self._lock:
            live, archive = archive_tasks(self._markdown, self._archive_markdown, task_lines)
            return self._commit(markdown=live, archive_markdown=archive)

    def clear_archive(self) -> bool:
        with self._lock:
            return self._commit(archive_markdown="")

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def _check_alias(self, alias: str, current: Optional[str] = None) -> str:
        clean = sanitize_alias(alias)
        if not clean:
            raise UserError(f"Alias {alias!r} has no usable characters (allowed: a-z, 0-9, _)")
        if clean != current and any(u.alias == clean for u in self._users):
            raise UserError(f"Alias @{clean} is already taken")
        return clean

    def add_user(self, alias: str, name: str, email: str = "", avatar_url: str = "") -> User:
        with self._lock:
            if not name.strip():
                raise UserError("Name is required")
            clean = self._check_alias(alias or name)
            user = User(
                alias=clean,
                name=name.strip(),
                email=email.strip(),
                avatar_url=avatar_url or default_avatar_url(clean),
            )
            self._commit(users=self._users + [user])
            log.info("Added user @%s", clean)
            return user

    def update_user(self, old_alias: str, *, alias: Optional[str] = None, name: Optional[str] = None,
                    email: Optional[str] = None, avatar_url: Optional[str] = None) -> Optional[User]:
        """
        Edit a user. A changed alias is rewritten in both documents.

        Returns:
            The updated user, or None if ``old_alias`` is unknown
        """
        with self._lock:
            index = next((i for i, u in enumerate(self._users) if u.alias == old_alias), None)
            if index is None:
                return None
            current = self._users[index]
            new_alias = self._check_alias(alias, current=old_alias) if alias is not None else old_alias
            updated = User(
                alias=new_alias,
                name=name.strip() if name and name.strip() else current.name,
                email=email.strip() if email is not None else current.email,
                avatar_url=avatar_url if avatar_url else current.avatar_url,
            )
            users = list(self._users)
            users[index] = updated
            self._commit(
                markdown=rename_user_references(self._markdown, old_alias, new_alias),
                archive_markdown=rename_user_references(self._archive_markdown, old_alias, new_alias),
                users=users,
            )
            if new_alias != old_alias:
                log.info("Renamed user @%s to @%s", old_alias, new_alias)
            return updated

    def delete_user(self, alias: str) -> bool:
        """Remove a user and every ``(@alias)`` reference to them."""
        with self._lock:
            if self.find_user(alias) is None:
                return False
            self._commit(
                markdown=delete_user_references(self._markdown, alias),
                archive_markdown=delete_user_references(self._archive_markdown, alias),
                users=[u for u in self._users if u.alias != alias],
            )
            log.info("Deleted user @%s", alias)
            return True

    # ------------------------------------------------------------------
    # Settings, import / export
    # ------------------------------------------------------------------

    def update_settings(self, changes: Dict[str, Any]) -> Settings:
        """Merge ``changes`` (field names or their camelCase aliases) into the settings."""
        with self._lock:
            aliases = {name: info.alias or name for name, info in Settings.model_fields.items()}
            merged = self._settings.model_dump(by_alias=True)
            merged.update({aliases.get(key, key): value for key, value in changes.items()})
            self._settings = Settings.model_validate(merged)
            self._changed()
            return self._settings

    def import_state(self, project: ProjectFile) -> None:
        """Replace the whole state with an already validated project file."""
        with self._lock:
            self._push_history()
            self._set_state(project)
            self._changed()
            log.info("Imported project (%d users)", len(self._users))

    def import_json(self, raw: str) -> None:
        """
        Validate and import a project file. Nothing changes if validation fails.

        Raises:
            ProjectFileError: with a user-facing message
        """
        self.import_state(parse_project_file(raw))

    def export(self) -> ProjectFile:
        with self._lock:
            return ProjectFile(
                users=[UserRecord.from_user(u) for u in self._users],
                markdown=self._markdown,
                archive_markdown=self._archive_markdown,
                settings=self._settings,
            )

    def export_json(self) -> str:
        return dump_project_file(self.export())
