"""
Persisted project file.

The interchange format is one JSON object:

    {
      "users": [{"alias": ..., "name": ..., "email": ..., "avatarUrl": ...}],
      "markdown": "...",
      "archiveMarkdown": "...",     (optional)
      "settings": {...}             (optional)
    }

Import validates the whole payload before anything is accepted. Any failure
raises ProjectFileError with a message fit to show the user.
"""

import logging
from pathlib import Path
from typing import Any, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError, field_validator

from mdtasker.models.user import User, default_avatar_url

log = logging.getLogger(__name__)

STARTER_MARKDOWN = """# My First Project

Use level-1 headings to split this file into projects.

## Backlog

- [ ] Write the project plan
- [ ] Invite the team
"""


class ProjectFileError(ValueError):
    """The project file could not be read or did not validate."""


class UserRecord(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    alias: StrictStr
    name: StrictStr
    email: str = ""
    avatar_url: str = Field("", alias="avatarUrl")

    @field_validator("email", "avatar_url", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    def to_user(self) -> User:
        return User(
            alias=self.alias,
            name=self.name,
            email=self.email,
            avatar_url=self.avatar_url or default_avatar_url(self.alias),
        )

    @classmethod
    def from_user(cls, user: User) -> "UserRecord":
        return cls(alias=user.alias, name=user.name, email=user.email, avatar_url=user.avatar_url)


class Settings(BaseModel):
    """Reminder e-mail settings, carried through import and export unchanged."""

    model_config = ConfigDict(populate_by_name=True)

    sender_alias: Optional[str] = Field(None, alias="senderAlias")
    email_subject: str = Field("Task Update for project: {projectTitle}", alias="emailSubject")
    email_preamble: str = Field(
        "Hi {userName},\n\nThis is a friendly reminder about your outstanding tasks for the project. "
        "Please see the list below:",
        alias="emailPreamble",
    )
    email_postamble: str = Field("Please provide an update when you can.\n\nBest regards,", alias="emailPostamble")
    email_signature: str = Field("{senderName}", alias="emailSignature")
    reminder_message: str = Field("Reminder sent.", alias="reminderMessage")
    cc_alias: Optional[str] = Field(None, alias="ccAlias")


class ProjectFile(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    users: List[UserRecord]
    markdown: StrictStr
    archive_markdown: str = Field("", alias="archiveMarkdown")
    settings: Settings = Field(default_factory=Settings)

    @field_validator("archive_markdown", mode="before")
    @classmethod
    def _missing_archive(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("settings", mode="before")
    @classmethod
    def _missing_settings(cls, value: Any) -> Any:
        return {} if value is None else value


def _describe(exc: ValidationError) -> str:
    problems = []
    for error in exc.errors()[:3]:
        where = ".".join(str(part) for part in error["loc"])
        problems.append(f"{where}: {error['msg']}" if where else error["msg"])
    return "Invalid project file: " + "; ".join(problems)


def parse_project_file(raw: Union[str, bytes]) -> ProjectFile:
    """Validate a JSON document as a project file."""
    try:
        return ProjectFile.model_validate_json(raw)
    except ValidationError as exc:
        raise ProjectFileError(_describe(exc)) from exc


def parse_project_data(data: Any) -> ProjectFile:
    """Validate already-decoded JSON (e.g. a request body) as a project file."""
    if not isinstance(data, dict):
        raise ProjectFileError("Invalid project file: expected a JSON object")
    try:
        return ProjectFile.model_validate(data)
    except ValidationError as exc:
        raise ProjectFileError(_describe(exc)) from exc


def dump_project_file(project: ProjectFile) -> str:
    return project.model_dump_json(by_alias=True, indent=2)


def load_project_file(path: Path) -> ProjectFile:
    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProjectFileError(f"Cannot read project file {path}: {exc}") from exc
    return parse_project_file(raw)


def write_project_file(path: Path, project: ProjectFile) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(dump_project_file(project) + "\n", encoding="utf-8")
    log.debug("Wrote project file %s", path)


def starter_project() -> ProjectFile:
    return ProjectFile(users=[], markdown=STARTER_MARKDOWN)
