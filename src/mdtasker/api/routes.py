"""REST API routes for mdtasker."""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, HTTPException, Query
from pydantic import BaseModel, Field

from mdtasker.api.handlers import (
    handle_archive_section,
    handle_archive_tasks,
    handle_clear_archive,
    handle_daily_report,
    handle_document_get,
    handle_document_put,
    handle_export,
    handle_heading_list,
    handle_import,
    handle_operation,
    handle_overview,
    handle_project_get,
    handle_project_list,
    handle_redo,
    handle_restore_section,
    handle_settings_get,
    handle_settings_update,
    handle_status,
    handle_timeline,
    handle_undo,
    handle_user_add,
    handle_user_delete,
    handle_user_list,
    handle_user_update,
)


# ---------------------------------------------------------------------------
# Request body models
# ---------------------------------------------------------------------------


class DocumentBody(BaseModel):
    markdown: str


class OperationBody(BaseModel):
    params: Dict[str, Any] = Field(default_factory=dict)


class SectionBody(BaseModel):
    start: Optional[int] = None
    end: Optional[int] = None
    heading_line: Optional[int] = None


class ArchiveTasksBody(BaseModel):
    task_lines: List[int]


class UserAddBody(BaseModel):
    alias: str = ""
    name: str
    email: str = ""
    avatar_url: str = ""


class UserUpdateBody(BaseModel):
    alias: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    avatar_url: Optional[str] = None


# ---------------------------------------------------------------------------
# Route registration
# ---------------------------------------------------------------------------


def _check(result: dict, status_code: int = 404) -> dict:
    if "error" in result:
        raise HTTPException(status_code=status_code, detail=result["error"])
    return result


def register_routes(app_router: APIRouter, session) -> None:
    """Attach all REST routes that use the shared session."""

    # --- Model ---

    @app_router.get("/status")
    def get_status():
        return handle_status(session)

    @app_router.get("/projects")
    def list_projects(archive: bool = Query(False), hide_completed: bool = Query(False)):
        return handle_project_list(session, archive=archive, hide_completed=hide_completed)

    @app_router.get("/projects/{project_index}")
    def get_project(project_index: int, archive: bool = Query(False), hide_completed: bool = Query(False)):
        return _check(handle_project_get(
            session, project_index=project_index, archive=archive, hide_completed=hide_completed
        ))

    @app_router.get("/overview")
    def get_overview(hide_completed: bool = Query(False)):
        return handle_overview(session, hide_completed=hide_completed)

    @app_router.get("/headings")
    def list_headings(archive: bool = Query(False)):
        return handle_heading_list(session, archive=archive)

    @app_router.get("/timeline")
    def get_timeline(project_index: Optional[int] = Query(None), today: Optional[str] = Query(None)):
        return _check(handle_timeline(session, project_index=project_index, today=today))

    @app_router.get("/reports/daily")
    def get_daily_report(day: Optional[str] = Query(None), project_index: Optional[int] = Query(None)):
        return _check(handle_daily_report(session, day=day, project_index=project_index))

    # --- Documents ---

    @app_router.get("/document")
    def get_document(archive: bool = Query(False)):
        return handle_document_get(session, archive=archive)

    @app_router.put("/document")
    def put_document(body: DocumentBody, archive: bool = Query(False)):
        return handle_document_put(session, markdown=body.markdown, archive=archive)

    @app_router.post("/operations/{operation}")
    def apply_operation(operation: str, body: OperationBody, archive: bool = Query(False)):
        try:
            result = handle_operation(session, operation=operation, params=body.params, archive=archive)
        except (TypeError, ValueError) as e:
            raise HTTPException(status_code=400, detail=str(e))
        if "error" in result:
            status_code = 404 if "not found" in result["error"] else 400
            raise HTTPException(status_code=status_code, detail=result["error"])
        return result

    @app_router.post("/archive/sections")
    def archive_section(body: SectionBody):
        return _check(handle_archive_section(session, **body.model_dump()), status_code=400)

    @app_router.post("/archive/restore")
    def restore_section(body: SectionBody):
        return _check(handle_restore_section(session, **body.model_dump()), status_code=400)

    @app_router.post("/archive/tasks")
    def archive_tasks(body: ArchiveTasksBody):
        return handle_archive_tasks(session, task_lines=body.task_lines)

    @app_router.delete("/archive")
    def clear_archive():
        return handle_clear_archive(session)

    @app_router.post("/undo")
    def undo():
        return handle_undo(session)

    @app_router.post("/redo")
    def redo():
        return handle_redo(session)

    # --- Users ---

    @app_router.get("/users")
    def list_users():
        return handle_user_list(session)

    @app_router.post("/users", status_code=201)
    def add_user(body: UserAddBody):
        try:
            return handle_user_add(session, **body.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app_router.patch("/users/{alias}")
    def update_user(alias: str, body: UserUpdateBody):
        try:
            result = handle_user_update(session, old_alias=alias, **body.model_dump())
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))
        return _check(result)

    @app_router.delete("/users/{alias}")
    def delete_user(alias: str):
        return _check(handle_user_delete(session, alias=alias))

    # --- Settings, import / export ---

    @app_router.get("/settings")
    def get_settings():
        return handle_settings_get(session)

    @app_router.patch("/settings")
    def update_settings(changes: Dict[str, Any] = Body(...)):
        try:
            return handle_settings_update(session, changes=changes)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app_router.post("/import")
    def import_project(data: Any = Body(...)):
        try:
            return handle_import(session, data=data)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    @app_router.get("/export")
    def export_project():
        return handle_export(session)
