from __future__ import annotations

from typing import Any
from uuid import UUID

from fastapi import HTTPException
from sqlalchemy.orm import Session

from fieldday.core.context import WorkspaceContext
from fieldday.core.deps import ROLE_ADMIN
from fieldday.models.entry import Entry
from fieldday.models.project import Project
from fieldday.models.tab import Tab
from fieldday.services.column_registry import ColumnDefinition
from fieldday.services.document_store import DocumentStore


def uuid_or_400(value: object, field_name: str) -> UUID:
    raw = str(value or "").strip()
    try:
        return UUID(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail=f'Invalid "{field_name}"')


def is_project_member(project: Project, admin: dict) -> bool:
    if admin.get("role") == ROLE_ADMIN:
        return True
    email = str(admin.get("email") or "").strip().lower()
    return email in (project.contributors or []) or email in (project.administrators or [])


def project_or_403(db: Session, project_id: UUID, admin: dict) -> Project:
    project = DocumentStore(db).get_project(project_id)
    if not is_project_member(project, admin):
        raise HTTPException(status_code=403, detail="Not a member of this project")
    return project


def workspace_or_400(db: Session, project_id: str, tab_id: str, admin: dict) -> WorkspaceContext:
    ctx = WorkspaceContext.from_admin(uuid_or_400(project_id, "project_id"), uuid_or_400(tab_id, "tab_id"), admin)
    project_or_403(db, ctx.project_id, admin)
    return ctx


def column_row(column: ColumnDefinition) -> dict[str, Any]:
    row = column.as_document()
    row["system"] = column.is_system
    return row


def tab_row(row: Tab) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "project_id": str(row.project_id),
        "tab_name": row.tab_name,
        "generate_unique_identifier": bool(row.generate_unique_identifier),
        "identifier_max_letter": row.identifier_max_letter,
        "identifier_max_number": row.identifier_max_number,
        "unwanted_codes": list(row.unwanted_codes or []),
        "utilize_unwanted": bool(row.utilize_unwanted),
        "schema_version": row.schema_version,
        "created_at": row.created_at.isoformat() if row.created_at else None,
    }


def entry_row(row: Entry) -> dict[str, Any]:
    return {
        "id": str(row.id),
        "entry_data": dict(row.entry_data or {}),
        "entry_date": row.entry_date.isoformat() if row.entry_date else None,
        "deleted": bool(row.deleted),
        "responsible": row.responsible,
    }
