from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from fieldday.api.admin.common import project_or_403, tab_row, uuid_or_400, workspace_or_400
from fieldday.core.deps import ROLE_ADMIN, ROLE_CONTRIBUTOR, actor_email, require_role
from fieldday.core.errors import CapacityExceeded
from fieldday.db.session import get_db
from fieldday.models.entry import Entry
from fieldday.models.tab import Tab
from fieldday.models.tab_column import TabColumn
from fieldday.schemas.admin import TabCreate, TabPatch
from fieldday.services.code_space import MAX_CANDIDATE_POOL, normalize_blocklist, pool_size
from fieldday.services.column_registry import (
    ACTIONS_COLUMN_ID,
    DATETIME_COLUMN_ID,
    IDENTIFIER_COLUMN_ID,
    IDENTIFIER_COLUMN_NAME,
    ColumnDefinition,
    DataType,
    StagedChanges,
    normalize_options,
    validate_and_commit,
)
from fieldday.services.document_store import DocumentStore

router = APIRouter()
logger = logging.getLogger("fieldday.tabs")


def system_columns(generate_identifier: bool) -> list[ColumnDefinition]:
    columns = [
        ColumnDefinition(id=ACTIONS_COLUMN_ID, name="Actions", data_type=DataType.TEXT, order=-2),
        ColumnDefinition(id=DATETIME_COLUMN_ID, name="Date/Time", data_type=DataType.DATE, order=-1),
    ]
    if generate_identifier:
        columns.append(
            ColumnDefinition(id=IDENTIFIER_COLUMN_ID, name=IDENTIFIER_COLUMN_NAME, data_type=DataType.AUTO_ID, order=0)
        )
    return columns


def _project_id_or_404(db: Session, project_id: str, admin: dict) -> uuid.UUID:
    project_uuid = uuid_or_400(project_id, "project_id")
    project_or_403(db, project_uuid, admin)
    return project_uuid


def create_tab_service(project_id: str, payload: TabCreate, db: Session, admin: dict) -> dict:
    project_uuid = _project_id_or_404(db, project_id, admin)
    tab_name = payload.tab_name.strip()
    if not tab_name:
        raise HTTPException(status_code=400, detail='Field "tab_name" is required')
    if payload.generate_unique_identifier:
        if payload.identifier_max_letter is None or payload.identifier_max_number is None:
            raise HTTPException(status_code=400, detail="Identifier generation needs a max letter and a max number")
        if pool_size(payload.identifier_max_letter, payload.identifier_max_number) > MAX_CANDIDATE_POOL:
            raise CapacityExceeded(MAX_CANDIDATE_POOL, payload.identifier_max_letter, payload.identifier_max_number)

    user_columns = [
        ColumnDefinition(
            id=uuid.uuid4().hex,
            name=item.name.strip(),
            data_type=DataType.parse(item.data_type),
            order=item.order if item.order is not None else index,
            required_field=item.required_field,
            identifier_domain=item.identifier_domain,
            entry_options=normalize_options(item.entry_options),
        )
        for index, item in enumerate(payload.columns, start=1)
    ]
    commit = validate_and_commit(system_columns(payload.generate_unique_identifier) + user_columns, StagedChanges())

    responsible = actor_email(admin)
    tab = Tab(
        project_id=project_uuid,
        tab_name=tab_name,
        generate_unique_identifier=payload.generate_unique_identifier,
        identifier_max_letter=payload.identifier_max_letter if payload.generate_unique_identifier else None,
        identifier_max_number=payload.identifier_max_number if payload.generate_unique_identifier else None,
        unwanted_codes=sorted(normalize_blocklist(payload.unwanted_codes)),
        utilize_unwanted=payload.utilize_unwanted,
        schema_version=1,
        responsible=responsible,
    )
    try:
        db.add(tab)
        db.flush()
        for column in commit.columns:
            db.add(
                TabColumn(
                    tab_id=tab.id,
                    key=column.id,
                    name=column.name,
                    data_type=column.data_type.value,
                    order=column.order,
                    required_field=column.required_field,
                    identifier_domain=column.identifier_domain,
                    entry_options=list(column.entry_options),
                    responsible=responsible,
                )
            )
        db.commit()
        db.refresh(tab)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A tab with this name already exists")
    logger.info("tab_created project_id=%s tab_id=%s columns=%s", project_uuid, tab.id, len(commit.columns))
    body = tab_row(tab)
    body["columns"] = [column.as_document() for column in commit.columns]
    return body


@router.get("/{project_id}/tabs")
def list_tabs(project_id: str, db: Session = Depends(get_db), admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR))):
    project_uuid = _project_id_or_404(db, project_id, admin)
    rows = db.query(Tab).filter(Tab.project_id == project_uuid).order_by(Tab.tab_name.asc()).all()
    return {"rows": [tab_row(r) for r in rows], "total": len(rows)}


@router.post("/{project_id}/tabs", status_code=201)
def create_tab(project_id: str, payload: TabCreate, db: Session = Depends(get_db), admin=Depends(require_role(ROLE_ADMIN))):
    return create_tab_service(project_id, payload, db, admin)


@router.get("/{project_id}/tabs/{tab_id}")
def get_tab(
    project_id: str,
    tab_id: str,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    return tab_row(DocumentStore(db).get_tab(ctx.project_id, ctx.tab_id))


@router.patch("/{project_id}/tabs/{tab_id}")
def update_tab(
    project_id: str,
    tab_id: str,
    payload: TabPatch,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    row = DocumentStore(db).get_tab(ctx.project_id, ctx.tab_id)
    changes = payload.model_dump(exclude_unset=True)
    if not changes:
        raise HTTPException(status_code=400, detail="No fields to update")
    if "tab_name" in changes:
        name = str(changes["tab_name"] or "").strip()
        if not name:
            raise HTTPException(status_code=400, detail='New name for "%s" cannot be empty' % row.tab_name)
        row.tab_name = name
    if changes.get("unwanted_codes") is not None:
        row.unwanted_codes = sorted(normalize_blocklist(changes["unwanted_codes"]))
    if changes.get("utilize_unwanted") is not None:
        row.utilize_unwanted = bool(changes["utilize_unwanted"])
    row.responsible = ctx.actor_email
    try:
        db.add(row)
        db.commit()
        db.refresh(row)
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=409, detail="A tab with this name already exists")
    return tab_row(row)


@router.delete("/{project_id}/tabs/{tab_id}")
def delete_tab(project_id: str, tab_id: str, db: Session = Depends(get_db), admin=Depends(require_role(ROLE_ADMIN))):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    row = DocumentStore(db).get_tab(ctx.project_id, ctx.tab_id)
    db.execute(delete(Entry).where(Entry.tab_id == row.id))
    db.execute(delete(TabColumn).where(TabColumn.tab_id == row.id))
    db.delete(row)
    db.commit()
    logger.info("tab_deleted project_id=%s tab_id=%s", ctx.project_id, ctx.tab_id)
    return {"status": "deleted", "id": str(ctx.tab_id)}
