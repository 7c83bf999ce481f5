from __future__ import annotations

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fieldday.api.admin.common import entry_row, uuid_or_400, workspace_or_400
from fieldday.core.config import settings
from fieldday.core.context import WorkspaceContext
from fieldday.core.deps import ROLE_ADMIN, ROLE_CONTRIBUTOR, require_role
from fieldday.core.errors import ConflictError, NotFoundError, ValidationError
from fieldday.db.session import get_db
from fieldday.models.entry import Entry
from fieldday.schemas.admin import EntryCreate, EntryPatch
from fieldday.schemas.universal import EntryQuery, Page, SortClause
from fieldday.services.column_registry import identifier_column, identifier_domain_names
from fieldday.services.document_store import DocumentStore
from fieldday.services.entry_search import ENTRY_DATE_FIELD, filter_entries_by_search, paginate, sort_entries
from fieldday.services.entry_validation import clean_entry_values, default_entry_values, validate_entry_values
from fieldday.services.identifiers import STATUS_INCOMPLETE, generate_entry_identifier
from fieldday.services.notifier import Notifier

router = APIRouter()
logger = logging.getLogger("fieldday.entries")


def _assign_identifier(store: DocumentStore, ctx: WorkspaceContext, data: dict, notifier: Notifier) -> dict:
    tab = store.get_tab(ctx.project_id, ctx.tab_id)
    id_column = identifier_column(store.fetch_columns(ctx.project_id, ctx.tab_id))
    if not tab.generate_unique_identifier or id_column is None:
        return data
    desired = str(data.get(id_column.name) or "").strip()
    result = generate_entry_identifier(store, ctx, desired, data, notifier)
    if result.status == STATUS_INCOMPLETE:
        raise ValidationError(result.identifier)
    if not result.ok:
        raise ConflictError(result.identifier)
    if desired and result.identifier != desired:
        raise ConflictError(f'Entry ID "{desired}" is already used; next free ID is "{result.identifier}"')
    data[id_column.name] = result.identifier
    return data


def _entry_or_404(db: Session, ctx: WorkspaceContext, entry_id: str) -> Entry:
    row = db.get(Entry, uuid_or_400(entry_id, "entry_id"))
    if row is None or row.tab_id != ctx.tab_id:
        raise NotFoundError("Entry not found")
    return row


@router.get("/defaults")
def entry_defaults(
    project_id: str,
    tab_id: str,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    columns = DocumentStore(db, ctx.actor_email).fetch_columns(ctx.project_id, ctx.tab_id)
    return {"entry_data": default_entry_values(columns, datetime.now(timezone.utc))}


@router.post("", status_code=201)
def create_entry(
    project_id: str,
    tab_id: str,
    payload: EntryCreate,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    store = DocumentStore(db, ctx.actor_email)
    notifier = Notifier()
    columns = store.fetch_columns(ctx.project_id, ctx.tab_id)
    data = clean_entry_values(columns, payload.entry_data)
    validate_entry_values(columns, data)
    data = _assign_identifier(store, ctx, data, notifier)

    row = store.save_entry(Entry(tab_id=ctx.tab_id, entry_data=data, deleted=False))
    logger.info("entry_created tab_id=%s entry_id=%s", ctx.tab_id, row.id)
    notifier.success("Entry saved")
    return {"entry": entry_row(row), "notifications": notifier.messages}


@router.post("/query")
def query_entries(
    project_id: str,
    tab_id: str,
    payload: EntryQuery,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    rows = DocumentStore(db, ctx.actor_email).fetch_rows(
        ctx.project_id, ctx.tab_id, include_deleted=payload.include_deleted
    )
    matched = filter_entries_by_search(rows, payload.search)
    ordered = sort_entries(matched, payload.sort or [SortClause(field=ENTRY_DATE_FIELD, dir="desc")])
    page = Page(limit=min(max(payload.page.limit, 0), settings.ENTRY_QUERY_MAX_LIMIT), offset=payload.page.offset)
    return {"rows": [entry_row(r) for r in paginate(ordered, page)], "total": len(ordered)}


@router.patch("/{entry_id}")
def update_entry(
    project_id: str,
    tab_id: str,
    entry_id: str,
    payload: EntryPatch,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    store = DocumentStore(db, ctx.actor_email)
    notifier = Notifier()
    columns = store.fetch_columns(ctx.project_id, ctx.tab_id)
    row = _entry_or_404(db, ctx, entry_id)
    if row.deleted:
        raise ValidationError("Deleted entries cannot be edited")

    current = dict(row.entry_data or {})
    data = dict(current)
    data.update(clean_entry_values(columns, payload.entry_data))
    validate_entry_values(columns, data)

    id_column = identifier_column(columns)
    if id_column is not None:
        watched = [id_column.name] + identifier_domain_names(columns)
        if any(str(data.get(name) or "") != str(current.get(name) or "") for name in watched):
            data = _assign_identifier(store, ctx, data, notifier)

    row.entry_data = data
    store.save_entry(row)
    notifier.success("Entry updated")
    return {"entry": entry_row(row), "notifications": notifier.messages}


@router.delete("/{entry_id}")
def delete_entry(
    project_id: str,
    tab_id: str,
    entry_id: str,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    store = DocumentStore(db, ctx.actor_email)
    store.get_tab(ctx.project_id, ctx.tab_id)
    row = _entry_or_404(db, ctx, entry_id)
    row.deleted = True
    store.save_entry(row, "delete entry")
    logger.info("entry_deleted tab_id=%s entry_id=%s", ctx.tab_id, row.id)
    return {"status": "deleted", "id": str(row.id)}
