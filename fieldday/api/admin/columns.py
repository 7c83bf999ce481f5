from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from fieldday.api.admin.common import column_row, workspace_or_400
from fieldday.core.deps import ROLE_ADMIN, ROLE_CONTRIBUTOR, require_role
from fieldday.db.session import get_db
from fieldday.schemas.admin import ColumnCreate, ColumnSaveRequest
from fieldday.services.document_store import DocumentStore
from fieldday.services.notifier import Notifier
from fieldday.services.schema_changes import add_column, save_column_changes

router = APIRouter()


@router.get("")
def list_columns(
    project_id: str,
    tab_id: str,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN, ROLE_CONTRIBUTOR)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    store = DocumentStore(db, ctx.actor_email)
    tab = store.get_tab(ctx.project_id, ctx.tab_id)
    rows = store.fetch_columns(ctx.project_id, ctx.tab_id)
    return {"rows": [column_row(c) for c in rows], "total": len(rows), "schema_version": tab.schema_version}


@router.post("", status_code=201)
def create_column(
    project_id: str,
    tab_id: str,
    payload: ColumnCreate,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    store = DocumentStore(db, ctx.actor_email)
    notifier = Notifier()
    column = add_column(
        store,
        ctx,
        name=payload.name,
        data_type=payload.data_type,
        required_field=payload.required_field,
        identifier_domain=payload.identifier_domain,
        entry_options=payload.entry_options,
        notifier=notifier,
    )
    tab = store.get_tab(ctx.project_id, ctx.tab_id)
    return {"column": column_row(column), "schema_version": tab.schema_version, "notifications": notifier.messages}


@router.post("/save")
def save_columns(
    project_id: str,
    tab_id: str,
    payload: ColumnSaveRequest,
    db: Session = Depends(get_db),
    admin=Depends(require_role(ROLE_ADMIN)),
):
    ctx = workspace_or_400(db, project_id, tab_id, admin)
    store = DocumentStore(db, ctx.actor_email)
    notifier = Notifier()
    changes: dict[str, dict] = {}
    for item in payload.changes:
        fields = item.model_dump(exclude_unset=True)
        fields.pop("column_id", None)
        changes.setdefault(item.column_id, {}).update(fields)
    result = save_column_changes(
        store,
        ctx,
        changes,
        deletions=payload.deletions,
        notifier=notifier,
        expected_version=payload.expected_version,
    )
    return {
        "schema_version": result.schema_version,
        "columns": [column_row(c) for c in result.commit.columns],
        "renamed": dict(result.commit.renames),
        "deleted": list(result.commit.deleted_names),
        "patched_entries": result.patched_entries,
        "notifications": notifier.messages,
    }
