from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from fieldday.core.context import WorkspaceContext
from fieldday.core.errors import ConflictError, PersistenceFailure
from fieldday.services.column_registry import (
    ColumnDefinition,
    ColumnSchemaRegistry,
    DataType,
    SchemaCommit,
    SchemaValidationError,
    StagedChanges,
    next_order,
    normalize_options,
    validate_and_commit,
)
from fieldday.services.document_store import DocumentStore
from fieldday.services.notifier import Notifier
from fieldday.services.schema_propagation import propagate_schema_changes

logger = logging.getLogger("fieldday.columns")


@dataclass(frozen=True)
class ColumnSaveResult:
    schema_version: int
    commit: SchemaCommit
    patched_entries: int


def save_column_changes(
    store: DocumentStore,
    ctx: WorkspaceContext,
    changes: Mapping[str, Mapping[str, Any]],
    deletions: Iterable[str] = (),
    notifier: Notifier | None = None,
    expected_version: int | None = None,
) -> ColumnSaveResult:
    """Validate staged column edits, rewrite affected entries and commit both together.

    ``changes`` maps column id to the fields being edited. Row patches are
    computed from the same column snapshot the edits were validated against,
    before anything is written.
    """
    notifier = notifier or Notifier()
    tab = store.get_tab(ctx.project_id, ctx.tab_id)
    registry = ColumnSchemaRegistry(store.fetch_columns(ctx.project_id, ctx.tab_id))
    for column_id, fields in changes.items():
        for field_name, value in fields.items():
            registry.propose_change(column_id, field_name, value)
    for column_id in deletions:
        registry.mark_for_deletion(column_id)

    try:
        commit = registry.commit()
    except SchemaValidationError as exc:
        logger.info("schema_commit_rejected tab_id=%s kind=%s", tab.id, exc.kind)
        notifier.error(str(exc))
        raise

    if commit.is_empty:
        notifier.info("No column changes to save")
        return ColumnSaveResult(schema_version=int(tab.schema_version), commit=commit, patched_entries=0)

    rows = store.fetch_rows(ctx.project_id, ctx.tab_id, include_deleted=True)
    patches = propagate_schema_changes(commit.renames, commit.deleted_names, rows)
    try:
        version = store.commit_schema_batch(
            ctx.project_id,
            ctx.tab_id,
            commit.updates,
            commit.deletions,
            patches,
            expected_version=expected_version,
        )
    except (ConflictError, PersistenceFailure) as exc:
        notifier.error(str(exc))
        raise

    notifier.success("Column changes saved successfully")
    return ColumnSaveResult(schema_version=version, commit=commit, patched_entries=len(patches))


def add_column(
    store: DocumentStore,
    ctx: WorkspaceContext,
    *,
    name: str,
    data_type: Any = DataType.TEXT,
    required_field: bool = False,
    identifier_domain: bool = False,
    entry_options: Iterable[Any] = (),
    notifier: Notifier | None = None,
) -> ColumnDefinition:
    """Append a column after the existing ones and persist it."""
    notifier = notifier or Notifier()
    existing = store.fetch_columns(ctx.project_id, ctx.tab_id)
    try:
        column = ColumnDefinition(
            id=uuid.uuid4().hex,
            name=str(name or "").strip(),
            data_type=DataType.parse(data_type),
            order=next_order(existing),
            required_field=bool(required_field),
            identifier_domain=bool(identifier_domain),
            entry_options=normalize_options(entry_options),
        )
        commit = validate_and_commit(existing + (column,), StagedChanges())
    except SchemaValidationError as exc:
        notifier.error(str(exc))
        raise

    originals = {item.id: item for item in existing}
    updates = tuple(item for item in commit.columns if not item.is_system and originals.get(item.id) != item)
    store.commit_column_batch(ctx.project_id, ctx.tab_id, updates, ())
    notifier.success(f'Column "{column.name}" added')
    return next(item for item in commit.columns if item.id == column.id)
