from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldday.core.errors import NotFoundError, PersistenceFailure, SchemaVersionConflict
from fieldday.db.session import DEFAULT_RESPONSIBLE
from fieldday.models.common import utcnow
from fieldday.models.entry import Entry
from fieldday.models.project import Project
from fieldday.models.tab import Tab
from fieldday.models.tab_column import TabColumn
from fieldday.services.column_registry import (
    ColumnDefinition,
    DataType,
    InvalidTypeError,
    identifier_column,
    normalize_options,
)
from fieldday.services.schema_propagation import EntryPatch

logger = logging.getLogger("fieldday.store")


def column_from_row(row: TabColumn) -> ColumnDefinition:
    try:
        data_type = DataType.parse(row.data_type)
    except InvalidTypeError:
        logger.warning("column_unknown_type tab_id=%s key=%s data_type=%s", row.tab_id, row.key, row.data_type)
        data_type = DataType.TEXT
    return ColumnDefinition(
        id=row.key,
        name=row.name,
        data_type=data_type,
        order=int(row.order or 0),
        required_field=bool(row.required_field),
        identifier_domain=bool(row.identifier_domain),
        entry_options=normalize_options(row.entry_options),
    )


def _matches_domain(data: Mapping[str, object], domain_field_values: Mapping[str, object]) -> bool:
    for name, expected in domain_field_values.items():
        actual = data.get(name)
        if actual is None or str(actual) != str(expected):
            return False
    return True


class DocumentStore:
    """Reads and atomic batch writes for one database session."""

    def __init__(self, db: Session, responsible: str | None = None):
        self.db = db
        self.responsible = str(responsible or "").strip() or DEFAULT_RESPONSIBLE

    def get_project(self, project_id: uuid.UUID) -> Project:
        project = self.db.get(Project, project_id)
        if project is None:
            raise NotFoundError("Project not found")
        return project

    def get_tab(self, project_id: uuid.UUID, tab_id: uuid.UUID) -> Tab:
        tab = self.db.get(Tab, tab_id)
        if tab is None or tab.project_id != project_id:
            raise NotFoundError("Tab not found")
        return tab

    def fetch_columns(self, project_id: uuid.UUID, tab_id: uuid.UUID) -> tuple[ColumnDefinition, ...]:
        tab = self.get_tab(project_id, tab_id)
        rows = (
            self.db.query(TabColumn)
            .filter(TabColumn.tab_id == tab.id)
            .order_by(TabColumn.order.asc(), TabColumn.key.asc())
            .all()
        )
        return tuple(column_from_row(row) for row in rows)

    def fetch_rows(self, project_id: uuid.UUID, tab_id: uuid.UUID, include_deleted: bool = True) -> list[Entry]:
        tab = self.get_tab(project_id, tab_id)
        q = self.db.query(Entry).filter(Entry.tab_id == tab.id)
        if not include_deleted:
            q = q.filter(Entry.deleted.is_(False))
        return q.order_by(Entry.entry_date.asc(), Entry.id.asc()).all()

    def fetch_used_identifiers(
        self,
        project_id: uuid.UUID,
        tab_id: uuid.UUID,
        domain_field_values: Mapping[str, object] | None,
    ) -> set[str]:
        """Identifiers of live entries whose domain values all equal the given ones."""
        id_column = identifier_column(self.fetch_columns(project_id, tab_id))
        if id_column is None:
            return set()
        domain = dict(domain_field_values or {})
        used: set[str] = set()
        for row in self.fetch_rows(project_id, tab_id, include_deleted=False):
            data = row.entry_data or {}
            if not _matches_domain(data, domain):
                continue
            value = str(data.get(id_column.name) or "").strip()
            if value:
                used.add(value)
        return used

    def _stage_columns(self, tab: Tab, updates: Sequence[ColumnDefinition], deletions: Iterable[str]) -> None:
        rows = {row.key: row for row in self.db.query(TabColumn).filter(TabColumn.tab_id == tab.id).all()}
        for column_id in deletions:
            row = rows.get(column_id)
            if row is not None:
                self.db.delete(row)
        for column in updates:
            row = rows.get(column.id)
            if row is None:
                row = TabColumn(tab_id=tab.id, key=column.id)
            row.name = column.name
            row.data_type = column.data_type.value
            row.order = column.order
            row.required_field = column.required_field
            row.identifier_domain = column.identifier_domain
            row.entry_options = list(column.entry_options)
            row.responsible = self.responsible
            self.db.add(row)

    def _stage_rows(self, tab: Tab, patches: Sequence[EntryPatch]) -> None:
        if not patches:
            return
        ids = [patch.entry_id for patch in patches]
        rows = {row.id: row for row in self.db.query(Entry).filter(Entry.tab_id == tab.id, Entry.id.in_(ids)).all()}
        for patch in patches:
            row = rows.get(patch.entry_id)
            if row is None:
                logger.warning("entry_patch_target_missing tab_id=%s entry_id=%s", tab.id, patch.entry_id)
                continue
            row.entry_data = dict(patch.entry_data)
            row.responsible = self.responsible
            self.db.add(row)

    def _bump_version(self, tab: Tab, expected_version: int | None) -> int:
        current = int(tab.schema_version)
        stmt = update(Tab).where(Tab.id == tab.id)
        if expected_version is not None:
            stmt = stmt.where(Tab.schema_version == int(expected_version))
        result = self.db.execute(
            stmt.values(schema_version=Tab.schema_version + 1, updated_at=utcnow()).execution_options(
                synchronize_session=False
            )
        )
        if result.rowcount != 1:
            self.db.rollback()
            if expected_version is None:
                raise NotFoundError("Tab not found")
            self.db.refresh(tab)
            raise SchemaVersionConflict(int(expected_version), int(tab.schema_version))
        return (int(expected_version) if expected_version is not None else current) + 1

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("store_commit_failed operation=%s error=%s", operation, exc.__class__.__name__)
            raise PersistenceFailure(operation, exc) from exc

    def save_entry(self, row: Entry, operation: str = "save entry") -> Entry:
        row.responsible = self.responsible
        self.db.add(row)
        self._commit(operation)
        self.db.refresh(row)
        return row

    def commit_column_batch(
        self,
        project_id: uuid.UUID,
        tab_id: uuid.UUID,
        updates: Sequence[ColumnDefinition],
        deletions: Sequence[str],
        expected_version: int | None = None,
    ) -> int:
        return self.commit_schema_batch(project_id, tab_id, updates, deletions, (), expected_version)

    def commit_row_batch(self, project_id: uuid.UUID, tab_id: uuid.UUID, patches: Sequence[EntryPatch]) -> int:
        tab = self.get_tab(project_id, tab_id)
        try:
            self._stage_rows(tab, patches)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceFailure("save entries", exc) from exc
        self._commit("save entries")
        return len(patches)

    def commit_schema_batch(
        self,
        project_id: uuid.UUID,
        tab_id: uuid.UUID,
        updates: Sequence[ColumnDefinition],
        deletions: Sequence[str],
        patches: Sequence[EntryPatch],
        expected_version: int | None = None,
    ) -> int:
        """Write column updates, column deletions and entry patches in one transaction.

        Returns the tab's new schema version.
        """
        tab = self.get_tab(project_id, tab_id)
        try:
            version = self._bump_version(tab, expected_version)
            self._stage_columns(tab, updates, deletions)
            self._stage_rows(tab, patches)
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceFailure("save column changes", exc) from exc
        self._commit("save column changes")
        logger.info(
            "schema_batch_committed tab_id=%s version=%s updated=%s deleted=%s rows=%s",
            tab.id,
            version,
            len(updates),
            len(deletions),
            len(patches),
        )
        return version
