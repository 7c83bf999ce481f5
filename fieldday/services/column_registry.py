from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any

from fieldday.core.errors import ValidationError

logger = logging.getLogger("fieldday.columns")

ACTIONS_COLUMN_ID = "actions"
DATETIME_COLUMN_ID = "datetime"
IDENTIFIER_COLUMN_ID = "identifier"
SYSTEM_COLUMN_IDS = frozenset({ACTIONS_COLUMN_ID, DATETIME_COLUMN_ID, IDENTIFIER_COLUMN_ID})
IDENTIFIER_COLUMN_NAME = "Entry ID"

DELETE_MARKER = "DELETE"
EDITABLE_FIELDS = frozenset({"name", "order", "data_type", "required_field", "identifier_domain", "entry_options"})
# Placeholder row the option editor keeps at the end of its list.
OPTION_EDITOR_PLACEHOLDER = "Add Here"


class DataType(str, Enum):
    NUMBER = "number"
    WHOLE_NUMBER = "wholeNumber"
    DECIMAL_NUMBER = "decimalNumber"
    DATE = "date"
    TEXT = "text"
    MULTIPLE_CHOICE = "multipleChoice"
    AUTO_ID = "autoId"

    @classmethod
    def parse(cls, value: Any) -> "DataType":
        if isinstance(value, cls):
            return value
        raw = str(value or "").strip()
        try:
            return cls(raw)
        except ValueError:
            pass
        legacy = _LEGACY_TYPE_LABELS.get(raw.lower())
        if legacy is None:
            raise InvalidTypeError(f'Unknown column type "{raw}"')
        return legacy


_LEGACY_TYPE_LABELS = {
    "multiple choice": DataType.MULTIPLE_CHOICE,
    "multiple choice entry": DataType.MULTIPLE_CHOICE,
    "numerical entry": DataType.NUMBER,
    "text entry": DataType.TEXT,
    "whole number": DataType.WHOLE_NUMBER,
    "decimal number": DataType.DECIMAL_NUMBER,
    "auto id": DataType.AUTO_ID,
}


class SchemaValidationError(ValidationError):
    kind = "schema_validation"


class DuplicateOrderError(SchemaValidationError):
    kind = "duplicate_order"


class InvalidOrderError(SchemaValidationError):
    kind = "invalid_order"


class InvalidOptionsError(SchemaValidationError):
    kind = "invalid_options"


class DuplicateNameError(SchemaValidationError):
    kind = "duplicate_name"


class EmptyNameError(SchemaValidationError):
    kind = "empty_name"


class InvalidTypeError(SchemaValidationError):
    kind = "invalid_type"


class UnknownColumnError(SchemaValidationError):
    kind = "unknown_column"


class UnknownFieldError(SchemaValidationError):
    kind = "unknown_field"


@dataclass(frozen=True)
class ColumnDefinition:
    id: str
    name: str
    data_type: DataType = DataType.TEXT
    order: int = 0
    required_field: bool = False
    identifier_domain: bool = False
    entry_options: tuple[str, ...] = ()

    @property
    def is_system(self) -> bool:
        return self.id in SYSTEM_COLUMN_IDS

    def as_document(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "data_type": self.data_type.value,
            "order": self.order,
            "required_field": self.required_field,
            "identifier_domain": self.identifier_domain,
            "entry_options": list(self.entry_options),
        }


@dataclass
class StagedChanges:
    fields: dict[str, dict[str, Any]] = field(default_factory=dict)
    deletions: set[str] = field(default_factory=set)

    def __bool__(self) -> bool:
        return bool(self.fields) or bool(self.deletions)


@dataclass(frozen=True)
class SchemaCommit:
    updates: tuple[ColumnDefinition, ...]
    deletions: tuple[str, ...]
    renames: Mapping[str, str]
    deleted_names: tuple[str, ...]
    columns: tuple[ColumnDefinition, ...]

    @property
    def is_empty(self) -> bool:
        return not self.updates and not self.deletions


def _as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value or "").strip().lower()
    return text in {"1", "true", "yes", "y"}


def _as_order(column: ColumnDefinition, value: Any) -> int:
    try:
        order = int(value)
    except (TypeError, ValueError):
        raise InvalidOrderError(f'Column "{column.name}" has an invalid order "{value}"')
    if order < 1:
        raise InvalidOrderError(f'Column "{column.name}" must have an order of 1 or more')
    return order


def normalize_options(options: Iterable[Any] | None) -> tuple[str, ...]:
    cleaned = []
    for option in options or ():
        text = str(option if option is not None else "").strip()
        if text and text != OPTION_EDITOR_PLACEHOLDER:
            cleaned.append(text)
    return tuple(cleaned)


def _apply_changes(column: ColumnDefinition, changes: Mapping[str, Any]) -> ColumnDefinition:
    unknown = sorted(set(changes) - EDITABLE_FIELDS)
    if unknown:
        raise UnknownFieldError(f'Column "{column.name}" has no editable field {", ".join(unknown)}')

    updated = column
    if "name" in changes:
        updated = replace(updated, name=str(changes["name"] or "").strip())
    if "order" in changes:
        updated = replace(updated, order=_as_order(column, changes["order"]))
    if "data_type" in changes:
        updated = replace(updated, data_type=DataType.parse(changes["data_type"]))
    if "required_field" in changes:
        updated = replace(updated, required_field=_as_bool(changes["required_field"]))
    if "identifier_domain" in changes:
        updated = replace(updated, identifier_domain=_as_bool(changes["identifier_domain"]))
    if "entry_options" in changes:
        updated = replace(updated, entry_options=normalize_options(changes["entry_options"]))
    if updated.data_type is not DataType.MULTIPLE_CHOICE and updated.entry_options:
        updated = replace(updated, entry_options=())
    return updated


def _check_column(column: ColumnDefinition) -> None:
    if not column.name:
        raise EmptyNameError(f'Column "{column.id}" needs a name')
    if column.data_type is DataType.AUTO_ID:
        raise InvalidTypeError(f'Column "{column.name}" cannot use the generated identifier type')
    if column.data_type is DataType.MULTIPLE_CHOICE:
        if not column.entry_options:
            raise InvalidOptionsError(f'Column "{column.name}" needs at least one choice')
        repeated = sorted(option for option, count in Counter(column.entry_options).items() if count > 1)
        if repeated:
            raise InvalidOptionsError(f'Column "{column.name}" repeats choices: {", ".join(repeated)}')


def _check_unique(columns: list[ColumnDefinition], system: list[ColumnDefinition]) -> None:
    by_order: dict[int, list[str]] = {}
    for column in columns:
        by_order.setdefault(column.order, []).append(column.name)
    clashes = {order: names for order, names in by_order.items() if len(names) > 1}
    if clashes:
        order, names = min(clashes.items())
        raise DuplicateOrderError(f'Columns {", ".join(names)} share position {order}')

    by_name: dict[str, list[str]] = {}
    for column in columns:
        by_name.setdefault(column.name.casefold(), []).append(column.name)
    repeated = [names[0] for names in by_name.values() if len(names) > 1]
    if repeated:
        raise DuplicateNameError(f'Column name "{repeated[0]}" is used more than once')

    reserved = {column.name.casefold(): column.name for column in system}
    for column in columns:
        if column.name.casefold() in reserved:
            owner = reserved[column.name.casefold()]
            raise DuplicateNameError(f'Column name "{column.name}" is reserved for the "{owner}" system column')


def validate_and_commit(all_columns: Iterable[ColumnDefinition], staged: StagedChanges) -> SchemaCommit:
    """Validate staged column edits against a snapshot and compute the batch to write.

    Raises a ``SchemaValidationError`` subclass when the edits cannot be
    committed; nothing is returned in that case.
    """
    snapshot = {column.id: column for column in all_columns}
    touched = set(staged.fields) | set(staged.deletions)
    ignored = sorted(touched & SYSTEM_COLUMN_IDS)
    if ignored:
        logger.debug("schema_commit_ignored_system_columns ids=%s", ",".join(ignored))
    unknown = sorted(column_id for column_id in touched - SYSTEM_COLUMN_IDS if column_id not in snapshot)
    if unknown:
        raise UnknownColumnError(f'Unknown column id {", ".join(unknown)}')

    deletions = {column_id for column_id in staged.deletions if column_id not in SYSTEM_COLUMN_IDS}
    survivors: list[ColumnDefinition] = []
    for column in snapshot.values():
        if column.is_system or column.id in deletions:
            continue
        updated = _apply_changes(column, staged.fields.get(column.id, {}))
        _check_column(updated)
        survivors.append(updated)

    system = [column for column in snapshot.values() if column.is_system]
    _check_unique(survivors, system)

    survivors.sort(key=lambda column: column.order)
    survivors = [replace(column, order=position) for position, column in enumerate(survivors, start=1)]

    updates = tuple(column for column in survivors if column != snapshot[column.id])
    renames = {
        snapshot[column.id].name: column.name for column in survivors if column.name != snapshot[column.id].name
    }
    deleted = sorted((snapshot[column_id] for column_id in deletions), key=lambda column: column.order)
    return SchemaCommit(
        updates=updates,
        deletions=tuple(column.id for column in deleted),
        renames=renames,
        deleted_names=tuple(column.name for column in deleted),
        columns=tuple(sorted(system + survivors, key=lambda column: column.order)),
    )


def next_order(columns: Iterable[ColumnDefinition]) -> int:
    orders = [column.order for column in columns if not column.is_system]
    return max(orders, default=0) + 1


def identifier_domain_names(columns: Iterable[ColumnDefinition]) -> list[str]:
    return [
        column.name
        for column in sorted(columns, key=lambda column: column.order)
        if column.identifier_domain and not column.is_system and column.data_type is not DataType.AUTO_ID
    ]


def identifier_column(columns: Iterable[ColumnDefinition]) -> ColumnDefinition | None:
    for column in columns:
        if column.id == IDENTIFIER_COLUMN_ID or column.data_type is DataType.AUTO_ID:
            return column
    return None


class ColumnSchemaRegistry:
    """Column definitions of one tab plus the edits staged against them."""

    def __init__(self, columns: Iterable[ColumnDefinition]):
        self._columns = tuple(sorted(columns, key=lambda column: column.order))
        self._staged = StagedChanges()

    @property
    def columns(self) -> tuple[ColumnDefinition, ...]:
        return self._columns

    @property
    def editable_columns(self) -> tuple[ColumnDefinition, ...]:
        return tuple(column for column in self._columns if not column.is_system)

    @property
    def staged(self) -> StagedChanges:
        return self._staged

    def propose_change(self, column_id: str, field_name: str, value: Any) -> None:
        if field_name == "order" and str(value).strip().upper() == DELETE_MARKER:
            self.mark_for_deletion(column_id)
            return
        if field_name == "order":
            self._staged.deletions.discard(column_id)
        self._staged.fields.setdefault(column_id, {})[field_name] = value

    def mark_for_deletion(self, column_id: str) -> None:
        self._staged.deletions.add(column_id)

    def restore(self, column_id: str) -> None:
        self._staged.deletions.discard(column_id)

    def commit(self) -> SchemaCommit:
        return validate_and_commit(self._columns, self._staged)
