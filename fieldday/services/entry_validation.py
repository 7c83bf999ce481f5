from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from fieldday.core.errors import ValidationError
from fieldday.services.column_registry import ColumnDefinition, DataType
from fieldday.services.identifier_allocator import SELECT_PLACEHOLDER

ENTRY_DATETIME_FORMAT = "%Y/%m/%d %H:%M:%S"
_ENTRY_DATETIME_RE = re.compile(r"^\d{4}/\d{2}/\d{2} \d{2}:\d{2}:\d{2}$")


class EntryValidationError(ValidationError):
    kind = "entry_validation"

    def __init__(self, message: str, column: str | None = None):
        self.column = column
        super().__init__(message)


def format_entry_datetime(value: datetime) -> str:
    return value.strftime(ENTRY_DATETIME_FORMAT)


def _is_missing_value(value) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def _data_columns(columns: Iterable[ColumnDefinition]) -> list[ColumnDefinition]:
    return [
        column
        for column in sorted(columns, key=lambda column: column.order)
        if not column.is_system and column.data_type is not DataType.AUTO_ID
    ]


def _as_decimal(column: ColumnDefinition, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise EntryValidationError(f'The field "{column.name}" must be a valid number.', column.name)
    if isinstance(value, (int, float, Decimal)):
        return Decimal(str(value))
    try:
        number = Decimal(str(value).strip().replace(",", "."))
    except InvalidOperation:
        raise EntryValidationError(f'The field "{column.name}" must be a valid number.', column.name)
    if not number.is_finite():
        raise EntryValidationError(f'The field "{column.name}" must be a valid number.', column.name)
    return number


def _check_number(column: ColumnDefinition, value: Any) -> None:
    _as_decimal(column, value)


def _check_whole_number(column: ColumnDefinition, value: Any) -> None:
    number = _as_decimal(column, value)
    if number != number.to_integral_value():
        raise EntryValidationError(f'The field "{column.name}" must be a whole number.', column.name)


def _check_date(column: ColumnDefinition, value: Any) -> None:
    text = str(value).strip()
    if not _ENTRY_DATETIME_RE.match(text):
        raise EntryValidationError(
            f'The field "{column.name}" must be in the format YYYY/MM/DD HH:MM:SS.', column.name
        )
    try:
        datetime.strptime(text, ENTRY_DATETIME_FORMAT)
    except ValueError:
        raise EntryValidationError(f'The field "{column.name}" is not a real date.', column.name)


def _check_text(column: ColumnDefinition, value: Any) -> None:
    if isinstance(value, (dict, list)):
        raise EntryValidationError(f'The field "{column.name}" must be plain text.', column.name)


def _check_choice(column: ColumnDefinition, value: Any) -> None:
    if str(value) not in column.entry_options:
        raise EntryValidationError(f'Please select a valid option for "{column.name}".', column.name)


def _check_generated(column: ColumnDefinition, value: Any) -> None:
    return None


_CHECKS = {
    DataType.NUMBER: _check_number,
    DataType.WHOLE_NUMBER: _check_whole_number,
    DataType.DECIMAL_NUMBER: _check_number,
    DataType.DATE: _check_date,
    DataType.TEXT: _check_text,
    DataType.MULTIPLE_CHOICE: _check_choice,
    DataType.AUTO_ID: _check_generated,
}
if set(_CHECKS) != set(DataType):
    raise RuntimeError("entry value checks must cover every column type")


def default_entry_values(columns: Iterable[ColumnDefinition], now: datetime) -> dict[str, str]:
    defaults: dict[str, str] = {}
    for column in _data_columns(columns):
        if column.data_type is DataType.DATE:
            defaults[column.name] = format_entry_datetime(now)
        elif column.data_type is DataType.MULTIPLE_CHOICE:
            defaults[column.name] = SELECT_PLACEHOLDER
        else:
            defaults[column.name] = ""
    return defaults


def unknown_keys(columns: Iterable[ColumnDefinition], values: Mapping[str, Any]) -> list[str]:
    names = {column.name for column in columns}
    return sorted(key for key in values if key not in names)


def clean_entry_values(columns: Iterable[ColumnDefinition], values: Mapping[str, Any]) -> dict[str, Any]:
    """Drop the unselected-choice placeholder so optional choices are stored empty."""
    choice_names = {column.name for column in columns if column.data_type is DataType.MULTIPLE_CHOICE}
    return {
        key: ("" if key in choice_names and value == SELECT_PLACEHOLDER else value)
        for key, value in values.items()
    }


def validate_entry_values(columns: Iterable[ColumnDefinition], values: Mapping[str, Any]) -> None:
    columns = tuple(columns)
    unknown = unknown_keys(columns, values)
    if unknown:
        raise EntryValidationError(f'Unknown fields: {", ".join(unknown)}')
    for column in _data_columns(columns):
        value = values.get(column.name)
        if column.data_type is DataType.MULTIPLE_CHOICE and value == SELECT_PLACEHOLDER:
            value = None
        if _is_missing_value(value):
            if column.required_field:
                if column.data_type is DataType.MULTIPLE_CHOICE:
                    raise EntryValidationError(f'Please select a valid option for "{column.name}".', column.name)
                raise EntryValidationError(f'The field "{column.name}" is required.', column.name)
            continue
        _CHECKS[column.data_type](column, value)
