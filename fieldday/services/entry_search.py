from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from fieldday.schemas.universal import Page, SortClause

ENTRY_DATE_FIELD = "entry_date"


def search_terms(query: str | None) -> list[str]:
    return [term.strip() for term in str(query or "").lower().split("+") if term.strip()]


def entry_matches(entry: Any, terms: Sequence[str]) -> bool:
    values = [str(value).lower() for value in (entry.entry_data or {}).values() if value is not None]
    return any(term in value for term in terms for value in values)


def filter_entries_by_search(entries: Sequence[Any], query: str | None) -> list[Any]:
    """Entries whose data contains any ``+``-separated term, case-insensitively."""
    terms = search_terms(query)
    if not terms:
        return list(entries)
    return [entry for entry in entries if entry_matches(entry, terms)]


def _sort_value(entry: Any, field: str):
    if field == ENTRY_DATE_FIELD:
        value = entry.entry_date
    else:
        value = (entry.entry_data or {}).get(field)
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return (0, Decimal(str(value.timestamp())), "")
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        return (0, Decimal(str(value)), "")
    text = str(value)
    try:
        number = Decimal(text.strip().replace(",", "."))
    except InvalidOperation:
        return (1, Decimal(0), text.lower())
    if not number.is_finite():
        return (1, Decimal(0), text.lower())
    return (0, number, "")


def sort_entries(entries: Sequence[Any], sort: Sequence[SortClause]) -> list[Any]:
    """Stable multi-key sort; numbers before text, empty values last in either direction."""
    ordered = list(entries)
    for clause in reversed(list(sort)):
        present = [entry for entry in ordered if _sort_value(entry, clause.field) is not None]
        empty = [entry for entry in ordered if _sort_value(entry, clause.field) is None]
        present.sort(key=lambda entry: _sort_value(entry, clause.field), reverse=clause.dir == "desc")
        ordered = present + empty
    return ordered


def paginate(entries: Sequence[Any], page: Page) -> list[Any]:
    offset = max(int(page.offset), 0)
    return list(entries[offset : offset + max(int(page.limit), 0)])
