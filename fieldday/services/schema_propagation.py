"""Rewrite entry data after column renames and deletions.

Rows are anything with ``id`` and ``entry_data`` attributes: ORM entries or
plain records. Patches carry the complete new data map for a row; rows whose
data would not change get no patch.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class EntryPatch:
    entry_id: Any
    entry_data: dict[str, Any]


def remap_entry_data(
    data: Mapping[str, Any] | None,
    renames: Mapping[str, str],
    deleted_names: Iterable[str] = (),
) -> dict[str, Any]:
    """One pass over a row's data: drop deleted keys, move renamed keys.

    Every key is looked up in the original mapping only, so ``A->B, B->C``
    moves ``A`` to ``B`` and ``B`` to ``C``. A renamed value replaces a stale
    key that already holds the new name.
    """
    deleted = set(deleted_names)
    kept: dict[str, Any] = {}
    moved: dict[str, Any] = {}
    for key, value in (data or {}).items():
        if key in renames:
            moved[renames[key]] = value
        elif key not in deleted:
            kept[key] = value
    kept.update(moved)
    return kept


def propagate_schema_changes(
    renames: Mapping[str, str],
    deleted_names: Iterable[str],
    rows: Iterable[Any],
) -> tuple[EntryPatch, ...]:
    renames = {old: new for old, new in renames.items() if old != new}
    deleted = tuple(deleted_names)
    if not renames and not deleted:
        return ()
    patches = []
    for row in rows:
        current = dict(row.entry_data or {})
        updated = remap_entry_data(current, renames, deleted)
        if updated != current:
            patches.append(EntryPatch(entry_id=row.id, entry_data=updated))
    return tuple(patches)


def propagate_rename(old_name: str, new_name: str, rows: Iterable[Any]) -> tuple[EntryPatch, ...]:
    return propagate_schema_changes({old_name: new_name}, (), rows)


def propagate_deletion(column_name: str, rows: Iterable[Any]) -> tuple[EntryPatch, ...]:
    return propagate_schema_changes({}, (column_name,), rows)
