from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from fieldday.core.context import WorkspaceContext
from fieldday.core.errors import ValidationError
from fieldday.services.code_space import generate_blocked_candidates, generate_candidates
from fieldday.services.column_registry import ColumnDefinition, identifier_domain_names
from fieldday.services.document_store import DocumentStore
from fieldday.services.identifier_allocator import NO_CODES_AVAILABLE, allocate, is_placeholder, missing_domain_fields
from fieldday.services.notifier import Notifier

logger = logging.getLogger("fieldday.identifiers")

STATUS_OK = "ok"
STATUS_INCOMPLETE = "incomplete"
STATUS_EXHAUSTED = "exhausted"


class IdentifierGenerationDisabled(ValidationError):
    kind = "identifier_generation_disabled"


class PlaceholderIdentifierError(ValidationError):
    kind = "placeholder_identifier"


@dataclass(frozen=True)
class IdentifierResult:
    identifier: str
    status: str

    @property
    def ok(self) -> bool:
        return self.status == STATUS_OK


def domain_values_for(columns: tuple[ColumnDefinition, ...], entry_data: Mapping[str, object] | None) -> dict[str, str]:
    data = entry_data if isinstance(entry_data, Mapping) else {}
    return {name: str(data[name]) for name in identifier_domain_names(columns) if data.get(name) is not None}


def generate_entry_identifier(
    store: DocumentStore,
    ctx: WorkspaceContext,
    desired_id: str | None = None,
    entry_data: Mapping[str, object] | None = None,
    notifier: Notifier | None = None,
) -> IdentifierResult:
    """Validate ``desired_id`` or pick a fresh identifier for an entry of the context's tab.

    Tab settings, columns and used identifiers are read on every call.
    ``CapacityExceeded`` from the code space propagates to the caller.
    """
    notifier = notifier or Notifier()
    tab = store.get_tab(ctx.project_id, ctx.tab_id)
    if not tab.generate_unique_identifier:
        raise IdentifierGenerationDisabled(f'Tab "{tab.tab_name}" does not generate identifiers')
    desired = str(desired_id or "").strip()
    if desired and is_placeholder(desired):
        raise PlaceholderIdentifierError(f'"{desired}" is not a usable Entry ID')

    columns = store.fetch_columns(ctx.project_id, ctx.tab_id)
    missing = missing_domain_fields(identifier_domain_names(columns), entry_data)
    if missing:
        return IdentifierResult(allocate(desired, (), (), False, missing), STATUS_INCOMPLETE)

    used = store.fetch_used_identifiers(ctx.project_id, ctx.tab_id, domain_values_for(columns, entry_data))
    if desired and desired not in used:
        return IdentifierResult(desired, STATUS_OK)

    candidates = generate_candidates(tab.identifier_max_letter, tab.identifier_max_number, tab.unwanted_codes)
    identifier = allocate(desired, used, candidates)
    if identifier == NO_CODES_AVAILABLE and tab.utilize_unwanted:
        fallback = generate_blocked_candidates(tab.identifier_max_letter, tab.identifier_max_number, tab.unwanted_codes)
        identifier = allocate(desired, used, fallback)
        if identifier != NO_CODES_AVAILABLE:
            logger.info("identifier_from_unwanted_codes tab_id=%s identifier=%s", tab.id, identifier)

    if identifier == NO_CODES_AVAILABLE:
        logger.warning("identifier_pool_exhausted tab_id=%s used=%s", tab.id, len(used))
        notifier.error(f'{NO_CODES_AVAILABLE} for "{tab.tab_name}"; widen the letter or number range')
        return IdentifierResult(identifier, STATUS_EXHAUSTED)
    return IdentifierResult(identifier, STATUS_OK)
