from __future__ import annotations

from collections.abc import Collection, Iterable, Mapping, Sequence

from fieldday.services.code_space import join_tokens, parse_tokens, token_letter

NO_CODES_AVAILABLE = "No codes available"
INCOMPLETE_DOMAIN_GENERIC = "Fill in the identifier fields to generate an ID"
SELECT_PLACEHOLDER = "Select"


def incomplete_domain_message(missing_fields: Sequence[str]) -> str:
    names = [str(name).strip() for name in missing_fields if str(name or "").strip()]
    if not names:
        return INCOMPLETE_DOMAIN_GENERIC
    return f"Fill in {', '.join(names)} to generate an ID"


def is_placeholder(value: str | None) -> bool:
    text = str(value or "")
    if not text:
        return True
    return text == NO_CODES_AVAILABLE or text == INCOMPLETE_DOMAIN_GENERIC or (
        text.startswith("Fill in ") and text.endswith(" to generate an ID")
    )


def is_missing_domain_value(value) -> bool:
    if value is None:
        return True
    text = str(value).strip()
    return not text or text == SELECT_PLACEHOLDER


def missing_domain_fields(domain_columns: Iterable[str], values: Mapping[str, object] | None) -> list[str]:
    payload = values if isinstance(values, Mapping) else {}
    return [name for name in domain_columns if is_missing_domain_value(payload.get(name))]


def allocate(
    desired_id: str | None,
    used_identifiers: Collection[str],
    candidates: Sequence[str],
    required_fields_complete: bool = True,
    missing_fields: Sequence[str] = (),
) -> str:
    """Pick the entry identifier for a row.

    Returns ``desired_id`` unchanged when it is free. Otherwise scans
    ``candidates`` in order, skipping any that reuse a letter already present
    in ``desired_id``, merges the remaining tokens onto the desired ones and
    returns the first merged identifier not in ``used_identifiers``.

    Two outcomes come back as text rather than exceptions: the incomplete
    domain placeholder when ``required_fields_complete`` is false, and
    ``NO_CODES_AVAILABLE`` when every candidate is taken.
    """
    if not required_fields_complete or missing_fields:
        return incomplete_domain_message(missing_fields)

    desired = str(desired_id or "").strip()
    used = used_identifiers if isinstance(used_identifiers, (set, frozenset)) else set(used_identifiers)
    if desired and desired not in used:
        return desired

    desired_tokens = parse_tokens(desired)
    taken_letters = {token_letter(token) for token in desired_tokens}
    for option in candidates:
        option_tokens = parse_tokens(option)
        if not option_tokens:
            continue
        if any(token_letter(token) in taken_letters for token in option_tokens):
            continue
        merged = join_tokens(desired_tokens + option_tokens)
        if merged not in used:
            return merged
    return NO_CODES_AVAILABLE
