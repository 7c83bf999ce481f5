"""Combinatorial code space for generated entry identifiers.

A code token is one letter and one number (``B7``). An identifier is one or
more tokens with pairwise distinct letters, written in letter order and joined
with ``-`` (``A2-C10``). The space for a tab is bounded by its max letter and
max number; unwanted codes are removed by exact token match.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Iterator

from fieldday.core.errors import CapacityExceeded, ValidationError

LETTERS = "ABCDEFGHIJ"
MAX_NUMBER = 10
MAX_CANDIDATE_POOL = 22000
SEPARATOR = "-"

_TOKEN_RE = re.compile(r"[A-Z]+[0-9]+")

logger = logging.getLogger("fieldday.identifiers")


class InvalidCodeSpace(ValidationError):
    kind = "invalid_code_space"


def _letters_up_to(max_letter: str) -> str:
    letter = str(max_letter or "").strip().upper()
    if len(letter) != 1 or letter not in LETTERS:
        raise InvalidCodeSpace(f'Max letter must be one of {LETTERS[0]}..{LETTERS[-1]}, got "{max_letter}"')
    return LETTERS[: LETTERS.index(letter) + 1]


def _checked_number(max_number: int) -> int:
    try:
        number = int(max_number)
    except (TypeError, ValueError):
        raise InvalidCodeSpace(f'Max number must be an integer, got "{max_number}"')
    if not 1 <= number <= MAX_NUMBER:
        raise InvalidCodeSpace(f"Max number must be between 1 and {MAX_NUMBER}, got {number}")
    return number


def base_tokens(max_letter: str, max_number: int) -> tuple[str, ...]:
    letters = _letters_up_to(max_letter)
    number = _checked_number(max_number)
    return tuple(f"{letter}{n}" for letter in letters for n in range(1, number + 1))


def pool_size(max_letter: str, max_number: int) -> int:
    """Number of candidates the space holds before any blocklist filtering."""
    letters = _letters_up_to(max_letter)
    number = _checked_number(max_number)
    return (number + 1) ** len(letters) - 1


def normalize_blocklist(blocklist: Iterable[str] | None) -> frozenset[str]:
    return frozenset(str(code).strip().upper() for code in (blocklist or ()) if str(code or "").strip())


def token_letter(token: str) -> str:
    return token.rstrip("0123456789")


def token_number(token: str) -> int:
    return int(token[len(token_letter(token)):])


def parse_tokens(text: str | None) -> list[str]:
    return _TOKEN_RE.findall(str(text or "").upper())


def join_tokens(tokens: Iterable[str]) -> str:
    return SEPARATOR.join(sorted(tokens, key=lambda token: (token_letter(token), token_number(token))))


def _walk(letters: str, number: int, max_letter: str) -> Iterator[tuple[str, ...]]:
    # Depth first: a token is emitted before the identifiers that extend it
    # with tokens of later letters.
    stack: list[tuple[tuple[str, ...], int]] = [((), 0)]
    generated = 0
    while stack:
        prefix, next_letter = stack.pop()
        if prefix:
            generated += 1
            if generated > MAX_CANDIDATE_POOL:
                logger.warning(
                    "identifier_pool_capacity_exceeded max_letter=%s max_number=%s limit=%s",
                    max_letter,
                    number,
                    MAX_CANDIDATE_POOL,
                )
                raise CapacityExceeded(MAX_CANDIDATE_POOL, max_letter, number)
            yield prefix
        children = [
            (prefix + (f"{letters[index]}{n}",), index + 1)
            for index in range(next_letter, len(letters))
            for n in range(1, number + 1)
        ]
        stack.extend(reversed(children))


def _collect(max_letter: str, max_number: int, blocklist: Iterable[str] | None, *, blocked_only: bool) -> tuple[str, ...]:
    letters = _letters_up_to(max_letter)
    number = _checked_number(max_number)
    blocked = normalize_blocklist(blocklist)
    kept = []
    for tokens in _walk(letters, number, letters[-1]):
        hit = any(token in blocked for token in tokens)
        if hit == blocked_only:
            kept.append(SEPARATOR.join(tokens))
    return tuple(kept)


def generate_candidates(max_letter: str, max_number: int, blocklist: Iterable[str] | None = ()) -> tuple[str, ...]:
    """All identifiers of the space that contain no blocklisted token, in generation order.

    Raises ``CapacityExceeded`` once more than ``MAX_CANDIDATE_POOL`` candidates
    have been generated, whether or not they would survive the blocklist.
    """
    candidates = _collect(max_letter, max_number, blocklist, blocked_only=False)
    logger.debug(
        "identifier_candidates_generated max_letter=%s max_number=%s blocked=%s count=%s",
        max_letter,
        max_number,
        len(normalize_blocklist(blocklist)),
        len(candidates),
    )
    return candidates


def generate_blocked_candidates(max_letter: str, max_number: int, blocklist: Iterable[str] | None) -> tuple[str, ...]:
    """The complement of ``generate_candidates``: identifiers holding at least one blocklisted token."""
    if not normalize_blocklist(blocklist):
        return ()
    return _collect(max_letter, max_number, blocklist, blocked_only=True)
