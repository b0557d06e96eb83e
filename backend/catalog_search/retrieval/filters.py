"""Lexical required-token filtering."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Sequence, TypeVar

from catalog_search.core.logging import get_logger
from catalog_search.models.entities import SourceRecord
from catalog_search.utils.text import build_token_set, extract_meaningful_tokens, missing_tokens, token_has_digit

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass(slots=True)
class FilterOutcome(Generic[T]):
    candidates: list[T]
    fallback: bool


def required_tokens(query: str, vocabulary: frozenset[str]) -> list[str]:
    """Query tokens that must appear verbatim: anything with a digit or a known vocabulary term."""
    return [
        token
        for token in extract_meaningful_tokens(query)
        if token_has_digit(token) or token in vocabulary
    ]


def record_tokens(record: SourceRecord) -> set[str]:
    return build_token_set(record.text_fields())


def filter_by_tokens(
    candidates: Sequence[T],
    required: Sequence[str],
    record_of: Callable[[T], SourceRecord],
) -> FilterOutcome[T]:
    """Keep candidates containing every required token.

    When that would leave nothing, the unfiltered candidates are returned
    with ``fallback=True``; an empty ``required`` keeps everything.
    """
    if not required or not candidates:
        return FilterOutcome(candidates=list(candidates), fallback=False)
    kept: list[T] = []
    for candidate in candidates:
        record = record_of(candidate)
        missing = missing_tokens(record_tokens(record), required)
        if missing:
            logger.debug("Filtering out record %s (%s); missing tokens: %s", record.id, record.title, missing)
            continue
        kept.append(candidate)
    if kept:
        return FilterOutcome(candidates=kept, fallback=False)
    logger.info("Token filtering removed all %s candidates, keeping similarity order", len(candidates))
    return FilterOutcome(candidates=list(candidates), fallback=True)


__all__ = ["FilterOutcome", "required_tokens", "record_tokens", "filter_by_tokens"]
