"""Bounded keyword boosting with synonym expansion."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from catalog_search.core.config import Settings
from catalog_search.models.entities import SourceRecord


@dataclass(frozen=True, slots=True)
class BoostConfig:
    cap: float = 0.3
    title_match: float = 0.2
    tag_token: float = 0.1
    title_token: float = 0.05
    min_token_length: int = 3
    synonyms: Mapping[str, Sequence[str]] = field(default_factory=dict)

    @classmethod
    def from_settings(cls, settings: Settings) -> "BoostConfig":
        return cls(
            cap=settings.boost_cap,
            title_match=settings.title_match_boost,
            tag_token=settings.tag_token_boost,
            title_token=settings.title_token_boost,
            min_token_length=settings.min_boost_token_length,
            synonyms={key: tuple(values) for key, values in settings.synonyms.items()},
        )


def expand_synonyms(tokens: Sequence[str], synonyms: Mapping[str, Sequence[str]]) -> list[str]:
    """Input tokens followed by their synonyms; only adds, order kept, no duplicates."""
    expanded: list[str] = []
    seen: set[str] = set()
    for token in tokens:
        for candidate in (token, *synonyms.get(token, ())):
            if candidate not in seen:
                seen.add(candidate)
                expanded.append(candidate)
    return expanded


def compute_boost(record: SourceRecord, query: str, tokens: Sequence[str], config: BoostConfig) -> float:
    """Additive relevance bonus in ``[0, config.cap]``."""
    boost = 0.0
    lower_title = record.title.lower()
    lower_query = query.strip().lower()
    lower_tags = record.tags.lower() if record.tags else ""
    if lower_query and lower_query in lower_title:
        boost += config.title_match
    for token in tokens:
        if len(token) < config.min_token_length:
            continue
        if lower_tags and token in lower_tags:
            boost += config.tag_token
        if token in lower_title:
            boost += config.title_token
    return max(0.0, min(boost, config.cap))


__all__ = ["BoostConfig", "expand_synonyms", "compute_boost"]
