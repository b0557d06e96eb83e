"""Embedding text construction for source records."""

from __future__ import annotations

from typing import Mapping, Sequence

from catalog_search.models.entities import SourceRecord
from catalog_search.utils.text import strip_html

DEFAULT_DESCRIPTION_MAX_CHARS = 500


def clean_description(text: str, max_chars: int = DEFAULT_DESCRIPTION_MAX_CHARS) -> str:
    cleaned = strip_html(text)
    if len(cleaned) > max_chars:
        cleaned = cleaned[:max_chars] + "..."
    return cleaned


def build_embedding_text(
    record: SourceRecord,
    *,
    description_max_chars: int = DEFAULT_DESCRIPTION_MAX_CHARS,
    enrichments: Mapping[str, Sequence[str]] | None = None,
) -> str:
    """Pipe-joined title, description, tags, SKU, price and stock; absent parts omitted.

    ``enrichments`` maps a lowercase title substring to extra phrases appended
    for matching records (brand names, product-line aliases).
    """
    parts: list[str] = []
    if record.title:
        parts.append(record.title)
    if record.description:
        description = clean_description(record.description, description_max_chars)
        if description:
            parts.append(description)
    if record.short_description:
        parts.append(record.short_description)
    if record.tags:
        parts.append(f"Tags: {record.tags}")
    if record.sku:
        parts.append(f"SKU: {record.sku}")
    price = format_price(record)
    if price:
        parts.append(f"Price: {price}")
    if record.stock_status:
        parts.append(f"Stock: {record.stock_status}")
    if enrichments:
        lower_title = record.title.lower()
        for needle, phrases in enrichments.items():
            if needle and needle in lower_title:
                parts.extend(phrase for phrase in phrases if phrase)
    return " | ".join(parts)


def format_price(record: SourceRecord) -> str | None:
    if record.min_price is None or record.max_price is None:
        return None
    if record.min_price == record.max_price:
        return f"${record.min_price}"
    return f"${record.min_price} - ${record.max_price}"


__all__ = ["build_embedding_text", "clean_description", "format_price"]
