"""Internal dataclasses representing indexed entities."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

RECORD_FIELDS = (
    "id",
    "title",
    "name",
    "description",
    "short_description",
    "sku",
    "min_price",
    "max_price",
    "stock_status",
    "stock_quantity",
    "tags",
)


@dataclass(slots=True)
class SourceRecord:
    """Catalog item or email as read from the source store.

    ``meta`` carries unrelated bookkeeping (e.g. modification time) and is
    never part of the embedding text or fingerprint.
    """

    id: int
    title: str
    name: str | None = None
    description: str | None = None
    short_description: str | None = None
    sku: str | None = None
    min_price: str | None = None
    max_price: str | None = None
    stock_status: str | None = None
    stock_quantity: float | None = None
    tags: str | None = None
    meta: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "SourceRecord":
        """Build a record from a DB row or dict, converting nullable columns once."""
        keys = set(row.keys())
        values = {name: row[name] if name in keys else None for name in RECORD_FIELDS}
        meta = {key: row[key] for key in keys if key not in RECORD_FIELDS and key != "meta"}
        if "meta" in keys and isinstance(row["meta"], Mapping):
            meta.update(row["meta"])
        return cls(
            id=int(values["id"]),
            title=_opt_str(values["title"]) or "",
            name=_opt_str(values["name"]),
            description=_opt_str(values["description"]),
            short_description=_opt_str(values["short_description"]),
            sku=_opt_str(values["sku"]),
            min_price=_opt_str(values["min_price"]),
            max_price=_opt_str(values["max_price"]),
            stock_status=_opt_str(values["stock_status"]),
            stock_quantity=_opt_float(values["stock_quantity"]),
            tags=_opt_str(values["tags"]),
            meta=meta,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "name": self.name,
            "description": self.description,
            "short_description": self.short_description,
            "sku": self.sku,
            "min_price": self.min_price,
            "max_price": self.max_price,
            "stock_status": self.stock_status,
            "stock_quantity": self.stock_quantity,
            "tags": self.tags,
            "meta": dict(self.meta),
        }

    def text_fields(self) -> list[str]:
        """Textual fields used for lexical token matching."""
        values = [self.title, self.name, self.sku, self.tags, self.short_description, self.description]
        return [value for value in values if value]


@dataclass(slots=True)
class Checksum:
    record_id: int
    checksum: str
    last_checked: int


@dataclass(slots=True)
class EmbeddingRecord:
    record: SourceRecord
    vector: list[float]
    created_at: int
    updated_at: int

    @property
    def record_id(self) -> int:
        return self.record.id

    @property
    def dim(self) -> int:
        return len(self.vector)


def _opt_str(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return str(value)


def _opt_float(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


__all__ = ["SourceRecord", "Checksum", "EmbeddingRecord", "RECORD_FIELDS"]
