"""Read-only access to the source catalog."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Iterable

from catalog_search.core.config import Settings
from catalog_search.core.errors import StoreUnavailableError
from catalog_search.core.logging import get_logger
from catalog_search.db.sqlite import SQLiteDatabase
from catalog_search.models.entities import SourceRecord
from catalog_search.utils.text import extract_meaningful_tokens

logger = get_logger(__name__)

PRODUCTS_SQL = """
SELECT
  p.id,
  p.title,
  p.name,
  p.description,
  p.short_description,
  p.sku,
  p.min_price,
  p.max_price,
  p.stock_status,
  p.stock_quantity,
  (SELECT GROUP_CONCAT(t.tag, ', ') FROM product_tags t WHERE t.product_id = p.id) AS tags
FROM products p
WHERE p.status IN ('publish', 'private')
ORDER BY p.id
"""

PRODUCT_TAGS_SQL = "SELECT DISTINCT tag FROM product_tags"

EMAILS_SQL = """
SELECT
  e.id,
  e.subject AS title,
  e.thread_id AS name,
  e.body AS description,
  e.from_addr,
  e.date
FROM emails e
ORDER BY e.id
"""


@dataclass(frozen=True, slots=True)
class CorpusQueries:
    records_sql: str
    tags_sql: str | None


CORPUS_PRESETS: dict[str, CorpusQueries] = {
    "products": CorpusQueries(records_sql=PRODUCTS_SQL, tags_sql=PRODUCT_TAGS_SQL),
    "emails": CorpusQueries(records_sql=EMAILS_SQL, tags_sql=None),
}


class CatalogReader:
    """Reads current source records; never writes to the catalog."""

    def __init__(self, db: SQLiteDatabase, queries: CorpusQueries, namespace: str) -> None:
        self.db = db
        self.queries = queries
        self.namespace = namespace

    @classmethod
    def from_settings(cls, settings: Settings) -> "CatalogReader":
        preset = CORPUS_PRESETS[settings.corpus]
        queries = CorpusQueries(
            records_sql=settings.records_sql or preset.records_sql,
            tags_sql=settings.tags_sql if settings.tags_sql is not None else preset.tags_sql,
        )
        db = SQLiteDatabase(settings.catalog_db_path, read_only=True, timeout=settings.lookup_timeout)
        return cls(db, queries, namespace=settings.corpus)

    def read_records(self) -> list[SourceRecord]:
        try:
            rows = self.db.query(self.queries.records_sql)
        except sqlite3.Error as exc:
            raise StoreUnavailableError("catalog", str(exc)) from exc
        records: list[SourceRecord] = []
        for row in rows:
            try:
                records.append(SourceRecord.from_row(row))
            except (TypeError, ValueError) as exc:
                logger.warning("Skipping unreadable catalog row: %s", exc)
        logger.info("Read %s records from catalog", len(records), extra={"ctx_namespace": self.namespace})
        return records

    def read_tag_names(self) -> list[str]:
        if not self.queries.tags_sql:
            return []
        try:
            rows = self.db.query(self.queries.tags_sql)
        except sqlite3.Error as exc:
            raise StoreUnavailableError("catalog", str(exc)) from exc
        return [str(row[0]) for row in rows if row[0]]

    def load_vocabulary(self) -> frozenset[str]:
        """Tokens of every catalog tag, used to decide which query words must match."""
        return build_vocabulary(self.read_tag_names())

    def close(self) -> None:
        self.db.close()


def build_vocabulary(tag_names: Iterable[str]) -> frozenset[str]:
    tokens: set[str] = set()
    for name in tag_names:
        tokens.update(extract_meaningful_tokens(name))
    return frozenset(tokens)


__all__ = ["CatalogReader", "CorpusQueries", "CORPUS_PRESETS", "build_vocabulary"]
