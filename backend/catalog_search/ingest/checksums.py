"""Content fingerprints and change detection."""

from __future__ import annotations

import hashlib
import sqlite3
from typing import Iterable, Mapping

from catalog_search.core.errors import StoreUnavailableError
from catalog_search.db.sqlite import SQLiteDatabase
from catalog_search.models.entities import Checksum, SourceRecord
from catalog_search.utils.time import now_ms


def fingerprint(record: SourceRecord) -> str:
    """SHA-256 over a field-tagged rendering of every embedding-relevant field."""
    parts = [f"id:{record.id}", f"title:{record.title}"]
    if record.name is not None:
        parts.append(f"name:{record.name}")
    if record.description is not None:
        parts.append(f"desc:{record.description}")
    if record.short_description is not None:
        parts.append(f"short:{record.short_description}")
    if record.sku is not None:
        parts.append(f"sku:{record.sku}")
    if record.min_price is not None:
        parts.append(f"min_price:{record.min_price}")
    if record.max_price is not None:
        parts.append(f"max_price:{record.max_price}")
    if record.stock_status is not None:
        parts.append(f"stock_status:{record.stock_status}")
    if record.stock_quantity is not None:
        parts.append(f"stock_qty:{record.stock_quantity:f}")
    if record.tags is not None:
        parts.append(f"tags:{record.tags}")
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()


def diff(records: Iterable[SourceRecord], stored: Mapping[int, str]) -> list[tuple[SourceRecord, str]]:
    """Records whose id is unknown or whose fingerprint changed, with the new fingerprint."""
    changed: list[tuple[SourceRecord, str]] = []
    for record in records:
        digest = fingerprint(record)
        if stored.get(record.id) != digest:
            changed.append((record, digest))
    return changed


class ChecksumStore:
    """One fingerprint per record id, scoped to a namespace."""

    def __init__(self, db: SQLiteDatabase, namespace: str) -> None:
        self.db = db
        self.namespace = namespace

    def load_all(self) -> dict[int, str]:
        try:
            rows = self.db.query(
                "SELECT record_id, checksum FROM record_checksums WHERE namespace = ?",
                [self.namespace],
            )
        except sqlite3.Error as exc:
            raise StoreUnavailableError("checksum store", str(exc)) from exc
        return {int(row["record_id"]): row["checksum"] for row in rows}

    def get(self, record_id: int) -> Checksum | None:
        row = self.db.execute(
            "SELECT record_id, checksum, last_checked FROM record_checksums WHERE namespace = ? AND record_id = ?",
            [self.namespace, record_id],
        ).fetchone()
        if row is None:
            return None
        return Checksum(record_id=int(row["record_id"]), checksum=row["checksum"], last_checked=row["last_checked"])

    def update(self, record_id: int, checksum: str) -> None:
        self.db.execute(
            """
            INSERT INTO record_checksums (namespace, record_id, checksum, last_checked)
            VALUES (?, ?, ?, ?)
            ON CONFLICT (namespace, record_id) DO UPDATE SET
              checksum = excluded.checksum,
              last_checked = excluded.last_checked
            """,
            [self.namespace, record_id, checksum, now_ms()],
        )
        self.db.commit()

    def count(self) -> int:
        row = self.db.execute(
            "SELECT COUNT(*) AS count FROM record_checksums WHERE namespace = ?",
            [self.namespace],
        ).fetchone()
        return int(row["count"]) if row else 0


__all__ = ["fingerprint", "diff", "ChecksumStore"]
