"""Tests for reading the source catalog."""

import sqlite3
from pathlib import Path

import pytest

from catalog_search.core.errors import StoreUnavailableError
from catalog_search.db.sqlite import SQLiteDatabase
from catalog_search.ingest.corpus import CORPUS_PRESETS, CatalogReader


def _reader(path: Path, corpus: str = "products") -> CatalogReader:
    return CatalogReader(SQLiteDatabase(path, read_only=True), CORPUS_PRESETS[corpus], namespace=corpus)


def test_reads_published_products_with_tags(catalog_path: Path) -> None:
    reader = _reader(catalog_path)
    records = reader.read_records()
    reader.close()

    assert [record.id for record in records] == [1, 2, 3]
    glock = records[0]
    assert set(glock.tags.split(", ")) == {"Glock", "Kydex"}
    assert glock.stock_quantity == 12.0
    coat = records[2]
    assert coat.name is None and coat.sku is None
    assert coat.meta == {}


def test_vocabulary_is_built_from_tag_tokens(catalog_path: Path) -> None:
    reader = _reader(catalog_path)
    assert reader.load_vocabulary() == frozenset({"glock", "kydex", "fobus", "paddle", "winter"})
    reader.close()


def test_missing_catalog_raises_store_unavailable(tmp_path: Path) -> None:
    reader = _reader(tmp_path / "missing.db")
    with pytest.raises(StoreUnavailableError):
        reader.read_records()


def test_email_corpus_keeps_extra_columns_in_meta(tmp_path: Path) -> None:
    path = tmp_path / "mail.db"
    conn = sqlite3.connect(path)
    conn.execute(
        "CREATE TABLE emails (id INTEGER PRIMARY KEY, subject TEXT, thread_id TEXT, body TEXT, from_addr TEXT, date TEXT)"
    )
    conn.execute(
        "INSERT INTO emails VALUES (1, 'Order 1042 shipped', 't-9', 'Your order is on the way', 'shop@example.com', '2024-05-01')"
    )
    conn.commit()
    conn.close()

    reader = _reader(path, corpus="emails")
    [record] = reader.read_records()
    assert record.title == "Order 1042 shipped"
    assert record.description == "Your order is on the way"
    assert record.meta["from_addr"] == "shop@example.com"
    assert reader.load_vocabulary() == frozenset()
    reader.close()
