"""Test fixtures for Catalog Search."""

from __future__ import annotations

import sqlite3
import sys
from pathlib import Path

import pytest

BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

TEST_DIM = 64

CATALOG_SCHEMA = """
CREATE TABLE products (
  id INTEGER PRIMARY KEY,
  title TEXT,
  name TEXT,
  description TEXT,
  short_description TEXT,
  sku TEXT,
  min_price TEXT,
  max_price TEXT,
  stock_status TEXT,
  stock_quantity REAL,
  status TEXT
);
CREATE TABLE product_tags (product_id INTEGER, tag TEXT);
"""

SAMPLE_PRODUCTS = [
    (1, "Glock 19 Holster", "glock-19-holster", "<p>Kydex holster for the <b>Glock 19</b>.</p>", None,
     "GL19-H", "49.99", "49.99", "instock", 12.0, "publish"),
    (2, "Fobus Paddle Holster", "fobus-paddle-holster", "Polymer paddle holster.", "Fits most pistols",
     "FB-PD", "29.99", "34.99", "instock", 4.0, "publish"),
    (3, "Tactical Dubon Coat", None, "Warm winter coat.", None,
     None, "120.00", "120.00", "outofstock", 0.0, "publish"),
    (4, "Draft Product", "draft", "Not yet published.", None,
     None, None, None, None, None, "draft"),
]

SAMPLE_TAGS = [
    (1, "Glock"),
    (1, "Kydex"),
    (2, "Fobus"),
    (2, "Paddle"),
    (3, "Winter"),
]


@pytest.fixture(autouse=True)
def reset_state(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Reset global singletons and environment between tests."""
    monkeypatch.setenv("CATSEARCH_DB_PATH", str(tmp_path / "index.db"))
    monkeypatch.setenv("CATSEARCH_CATALOG_DB_PATH", str(tmp_path / "catalog.db"))
    monkeypatch.setenv("CATSEARCH_EMBEDDING_BACKEND", "hashed")
    monkeypatch.setenv("CATSEARCH_EMBEDDING_DIM", str(TEST_DIM))
    monkeypatch.delenv("CATSEARCH_CONFIG", raising=False)

    from catalog_search import dependencies as deps

    deps.reset()
    yield
    deps.reset()


@pytest.fixture
def catalog_path(tmp_path: Path) -> Path:
    path = tmp_path / "catalog.db"
    conn = sqlite3.connect(path)
    conn.executescript(CATALOG_SCHEMA)
    conn.executemany("INSERT INTO products VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)", SAMPLE_PRODUCTS)
    conn.executemany("INSERT INTO product_tags VALUES (?, ?)", SAMPLE_TAGS)
    conn.commit()
    conn.close()
    return path


@pytest.fixture
def index_db(tmp_path: Path):
    from catalog_search.db.sqlite import SQLiteDatabase

    db = SQLiteDatabase(tmp_path / "index.db")
    db.ensure_schema()
    yield db
    db.close()


@pytest.fixture
def hashed_provider():
    from catalog_search.providers import HashedEmbeddingBackend, ProviderClient

    return ProviderClient(HashedEmbeddingBackend(dim=TEST_DIM))
