"""Tests for structured logging."""

import logging

import orjson

from catalog_search.core.logging import JsonFormatter


def test_json_formatter_emits_context_fields() -> None:
    record = logging.LogRecord("catalog_search.test", logging.INFO, __file__, 1, "Processed %s", (3,), None)
    record.ctx_namespace = "products"
    record.ctx_required_tokens = ["19"]

    payload = orjson.loads(JsonFormatter().format(record))
    assert payload["message"] == "Processed 3"
    assert payload["level"] == "INFO"
    assert payload["namespace"] == "products"
    assert payload["required_tokens"] == ["19"]
