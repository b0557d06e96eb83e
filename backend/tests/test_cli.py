"""End-to-end tests for the command-line interface."""

from __future__ import annotations

import json
from pathlib import Path

from typer.testing import CliRunner

from catalog_search.cli.main import app

runner = CliRunner()

QUIET = ["--log-level", "ERROR", "--plain-logs"]


def _invoke(*args: str):
    return runner.invoke(app, [*QUIET, *args])


def test_embed_then_search(catalog_path: Path) -> None:
    result = _invoke("embed")
    assert result.exit_code == 0, result.output
    run = json.loads(result.output)
    assert run["processed"] == 3
    assert run["success"] is True

    again = _invoke("embed")
    assert again.exit_code == 0, again.output
    assert json.loads(again.output)["changed"] == 0

    result = _invoke("search", "glock 19", "--limit", "5")
    assert result.exit_code == 0, result.output
    payload = json.loads(result.output)
    assert payload["required_tokens"] == ["glock", "19"]
    assert [item["record"]["id"] for item in payload["results"]] == [1]


def test_stats_and_vocabulary(catalog_path: Path) -> None:
    _invoke("embed")
    result = _invoke("stats", "--metrics")
    assert result.exit_code == 0, result.output
    assert '"embeddings": 3' in result.output
    assert "catsearch_embedded_records_total" in result.output

    result = _invoke("vocabulary")
    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == ["fobus", "glock", "kydex", "paddle", "winter"]


def test_missing_catalog_exits_non_zero(tmp_path: Path) -> None:
    result = _invoke("embed")
    assert result.exit_code == 1


def test_ask_rejects_malformed_history(tmp_path: Path, catalog_path: Path) -> None:
    bad_json = tmp_path / "bad.json"
    bad_json.write_text("{not json")
    result = _invoke("ask", "glock holster", "--history", str(bad_json))
    assert result.exit_code == 1
    assert "invalid history file" in result.output

    missing_keys = tmp_path / "missing.json"
    missing_keys.write_text(json.dumps([{"role": "user"}]))
    result = _invoke("ask", "glock holster", "--history", str(missing_keys))
    assert result.exit_code == 1
    assert "invalid history file" in result.output


def test_ask_with_hashed_backend_reports_configuration_error(catalog_path: Path) -> None:
    _invoke("embed")
    result = _invoke("ask", "glock holster")
    assert result.exit_code == 1
    assert "no completion model" in result.output
