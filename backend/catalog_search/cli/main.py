"""CLI entrypoint for Catalog Search."""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import NoReturn, Optional

import typer

from catalog_search import dependencies as deps
from catalog_search.chat.answer import ConversationMessage
from catalog_search.core.errors import CatalogSearchError
from catalog_search.core.logging import configure_logging, get_logger
from catalog_search.core.metrics import metrics_text
from catalog_search.models.dto import ChatAnswerModel, EmbedRunModel, IndexStatsModel, SearchResponseModel

app = typer.Typer(name="catsearch", help="Catalog Search command-line interface")

logger = get_logger(__name__)


@app.callback()
def main(
    log_level: str = typer.Option("INFO", "--log-level", envvar="CATSEARCH_LOG_LEVEL", help="Logging level"),
    json_logs: bool = typer.Option(True, "--json-logs/--plain-logs", help="Emit JSON log lines on stderr"),
) -> None:
    configure_logging(level=log_level.upper(), use_json=json_logs)


def _fail(exc: Exception) -> NoReturn:
    typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1)


def _index_stats() -> IndexStatsModel:
    settings = deps.get_app_settings()
    return IndexStatsModel(
        namespace=settings.corpus,
        embeddings=deps.get_vector_store().count(),
        checksums=deps.get_checksum_store().count(),
        provider=deps.get_provider_client().provider_name,
        dim=settings.embedding_dim,
    )


@app.command()
def init(
    skip_provider_check: bool = typer.Option(False, "--skip-provider-check", help="Do not probe the provider"),
) -> None:
    """Create the index schema and verify the embedding provider."""
    try:
        deps.get_index_database()
        if not skip_provider_check:
            deps.get_provider_client().test_connection(timeout=deps.get_app_settings().lookup_timeout)
        typer.echo(_index_stats().model_dump_json(indent=2))
    except CatalogSearchError as exc:
        _fail(exc)


@app.command()
def embed(
    interval_hours: float = typer.Option(0.0, "--interval-hours", help="Repeat every N hours instead of once"),
) -> None:
    """Embed new and changed records."""
    while True:
        try:
            stats = deps.get_batch_embedder().run()
        except CatalogSearchError as exc:
            if interval_hours <= 0:
                _fail(exc)
            logger.error("Scheduled embedding run failed: %s", exc)
        else:
            typer.echo(EmbedRunModel.from_stats(stats).model_dump_json(indent=2))
            if interval_hours <= 0:
                if not stats.success:
                    raise typer.Exit(code=1)
                return
        logger.info("Next embedding run in %s hours", interval_hours)
        time.sleep(interval_hours * 3600)


@app.command()
def search(
    q: str = typer.Argument(..., help="Query text"),
    limit: Optional[int] = typer.Option(None, "--limit", "-k", help="Number of results to return"),
) -> None:
    """Search the embedded corpus."""
    try:
        engine = deps.get_search_engine()
        response = engine.search(q, limit=limit or deps.get_app_settings().default_limit)
    except CatalogSearchError as exc:
        _fail(exc)
    typer.echo(SearchResponseModel.from_response(response).model_dump_json(indent=2))


@app.command()
def ask(
    question: str = typer.Argument(..., help="Latest user message"),
    history: Optional[Path] = typer.Option(
        None, "--history", help="JSON file with earlier messages: [{\"role\": ..., \"message\": ...}]"
    ),
    limit: Optional[int] = typer.Option(None, "--limit", "-k", help="Number of products to search"),
) -> None:
    """Answer a shopper question using the best matching products."""
    conversation: list[ConversationMessage] = []
    if history:
        try:
            raw = json.loads(history.expanduser().read_text(encoding="utf-8"))
            conversation.extend(
                ConversationMessage(role=str(item["role"]), message=str(item["message"])) for item in raw
            )
        except (OSError, ValueError, KeyError, TypeError) as exc:
            _fail(ValueError(f"invalid history file {history}: {exc}"))
    conversation.append(ConversationMessage(role="user", message=question))
    try:
        answer = deps.get_answer_service().answer(
            conversation, limit=limit or deps.get_app_settings().default_limit
        )
    except CatalogSearchError as exc:
        _fail(exc)
    typer.echo(ChatAnswerModel.from_answer(answer).model_dump_json(indent=2))


@app.command()
def vocabulary() -> None:
    """Print the tag tokens that queries must match verbatim."""
    try:
        tokens = deps.get_catalog_reader().load_vocabulary()
    except CatalogSearchError as exc:
        _fail(exc)
    typer.echo(json.dumps(sorted(tokens), indent=2))


@app.command()
def stats(
    metrics: bool = typer.Option(False, "--metrics", help="Also print Prometheus metrics"),
) -> None:
    """Show index counts for the configured corpus."""
    try:
        typer.echo(_index_stats().model_dump_json(indent=2))
    except CatalogSearchError as exc:
        _fail(exc)
    if metrics:
        typer.echo(metrics_text())


if __name__ == "__main__":
    app()
