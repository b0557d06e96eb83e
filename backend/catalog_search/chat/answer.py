"""Answer shopper conversations using the products found by search."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from catalog_search.core.logging import get_logger
from catalog_search.ingest.embedding_text import format_price
from catalog_search.providers.base import ChatMessage
from catalog_search.providers.client import ProviderClient
from catalog_search.retrieval.search import SearchEngine, SearchResult

logger = get_logger(__name__)

MAX_CONTEXT_PRODUCTS = 15
IN_STOCK = "instock"

SYSTEM_PROMPT = """You are a sales assistant for {store_name}.

Help customers find products. You have a list of relevant products ranked by similarity to the request.

RULES:
- Only recommend products from the provided list
- Use product tags for compatibility questions
- Check stock status before recommending
- Provide pricing and availability details
- Format product names in **bold**
- Show the most relevant products first"""

_ASSISTANT_ROLE_HINTS = ("assistant", "bot", "ai")


@dataclass(slots=True)
class ConversationMessage:
    role: str
    message: str


@dataclass(slots=True)
class ChatAnswer:
    response: str
    products: dict[str, str] = field(default_factory=dict)
    fallback: bool = False


class AnswerService:
    """Search with the latest user message, then ask the chat model."""

    def __init__(
        self,
        engine: SearchEngine,
        provider: ProviderClient,
        *,
        store_name: str = "our store",
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float | None = 60.0,
    ) -> None:
        self.engine = engine
        self.provider = provider
        self.store_name = store_name
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout

    def answer(self, conversation: Sequence[ConversationMessage], limit: int = 20) -> ChatAnswer:
        query = last_user_message(conversation)
        if query is None:
            raise ValueError("no user message found in conversation")

        response = self.engine.search(query, limit=limit)
        products = prefer_in_stock(response.results)
        logger.info(
            "Answering with %s products",
            len(products),
            extra={"ctx_candidates": len(response.results), "ctx_fallback": response.fallback},
        )

        messages = self.build_messages(conversation, products)
        text = self.provider.complete(
            messages,
            max_tokens=self.max_tokens,
            temperature=self.temperature,
            timeout=self.timeout,
        )
        return ChatAnswer(response=text, products=product_links(products), fallback=response.fallback)

    def build_messages(
        self, conversation: Sequence[ConversationMessage], products: Sequence[SearchResult]
    ) -> list[ChatMessage]:
        system = SYSTEM_PROMPT.format(store_name=self.store_name) + "\n\n" + product_context(products)
        messages: list[ChatMessage] = [{"role": "system", "content": system}]
        for item in conversation:
            messages.append({"role": chat_role(item.role), "content": item.message})
        return messages


def last_user_message(conversation: Sequence[ConversationMessage]) -> str | None:
    for item in reversed(conversation):
        if "user" in item.role.lower():
            return item.message
    return None


def chat_role(role: str) -> str:
    lowered = role.lower()
    if any(hint in lowered for hint in _ASSISTANT_ROLE_HINTS):
        return "assistant"
    return "user"


def prefer_in_stock(results: Sequence[SearchResult]) -> list[SearchResult]:
    """In-stock results, or every result when none is in stock."""
    in_stock = [result for result in results if result.record.stock_status == IN_STOCK]
    return in_stock or list(results)


def product_context(products: Sequence[SearchResult]) -> str:
    lines = ["RELEVANT PRODUCTS (ranked by similarity):", ""]
    for result in products[:MAX_CONTEXT_PRODUCTS]:
        record = result.record
        parts = [f"**{record.title}**"]
        price = format_price(record)
        if price:
            parts.append(price)
        if record.stock_status is not None:
            parts.append("In Stock" if record.stock_status == IN_STOCK else "Out of Stock")
        parts.append(f"Similarity: {result.similarity:.2f}")
        if record.tags:
            parts.append(f"Tags: {record.tags}")
        lines.append(" - ".join(parts))
    remaining = len(products) - MAX_CONTEXT_PRODUCTS
    if remaining > 0:
        lines.append(f"... and {remaining} more products available")
    return "\n".join(lines)


def product_links(products: Sequence[SearchResult]) -> dict[str, str]:
    """Map product titles to a slug, falling back to SKU and then ``product-<id>``."""
    links: dict[str, str] = {}
    for result in products:
        record = result.record
        links[record.title] = record.name or record.sku or f"product-{record.id}"
    return links


__all__ = [
    "AnswerService",
    "ChatAnswer",
    "ConversationMessage",
    "chat_role",
    "last_user_message",
    "prefer_in_stock",
    "product_context",
    "product_links",
]
