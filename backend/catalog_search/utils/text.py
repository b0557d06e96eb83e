"""Text processing helpers."""

from __future__ import annotations

import re
from typing import Iterable, Sequence

WHITESPACE_RE = re.compile(r"\s+")
TOKEN_RE = re.compile(r"[a-z0-9]+")
HTML_TAG_RE = re.compile(r"<[^>]+>")

STOPWORDS = frozenset(
    {
        "a", "an", "and", "are", "as", "at", "be", "can", "for", "from", "have", "how",
        "i", "im", "in", "is", "it", "looking", "me", "my", "need", "of", "on", "or",
        "our", "please", "recommendation", "recommendations", "searching", "seeking",
        "show", "some", "someone", "that", "the", "their", "them", "there", "these",
        "they", "this", "those", "to", "want", "was", "we", "were", "what", "when",
        "where", "which", "who", "with", "you", "your",
    }
)


def normalize(text: str) -> str:
    """Collapse whitespace and strip."""
    return WHITESPACE_RE.sub(" ", text).strip()


def strip_html(text: str) -> str:
    """Replace markup tags with spaces and collapse whitespace."""
    return normalize(HTML_TAG_RE.sub(" ", text))


def tokenize(text: str) -> list[str]:
    return TOKEN_RE.findall(text.lower())


def extract_meaningful_tokens(text: str) -> list[str]:
    """Tokenize, drop stopwords and single non-digit letters, dedupe preserving order."""
    if not text or not text.strip():
        return []
    seen: set[str] = set()
    tokens: list[str] = []
    for token in tokenize(text):
        if len(token) == 1 and not token.isdigit():
            continue
        if token in STOPWORDS or token in seen:
            continue
        seen.add(token)
        tokens.append(token)
    return tokens


def build_token_set(values: Iterable[str | None]) -> set[str]:
    tokens: set[str] = set()
    for value in values:
        if value and value.strip():
            tokens.update(extract_meaningful_tokens(value))
    return tokens


def missing_tokens(token_set: set[str] | frozenset[str], required: Sequence[str]) -> list[str]:
    """Required tokens absent from ``token_set``; empty means all present."""
    return [token for token in required if token not in token_set]


def token_has_digit(token: str) -> bool:
    return any(char.isdigit() for char in token)


__all__ = [
    "STOPWORDS",
    "normalize",
    "strip_html",
    "tokenize",
    "extract_meaningful_tokens",
    "build_token_set",
    "missing_tokens",
    "token_has_digit",
]
