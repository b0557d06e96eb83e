"""Deterministic hashed embeddings for offline runs and tests."""

from __future__ import annotations

import hashlib
import math
from typing import Sequence

from catalog_search.core.errors import ConfigurationError
from catalog_search.providers.base import ChatMessage
from catalog_search.utils.text import tokenize


class HashedEmbeddingBackend:
    """Bag-of-tokens hashed into ``dim`` buckets, L2-normalized.

    Texts sharing tokens get positive cosine similarity, which is enough to
    exercise indexing and ranking without a network provider.
    """

    def __init__(self, dim: int = 1536, name: str = "hashed") -> None:
        if dim <= 0:
            raise ValueError("dim must be positive")
        self.dim = dim
        self.name = name
        self.embedding_model = f"hashed-{dim}"

    def embed(self, texts: Sequence[str], timeout: float | None = None) -> list[list[float]]:
        vectors: list[list[float]] = []
        for text in texts:
            vector = [0.0] * self.dim
            for token in tokenize(text):
                vector[_hash_token(token, self.dim)] += 1.0
            _normalize(vector)
            vectors.append(vector)
        return vectors

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int,
        temperature: float,
        timeout: float | None = None,
    ) -> str:
        raise ConfigurationError("hashed backend has no completion model")


def _hash_token(token: str, dim: int) -> int:
    digest = hashlib.blake2b(token.encode("utf-8"), digest_size=8).digest()
    return int.from_bytes(digest, "big") % dim


def _normalize(vector: list[float]) -> None:
    norm = math.sqrt(sum(value * value for value in vector))
    if norm == 0:
        return
    inv = 1.0 / norm
    for idx, value in enumerate(vector):
        vector[idx] = value * inv


__all__ = ["HashedEmbeddingBackend"]
