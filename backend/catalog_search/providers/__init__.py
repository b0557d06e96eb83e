"""Embedding and completion providers."""

from .base import ProviderBackend
from .client import ProviderClient, build_provider_client
from .hashed import HashedEmbeddingBackend
from .openai_backend import OpenAIBackend

__all__ = [
    "ProviderBackend",
    "ProviderClient",
    "build_provider_client",
    "HashedEmbeddingBackend",
    "OpenAIBackend",
]
