"""Provider client with primary/secondary failover."""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from catalog_search.core.config import Settings
from catalog_search.core.errors import ConfigurationError, ProviderError
from catalog_search.core.logging import get_logger
from catalog_search.core.metrics import PROVIDER_FAILOVERS
from catalog_search.providers.base import ChatMessage, ProviderBackend
from catalog_search.providers.hashed import HashedEmbeddingBackend
from catalog_search.providers.openai_backend import OpenAIBackend

logger = get_logger(__name__)

T = TypeVar("T")


class ProviderClient:
    """Try the primary backend, then the secondary once; no backoff.

    Each backend calls with its own model identifiers, so a failover from an
    Azure deployment to the OpenAI platform switches model names as well.
    """

    def __init__(self, primary: ProviderBackend, secondary: ProviderBackend | None = None) -> None:
        self.primary = primary
        self.secondary = secondary

    @property
    def provider_name(self) -> str:
        return self.primary.name

    def embed(self, texts: Sequence[str], timeout: float | None = None) -> list[list[float]]:
        if not texts:
            return []
        return self._call("embed", lambda backend: backend.embed(texts, timeout=timeout))

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int = 1000,
        temperature: float = 0.7,
        timeout: float | None = None,
    ) -> str:
        return self._call(
            "complete",
            lambda backend: backend.complete(
                messages, max_tokens=max_tokens, temperature=temperature, timeout=timeout
            ),
        )

    def test_connection(self, timeout: float | None = 10.0) -> None:
        """Embed a probe string; raises ProviderError when unreachable."""
        self.embed(["test"], timeout=timeout)
        logger.info("Provider connection test succeeded", extra={"ctx_provider": self.provider_name})

    def _call(self, operation: str, fn: Callable[[ProviderBackend], T]) -> T:
        try:
            return fn(self.primary)
        except ConfigurationError:
            raise
        except Exception as primary_exc:
            if self.secondary is None:
                raise ProviderError(operation, f"{self.primary.name}: {primary_exc}") from primary_exc
            logger.warning(
                "Primary provider %s failed on %s, trying %s: %s",
                self.primary.name,
                operation,
                self.secondary.name,
                primary_exc,
            )
            PROVIDER_FAILOVERS.labels(operation=operation).inc()
            try:
                result = fn(self.secondary)
            except ConfigurationError:
                raise
            except Exception as secondary_exc:
                raise ProviderError(
                    operation,
                    f"both providers failed ({self.primary.name}: {primary_exc}; "
                    f"{self.secondary.name}: {secondary_exc})",
                ) from secondary_exc
            logger.info("Fallback provider %s succeeded on %s", self.secondary.name, operation)
            return result


def build_provider_client(settings: Settings) -> ProviderClient:
    """Azure OpenAI primary with OpenAI fallback, OpenAI alone, or the hashed backend."""
    if settings.embedding_backend == "hashed":
        return ProviderClient(HashedEmbeddingBackend(dim=settings.embedding_dim))

    azure: OpenAIBackend | None = None
    platform: OpenAIBackend | None = None
    if settings.azure_configured:
        azure = OpenAIBackend.azure(
            endpoint=settings.azure_openai_endpoint or "",
            api_key=settings.azure_openai_key or "",
            api_version=settings.azure_openai_api_version,
            embedding_deployment=settings.azure_openai_embedding_deployment,
            chat_deployment=settings.azure_openai_chat_deployment,
        )
    if settings.openai_configured:
        platform = OpenAIBackend.platform(
            api_key=settings.openai_api_key or "",
            embedding_model=settings.openai_embedding_model,
            chat_model=settings.openai_chat_model,
        )

    if azure is not None:
        logger.info("Primary provider: Azure OpenAI; fallback: %s", "OpenAI" if platform else "none")
        return ProviderClient(azure, platform)
    if platform is not None:
        logger.info("Primary provider: OpenAI (Azure not configured)")
        return ProviderClient(platform)
    raise ConfigurationError(
        "no embedding provider configured: set azure endpoint + api_key or openai api_key"
    )


__all__ = ["ProviderClient", "build_provider_client"]
