"""Tests for provider backends and failover."""

from types import SimpleNamespace

import pytest

from catalog_search.core.config import Settings
from catalog_search.core.errors import ConfigurationError, ProviderError
from catalog_search.providers import HashedEmbeddingBackend, OpenAIBackend, ProviderClient, build_provider_client


class FakeEmbeddings:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.models: list[str] = []

    def create(self, *, model: str, input: list[str], timeout: float | None = None):
        self.models.append(model)
        if self.fail:
            raise RuntimeError("503 service unavailable")
        # Returned out of order; the backend must sort by index.
        data = [SimpleNamespace(index=i, embedding=[float(i), 1.0]) for i in range(len(input))]
        return SimpleNamespace(data=list(reversed(data)))


class FakeCompletions:
    def __init__(self, reply: str = "Try the **Glock 19 Holster**.") -> None:
        self.reply = reply
        self.calls: list[dict] = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def _fake_client(fail: bool = False):
    return SimpleNamespace(embeddings=FakeEmbeddings(fail=fail), chat=SimpleNamespace(completions=FakeCompletions()))


def _backend(name: str, fail: bool = False) -> OpenAIBackend:
    return OpenAIBackend(
        _fake_client(fail=fail),
        name=name,
        embedding_model=f"{name}-embed",
        chat_model=f"{name}-chat",
    )


def test_embed_preserves_input_order() -> None:
    client = ProviderClient(_backend("azure"))
    vectors = client.embed(["a", "b", "c"])
    assert vectors == [[0.0, 1.0], [1.0, 1.0], [2.0, 1.0]]
    assert client.embed([]) == []


def test_failover_uses_secondary_model_identifier() -> None:
    primary = _backend("azure", fail=True)
    secondary = _backend("openai")
    client = ProviderClient(primary, secondary)

    vectors = client.embed(["glock"])
    assert len(vectors) == 1
    assert primary.client.embeddings.models == ["azure-embed"]
    assert secondary.client.embeddings.models == ["openai-embed"]


def test_both_providers_failing_raises_provider_error() -> None:
    client = ProviderClient(_backend("azure", fail=True), _backend("openai", fail=True))
    with pytest.raises(ProviderError) as excinfo:
        client.embed(["glock"])
    assert excinfo.value.retryable
    assert "both providers failed" in str(excinfo.value)


def test_single_provider_failure_raises_provider_error() -> None:
    client = ProviderClient(_backend("openai", fail=True))
    with pytest.raises(ProviderError):
        client.test_connection()


def test_complete_passes_chat_model_and_limits() -> None:
    backend = _backend("azure")
    client = ProviderClient(backend)
    reply = client.complete([{"role": "user", "content": "holster?"}], max_tokens=50, temperature=0.2, timeout=5)
    assert reply == "Try the **Glock 19 Holster**."
    call = backend.client.chat.completions.calls[0]
    assert call["model"] == "azure-chat"
    assert call["max_tokens"] == 50
    assert call["timeout"] == 5


def test_hashed_backend_is_normalized_and_deterministic() -> None:
    backend = HashedEmbeddingBackend(dim=32)
    first, second = backend.embed(["glock holster", "glock holster"])
    assert first == second
    assert len(first) == 32
    assert sum(value * value for value in first) == pytest.approx(1.0)


def test_build_provider_client_selection() -> None:
    hashed = build_provider_client(Settings(embedding_backend="hashed", embedding_dim=16))
    assert hashed.provider_name == "hashed"

    with pytest.raises(ConfigurationError):
        build_provider_client(Settings(embedding_backend="openai"))

    both = build_provider_client(
        Settings(azure_openai_endpoint="https://example.openai.azure.com", azure_openai_key="k1", openai_api_key="k2")
    )
    assert both.primary.name == "Azure OpenAI"
    assert both.secondary is not None and both.secondary.name == "OpenAI"


def test_hashed_backend_completion_is_a_configuration_error() -> None:
    client = ProviderClient(HashedEmbeddingBackend(dim=8), HashedEmbeddingBackend(dim=8, name="hashed-2"))
    with pytest.raises(ConfigurationError) as excinfo:
        client.complete([{"role": "user", "content": "holster?"}])
    assert not excinfo.value.retryable
    assert "no completion model" in str(excinfo.value)
