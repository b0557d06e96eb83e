"""OpenAI SDK backends (Azure OpenAI deployments or the OpenAI platform)."""

from __future__ import annotations

from typing import Any, Sequence

from openai import AzureOpenAI, OpenAI

from catalog_search.providers.base import ChatMessage


class OpenAIBackend:
    """Embeddings and chat completions through an ``openai`` client.

    ``client`` is anything exposing ``embeddings.create`` and
    ``chat.completions.create`` with the SDK's signatures.
    """

    def __init__(self, client: Any, *, name: str, embedding_model: str, chat_model: str) -> None:
        self.client = client
        self.name = name
        self.embedding_model = embedding_model
        self.chat_model = chat_model

    @classmethod
    def azure(
        cls,
        *,
        endpoint: str,
        api_key: str,
        api_version: str,
        embedding_deployment: str,
        chat_deployment: str,
    ) -> "OpenAIBackend":
        client = AzureOpenAI(api_key=api_key, azure_endpoint=endpoint, api_version=api_version, max_retries=0)
        return cls(client, name="Azure OpenAI", embedding_model=embedding_deployment, chat_model=chat_deployment)

    @classmethod
    def platform(cls, *, api_key: str, embedding_model: str, chat_model: str) -> "OpenAIBackend":
        client = OpenAI(api_key=api_key, max_retries=0)
        return cls(client, name="OpenAI", embedding_model=embedding_model, chat_model=chat_model)

    def embed(self, texts: Sequence[str], timeout: float | None = None) -> list[list[float]]:
        resp = self.client.embeddings.create(model=self.embedding_model, input=list(texts), timeout=timeout)
        data = sorted(resp.data, key=lambda item: item.index)
        return [list(item.embedding) for item in data]

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int,
        temperature: float,
        timeout: float | None = None,
    ) -> str:
        resp = self.client.chat.completions.create(
            model=self.chat_model,
            messages=[{"role": m["role"], "content": m["content"]} for m in messages],
            max_tokens=max_tokens,
            temperature=temperature,
            timeout=timeout,
        )
        if not resp.choices:
            raise RuntimeError(f"{self.name} returned no choices")
        return resp.choices[0].message.content or ""


__all__ = ["OpenAIBackend"]
