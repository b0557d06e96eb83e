"""Provider backend interface."""

from __future__ import annotations

from typing import Mapping, Protocol, Sequence, runtime_checkable

ChatMessage = Mapping[str, str]


@runtime_checkable
class ProviderBackend(Protocol):
    """One concrete embedding/completion endpoint with its own model ids."""

    name: str

    def embed(self, texts: Sequence[str], timeout: float | None = None) -> list[list[float]]:
        ...

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        max_tokens: int,
        temperature: float,
        timeout: float | None = None,
    ) -> str:
        ...


__all__ = ["ProviderBackend", "ChatMessage"]
