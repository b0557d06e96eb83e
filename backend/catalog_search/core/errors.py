"""Error types shared across the indexing and search pipeline."""

from __future__ import annotations


class CatalogSearchError(Exception):
    """Base error for catalog search operations.

    ``retryable`` tells an outer boundary whether the failure should be
    reported as "temporarily unavailable" rather than as a bad request.
    """

    retryable = False


class ProviderError(CatalogSearchError):
    """Every configured embedding/completion provider failed."""

    retryable = True

    def __init__(self, operation: str, detail: str) -> None:
        super().__init__(f"{operation} failed: {detail}")
        self.operation = operation
        self.detail = detail


class StoreUnavailableError(CatalogSearchError):
    """A backing store (catalog, checksums, vectors) could not be read or written."""

    retryable = True

    def __init__(self, store: str, detail: str) -> None:
        super().__init__(f"{store} unavailable: {detail}")
        self.store = store
        self.detail = detail


class ConfigurationError(CatalogSearchError):
    """Settings do not describe a usable setup."""


__all__ = [
    "CatalogSearchError",
    "ProviderError",
    "StoreUnavailableError",
    "ConfigurationError",
]
