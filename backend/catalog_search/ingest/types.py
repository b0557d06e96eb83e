"""Common ingestion data structures."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(slots=True)
class BatchFailure:
    """A batch whose provider call failed; its records stay stale for the next run."""

    batch_number: int
    record_ids: list[int]
    error: str


@dataclass(slots=True)
class EmbedRunStats:
    """Aggregated statistics for one embedding run."""

    run_id: str
    namespace: str
    total: int = 0
    changed: int = 0
    processed: int = 0
    batches: int = 0
    provider_calls: int = 0
    failed_records: list[int] = field(default_factory=list)
    failed_batches: list[BatchFailure] = field(default_factory=list)
    checksum_fallback: bool = False

    @property
    def success(self) -> bool:
        return not self.failed_batches and not self.failed_records

    def to_dict(self) -> dict[str, object]:
        return {
            "run_id": self.run_id,
            "namespace": self.namespace,
            "total": self.total,
            "changed": self.changed,
            "processed": self.processed,
            "batches": self.batches,
            "provider_calls": self.provider_calls,
            "failed_records": list(self.failed_records),
            "failed_batches": [
                {"batch_number": item.batch_number, "record_ids": list(item.record_ids), "error": item.error}
                for item in self.failed_batches
            ],
            "checksum_fallback": self.checksum_fallback,
            "success": self.success,
        }


__all__ = ["BatchFailure", "EmbedRunStats"]
