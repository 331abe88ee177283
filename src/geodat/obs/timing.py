"""Operation timing records and summary for host-level observability."""

from __future__ import annotations

import time
import uuid
from collections import deque
from dataclasses import dataclass
from datetime import datetime, timezone


@dataclass(slots=True)
class TimingRecord:
    record_id: str
    timestamp_utc: str
    operation: str
    filename: str
    detected_type: str
    input_bytes: int
    entries_in: int
    entries_out: int
    latency_ms: float


class TimingStore:
    """Bounded in-memory store of decode/filter timings."""

    def __init__(self, max_records: int = 500) -> None:
        self._records: deque[TimingRecord] = deque(maxlen=max_records)

    def record(
        self,
        *,
        operation: str,
        latency_ms: float,
        filename: str = "",
        detected_type: str = "",
        input_bytes: int = 0,
        entries_in: int = 0,
        entries_out: int = 0,
    ) -> TimingRecord:
        record = TimingRecord(
            record_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            operation=operation,
            filename=filename,
            detected_type=detected_type,
            input_bytes=input_bytes,
            entries_in=entries_in,
            entries_out=entries_out,
            latency_ms=latency_ms,
        )
        self._records.append(record)
        return record

    def list_recent(self, limit: int = 20) -> list[TimingRecord]:
        return list(self._records)[-limit:]

    def summary(self) -> dict[str, float | int]:
        """Aggregate request counts and latencies per operation."""
        records = list(self._records)
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "decode_requests": 0,
                "filter_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "avg_decode_ms": 0.0,
                "avg_filter_ms": 0.0,
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        decodes = [record.latency_ms for record in records if record.operation == "decode"]
        filters = [record.latency_ms for record in records if record.operation == "filter"]

        return {
            "total_requests": total,
            "decode_requests": len(decodes),
            "filter_requests": len(filters),
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "avg_decode_ms": sum(decodes) / len(decodes) if decodes else 0.0,
            "avg_filter_ms": sum(filters) / len(filters) if filters else 0.0,
        }


@dataclass(slots=True)
class Timer:
    """Wall time of a `with` block, in milliseconds; still set when the block raises."""

    elapsed_ms: float = 0.0
    started_ns: int = 0

    def __enter__(self) -> "Timer":
        self.started_ns = time.perf_counter_ns()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter_ns() - self.started_ns) / 1_000_000
