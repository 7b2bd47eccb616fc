"""Per-message tracing and latency accounting."""

from __future__ import annotations

import threading
import time
import uuid
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone

from rag_dispatch.types import ToolTrace


@dataclass(slots=True)
class MessageTrace:
    trace_id: str
    timestamp_utc: str
    session_id: str
    message: str
    route: str
    answer_preview: str
    latency_ms: float
    tool_name: str | None = None
    tool_traces: list[ToolTrace] = field(default_factory=list)


class TraceStore:
    """In-memory trace storage for handled messages, shared across threads."""

    def __init__(self, max_records: int = 1000) -> None:
        self._records: dict[str, MessageTrace] = {}
        self._max_records = max_records
        self._lock = threading.Lock()

    def create_record(
        self,
        *,
        session_id: str,
        message: str,
        route: str,
        answer: str,
        latency_ms: float,
        tool_name: str | None = None,
        tool_traces: list[ToolTrace] | None = None,
    ) -> MessageTrace:
        record = MessageTrace(
            trace_id=str(uuid.uuid4()),
            timestamp_utc=datetime.now(timezone.utc).isoformat(),
            session_id=session_id,
            message=message,
            route=route,
            answer_preview=answer[:320],
            latency_ms=latency_ms,
            tool_name=tool_name,
            tool_traces=list(tool_traces or []),
        )
        with self._lock:
            self._records[record.trace_id] = record
            while len(self._records) > self._max_records:
                del self._records[next(iter(self._records))]
        return record

    def get(self, trace_id: str) -> MessageTrace:
        with self._lock:
            record = self._records.get(trace_id)
        if record is None:
            raise KeyError(f"Trace not found: {trace_id}")
        return record

    def list_recent(self, limit: int = 20) -> list[MessageTrace]:
        with self._lock:
            return list(self._records.values())[-limit:]

    def summary(self) -> dict[str, float | int | dict[str, int]]:
        """Aggregate request counts and latency for dashboards."""
        with self._lock:
            records = list(self._records.values())
        total = len(records)
        if total == 0:
            return {
                "total_requests": 0,
                "avg_latency_ms": 0.0,
                "p95_latency_ms": 0.0,
                "routes": {},
            }

        latencies = sorted(record.latency_ms for record in records)
        p95_index = max(0, int((len(latencies) * 0.95) - 1))
        return {
            "total_requests": total,
            "avg_latency_ms": sum(latencies) / total,
            "p95_latency_ms": latencies[p95_index],
            "routes": dict(Counter(record.route for record in records)),
        }


class Timer:
    """Simple context timer used by the orchestrator."""

    def __init__(self) -> None:
        self._start = 0.0
        self.elapsed_ms = 0.0

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, exc_type: object, exc: object, tb: object) -> None:
        self.elapsed_ms = (time.perf_counter() - self._start) * 1000.0
