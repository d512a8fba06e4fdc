"""Observability: resolution counters, store timings and run summary logging."""

import time
from contextlib import contextmanager
from typing import Any

import structlog

logger = structlog.get_logger().bind(source="observability")

# Counter names
RESOLUTION_PREFIX = "resolution"
STORE_ERRORS = "store.errors"
STEPS_OK = "compound.steps_ok"
STEPS_FAILED = "compound.steps_failed"
SNAPSHOT_TIMER = "store.fetch_all"


class Metrics:
    """In-process counters and timers for one run of the resolver."""

    def __init__(self):
        self._counters: dict[str, int] = {}
        self._timers: dict[str, list[float]] = {}

    def counter(self, name: str, value: int = 1):
        self._counters[name] = self._counters.get(name, 0) + value

    def count(self, name: str) -> int:
        return self._counters.get(name, 0)

    def outcome(self, tier: str):
        """Count one classified resolution, e.g. resolution.clarify."""
        self.counter(f"{RESOLUTION_PREFIX}.{tier}")

    @contextmanager
    def timer(self, name: str):
        """Time the wrapped block, recording the duration even if it raises."""
        start = time.perf_counter()
        try:
            yield
        finally:
            self._timers.setdefault(name, []).append(time.perf_counter() - start)

    def summary(self) -> dict[str, Any]:
        timers = {}
        for name, durations in self._timers.items():
            timers[name] = {
                "count": len(durations),
                "total": round(sum(durations), 4),
                "avg": round(sum(durations) / len(durations), 4),
                "max": round(max(durations), 4),
            }
        return {"counters": dict(self._counters), "timers": timers}

    def reset(self):
        self._counters.clear()
        self._timers.clear()


# Module-level singleton
metrics = Metrics()


def log_run_summary():
    """Log the current metrics summary via structlog, if anything was recorded."""
    summary = metrics.summary()
    if summary["counters"] or summary["timers"]:
        logger.info("run_summary", **summary)
