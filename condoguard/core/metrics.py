# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.

"""
Metrics — In-memory counters for access-core observability.

Tracks credential issuance, checkpoint outcomes and sweep activity.
"""

from __future__ import annotations

import time
from collections import defaultdict
from typing import Any, Dict

MAX_OBSERVATIONS = 1000


class Metrics:
    """Simple in-memory metrics collector."""

    def __init__(self):
        self._counters: Dict[str, int] = defaultdict(int)
        self._gauges: Dict[str, float] = {}
        self._timings: Dict[str, list] = defaultdict(list)
        self._start_time = time.time()

    def inc(self, name: str, amount: int = 1) -> None:
        self._counters[name] += amount

    def get_counter(self, name: str) -> int:
        return self._counters.get(name, 0)

    def set_gauge(self, name: str, value: float) -> None:
        self._gauges[name] = value

    def get_gauge(self, name: str) -> float:
        return self._gauges.get(name, 0.0)

    def observe(self, name: str, value_ms: float) -> None:
        """Record a duration in milliseconds (e.g. one sweep)."""
        samples = self._timings[name]
        samples.append(value_ms)
        if len(samples) > MAX_OBSERVATIONS:
            del samples[: len(samples) - MAX_OBSERVATIONS]

    def record_validation(self, outcome_label: str) -> None:
        """Count one checkpoint decision, e.g. ``accepted`` or ``tenant_mismatch``."""
        self.inc("validations_total")
        self.inc(f"validation:{outcome_label}")

    def reset(self) -> None:
        self._counters.clear()
        self._gauges.clear()
        self._timings.clear()

    def snapshot(self) -> Dict[str, Any]:
        """Export all metrics as a dict."""
        result: Dict[str, Any] = {
            "uptime_seconds": round(time.time() - self._start_time, 1),
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
        }
        for name, values in self._timings.items():
            if values:
                result[f"timing_{name}"] = {
                    "count": len(values),
                    "avg_ms": round(sum(values) / len(values), 2),
                    "max_ms": round(max(values), 2),
                }
        return result


# Global singleton
guard_metrics = Metrics()
