# Copyright (c) 2026 CondoGuard Contributors. All Rights Reserved.
"""Unit tests for Metrics."""

from condoguard.core.metrics import Metrics


class TestMetrics:
    def test_counter(self):
        m = Metrics()
        m.inc("credentials_issued", 5)
        m.inc("credentials_issued")
        assert m.get_counter("credentials_issued") == 6
        assert m.get_counter("missing") == 0

    def test_gauge(self):
        m = Metrics()
        m.set_gauge("grants_total", 12)
        assert m.get_gauge("grants_total") == 12
        assert m.get_gauge("missing") == 0.0

    def test_record_validation(self):
        m = Metrics()
        m.record_validation("accepted")
        m.record_validation("expired")
        m.record_validation("expired")
        assert m.get_counter("validations_total") == 3
        assert m.get_counter("validation:expired") == 2

    def test_snapshot_with_timings(self):
        m = Metrics()
        m.observe("sweep", 2.0)
        m.observe("sweep", 4.0)
        snap = m.snapshot()
        assert "uptime_seconds" in snap
        assert snap["timing_sweep"] == {"count": 2, "avg_ms": 3.0, "max_ms": 4.0}

    def test_reset(self):
        m = Metrics()
        m.inc("sweep_runs")
        m.reset()
        assert m.snapshot()["counters"] == {}
