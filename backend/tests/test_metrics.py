"""
Unit tests for the in-process metrics collector.
"""
import pytest

from catalog_vision.utils.ids import generate_run_id
from catalog_vision.utils.metrics import MetricsCollector


class TestMetricsCollector:
    """Counters and timing statistics"""
    
    def test_counters(self):
        """Test counter names and values"""
        metrics = MetricsCollector()
        metrics.increment_analysis_count()
        metrics.increment_failure_count("DecodeFailure")
        metrics.increment_fallback_count("position")
        metrics.increment_fallback_count("position")
        assert metrics.get_counters() == {
            "analysis_requests_total": 1,
            "analysis_failed_total_DecodeFailure": 1,
            "model_absent_total_position": 2,
        }
    
    def test_timing_stats(self):
        """Test timing statistics with percentiles"""
        metrics = MetricsCollector()
        for value in (10.0, 20.0, 30.0, 40.0, 50.0):
            metrics.record_timing("position", value)
        stats = metrics.get_timing_stats()["position_duration_ms"]
        assert stats["count"] == 5
        assert stats["mean"] == pytest.approx(30.0)
        assert stats["min"] == 10.0
        assert stats["max"] == 50.0
        assert stats["p50"] == pytest.approx(30.0)
        assert stats["p95"] == pytest.approx(48.0)
    
    def test_fallback_ratio_without_analyses(self):
        """Test fallback ratio before any analysis"""
        assert MetricsCollector().get_fallback_ratio() == 0.0
    
    def test_reset(self):
        """Test that reset clears counters and timings"""
        metrics = MetricsCollector()
        metrics.increment_analysis_count()
        metrics.record_timing("analysis", 1.0)
        metrics.reset()
        assert metrics.get_counters() == {}
        assert metrics.get_timing_stats() == {}


class TestRunIds:
    """Run id format"""
    
    def test_prefix_and_shape(self):
        """Test run id format"""
        run_id = generate_run_id("trn")
        prefix, timestamp, suffix = run_id.split("-")
        assert prefix == "trn"
        assert len(timestamp) == 14 and timestamp.isdigit()
        assert len(suffix) == 8
    
    def test_unique(self):
        """Test that run ids differ"""
        assert generate_run_id() != generate_run_id()
