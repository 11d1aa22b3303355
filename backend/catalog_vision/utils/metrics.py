"""
Catalog Vision Metrics Collection
In-process counters and stage timings for image analysis.
"""
import time
from collections import defaultdict, Counter
from threading import Lock
from typing import Any, Dict, List, Optional

import numpy as np


class MetricsCollector:
    """
    Thread-safe in-process metrics.
    
    Counters:
        analysis_requests_total
        analysis_failed_total_<error type>
        model_absent_total_<classifier>
        prediction_total_<classifier>_<label>
    
    Timings are kept per analysis stage in milliseconds.
    """
    
    def __init__(self):
        self._lock = Lock()
        self._counters: Dict[str, int] = Counter()
        self._timings: Dict[str, List[float]] = defaultdict(list)
        self._start_time = time.time()
    
    def _increment(self, name: str):
        with self._lock:
            self._counters[name] += 1
    
    def increment_analysis_count(self):
        self._increment("analysis_requests_total")
    
    def increment_failure_count(self, error_type: str):
        self._increment(f"analysis_failed_total_{error_type}")
    
    def increment_fallback_count(self, classifier: str):
        """Count a prediction answered without a trained model."""
        self._increment(f"model_absent_total_{classifier}")
    
    def record_prediction(self, classifier: str, label: Any):
        """Count a label produced by a classifier or its heuristic."""
        self._increment(f"prediction_total_{classifier}_{label}")
    
    def record_timing(self, stage: str, duration_ms: float):
        with self._lock:
            self._timings[f"{stage}_duration_ms"].append(duration_ms)
    
    def get_counters(self) -> Dict[str, int]:
        with self._lock:
            return dict(self._counters)
    
    def get_timing_stats(self) -> Dict[str, Dict[str, float]]:
        """count, mean, min, max, p50 and p95 per recorded stage."""
        with self._lock:
            snapshot = {stage: list(values) for stage, values in self._timings.items() if values}
        
        stats = {}
        for stage, values in snapshot.items():
            arr = np.asarray(values, dtype=np.float64)
            stats[stage] = {
                "count": int(arr.size),
                "mean": float(arr.mean()),
                "min": float(arr.min()),
                "max": float(arr.max()),
                "p50": float(np.percentile(arr, 50)),
                "p95": float(np.percentile(arr, 95)),
            }
        return stats
    
    def get_fallback_ratio(self) -> float:
        """Share of analyses answered without a position model."""
        counters = self.get_counters()
        total = counters.get("analysis_requests_total", 0)
        if total == 0:
            return 0.0
        return counters.get("model_absent_total_position", 0) / total
    
    def get_summary(self) -> Dict[str, Any]:
        return {
            "uptime_seconds": time.time() - self._start_time,
            "counters": self.get_counters(),
            "fallback_ratio": self.get_fallback_ratio(),
            "timing_stats": self.get_timing_stats(),
        }
    
    def reset(self):
        """Reset all metrics (for testing)."""
        with self._lock:
            self._counters.clear()
            self._timings.clear()
            self._start_time = time.time()


_metrics: Optional[MetricsCollector] = None


def get_metrics() -> MetricsCollector:
    """Get or create global metrics collector."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def reset_metrics():
    """Reset global metrics (for testing)."""
    global _metrics
    if _metrics is not None:
        _metrics.reset()
