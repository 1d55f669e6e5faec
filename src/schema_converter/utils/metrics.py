"""
Metrics Collection Module for the Schema Converter
Provides in-process counters, gauges and timers for conversion runs
"""
from __future__ import annotations

import statistics
import threading
from collections import defaultdict
from typing import Any, Dict, List, Optional


class MetricsCollector:
    """Thread-safe metrics collector"""

    _instance: Optional["MetricsCollector"] = None
    _lock = threading.Lock()

    def __new__(cls) -> "MetricsCollector":
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super().__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        if self._initialized:
            return

        self._counters: Dict[str, float] = defaultdict(float)
        self._gauges: Dict[str, float] = {}
        self._timers: Dict[str, List[float]] = defaultdict(list)
        self._data_lock = threading.Lock()
        self._enabled = True
        self._initialized = True

    def enable(self) -> None:
        """Enable metrics collection"""
        self._enabled = True

    def disable(self) -> None:
        """Disable metrics collection"""
        self._enabled = False

    def counter(self, name: str, value: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
        """Increment a counter"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            self._counters[key] += value

    def gauge(self, name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Set a gauge value"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            self._gauges[key] = value

    def timer(self, name: str, duration: float, labels: Optional[Dict[str, str]] = None) -> None:
        """Record a timer value"""
        if not self._enabled:
            return

        key = self._make_key(name, labels)
        with self._data_lock:
            self._timers[key].append(duration)

    @property
    def enabled(self) -> bool:
        return self._enabled

    def _make_key(self, name: str, labels: Optional[Dict[str, str]] = None) -> str:
        """Create a unique key for metric with labels"""
        if not labels:
            return name
        label_str = ",".join(f"{k}={v}" for k, v in sorted(labels.items()))
        return f"{name}{{{label_str}}}"

    def get_counter(self, name: str, labels: Optional[Dict[str, str]] = None) -> float:
        with self._data_lock:
            return self._counters.get(self._make_key(name, labels), 0.0)

    def get_metrics(self) -> Dict[str, Any]:
        """Get all collected metrics"""
        with self._data_lock:
            metrics: Dict[str, Any] = {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
                "timers": {},
            }

            for key, values in self._timers.items():
                if values:
                    metrics["timers"][key] = {
                        "count": len(values),
                        "sum": sum(values),
                        "min": min(values),
                        "max": max(values),
                        "mean": statistics.mean(values),
                        "median": statistics.median(values),
                    }

            return metrics

    def reset(self) -> None:
        """Reset all metrics"""
        with self._data_lock:
            self._counters.clear()
            self._gauges.clear()
            self._timers.clear()


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector instance"""
    return MetricsCollector()


def counter(name: str, value: float = 1.0, labels: Optional[Dict[str, str]] = None) -> None:
    get_metrics_collector().counter(name, value, labels)


def gauge(name: str, value: float, labels: Optional[Dict[str, str]] = None) -> None:
    get_metrics_collector().gauge(name, value, labels)


def timer(name: str, duration: float, labels: Optional[Dict[str, str]] = None) -> None:
    get_metrics_collector().timer(name, duration, labels)


class ConverterMetrics:
    """Conversion-specific metrics helper"""

    @staticmethod
    def record_extraction(duration: float, success: bool, source_kind: str) -> None:
        labels = {"source_kind": source_kind, "success": str(success).lower()}
        timer("extraction_duration", duration, labels)
        counter("extraction_total", 1.0, labels)

    @staticmethod
    def record_conversion(duration: float, success: bool, target: str) -> None:
        labels = {"target": target, "success": str(success).lower()}
        timer("conversion_duration", duration, labels)
        counter("conversion_total", 1.0, labels)

    @staticmethod
    def record_warnings(count: int, target: str) -> None:
        counter("conversion_warnings_total", float(count), {"target": target})

    @staticmethod
    def record_relationships(count: int) -> None:
        gauge("last_relationship_count", float(count))

    @staticmethod
    def record_llm_call(duration: float, model_id: str, input_tokens: int, output_tokens: int) -> None:
        """Record LLM call metrics"""
        labels = {"model_id": model_id}
        timer("llm_call_duration", duration, labels)
        counter("llm_call_total", 1.0, labels)
        counter("llm_input_tokens_total", float(input_tokens), labels)
        counter("llm_output_tokens_total", float(output_tokens), labels)

    @staticmethod
    def record_error(error_type: str, category: str) -> None:
        """Record error metrics"""
        counter("errors_total", 1.0, {"error_type": error_type, "category": category})
