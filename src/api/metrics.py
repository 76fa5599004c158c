"""Metrics service for the recommendation endpoints.

Singleton service tracking call counts, failures and latency per endpoint.
"""

import threading
from typing import Dict


class _EndpointStats:
    """Counters for one endpoint. Callers hold the service lock."""

    def __init__(self) -> None:
        self.call_count = 0
        self.error_count = 0
        self.total_latency_ms = 0.0
        self.min_latency_ms = float("inf")
        self.max_latency_ms = 0.0

    def record(self, latency_ms: float, success: bool) -> None:
        self.call_count += 1
        if not success:
            self.error_count += 1
        self.total_latency_ms += latency_ms
        self.min_latency_ms = min(self.min_latency_ms, latency_ms)
        self.max_latency_ms = max(self.max_latency_ms, latency_ms)

    def snapshot(self) -> Dict:
        avg_latency = (
            self.total_latency_ms / self.call_count if self.call_count > 0 else 0.0
        )
        return {
            "call_count": self.call_count,
            "error_count": self.error_count,
            "average_latency_ms": round(avg_latency, 2),
            "min_latency_ms": round(self.min_latency_ms, 2) if self.call_count else 0.0,
            "max_latency_ms": round(self.max_latency_ms, 2),
        }


class MetricsService:
    """Singleton service for tracking API metrics.

    Thread-safe: route handlers run in FastAPI's threadpool.
    """

    _instance = None
    _lock = threading.Lock()

    def __new__(cls):
        """Create singleton instance."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = super(MetricsService, cls).__new__(cls)
                    cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize metrics counters."""
        if self._initialized:
            return

        self._lock = threading.Lock()
        self._endpoints: Dict[str, _EndpointStats] = {}
        self._initialized = True

    def record_call(self, endpoint: str, latency_ms: float, success: bool = True) -> None:
        """Record one call to an endpoint.

        Args:
            endpoint: Endpoint name, e.g. "recommendations"
            latency_ms: Latency in milliseconds
            success: False if the call ended in an error
        """
        with self._lock:
            stats = self._endpoints.setdefault(endpoint, _EndpointStats())
            stats.record(latency_ms, success)

    def get_metrics(self) -> Dict:
        """Get current metrics.

        Returns:
            Dictionary keyed by endpoint name. Each value holds call_count,
            error_count, average_latency_ms, min_latency_ms and
            max_latency_ms.
        """
        with self._lock:
            return {name: stats.snapshot() for name, stats in self._endpoints.items()}

    def reset(self) -> None:
        """Reset all metrics (useful for testing)."""
        with self._lock:
            self._endpoints.clear()


# Global singleton instance
metrics_service = MetricsService()
