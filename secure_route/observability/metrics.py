"""
Prometheus metrics collection for secure-route.
"""

import time
from typing import Optional
from prometheus_client import Counter, Histogram, CollectorRegistry, REGISTRY, generate_latest


class MetricsCollector:
    """Centralized metrics collection."""

    def __init__(self, registry: CollectorRegistry = REGISTRY):
        self.registry = registry

        # Session operation metrics
        self.auth_attempts = Counter(
            'secure_route_auth_attempts_total',
            'Authentication operations by outcome',
            ['operation', 'status'],
            registry=registry
        )

        self.lockdown_checks = Counter(
            'secure_route_lockdown_total',
            'Lockdown checks by outcome',
            ['outcome'],
            registry=registry
        )

        # Hook metrics
        self.hook_duration = Histogram(
            'secure_route_hook_duration_seconds',
            'Hook execution time in seconds',
            ['hook'],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
            registry=registry
        )

    def record_auth_attempt(self, operation: str, success: bool):
        """Record an authentication operation."""
        status = "success" if success else "failure"
        self.auth_attempts.labels(
            operation=operation,
            status=status
        ).inc()

    def record_lockdown(self, allowed: bool):
        """Record a lockdown check."""
        self.lockdown_checks.labels(
            outcome="allowed" if allowed else "denied"
        ).inc()

    def time_hook(self, hook: str) -> "HookTimer":
        """Return a context manager timing one hook invocation."""
        return HookTimer(self, hook)

    def get_metrics(self) -> str:
        """Get metrics in Prometheus format."""
        return generate_latest(self.registry).decode('utf-8')


class HookTimer:
    """Context manager observing hook duration."""

    def __init__(self, metrics: MetricsCollector, hook: str):
        self.metrics = metrics
        self.hook = hook
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.metrics.hook_duration.labels(hook=self.hook).observe(
            time.perf_counter() - self.start_time
        )


# Global metrics collector instance
_metrics_collector: Optional[MetricsCollector] = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector."""
    global _metrics_collector
    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()
    return _metrics_collector
