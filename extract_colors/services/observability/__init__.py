"""
Observability module for the palette extraction pipeline.

Per-stage timing and memory metrics, collected in-process.
"""

from extract_colors.services.observability.metrics import (
    PerformanceMetrics,
    MetricsCollector,
    get_metrics_collector,
    performance_monitor,
    performance_tracked,
)

__all__ = [
    'PerformanceMetrics',
    'MetricsCollector',
    'get_metrics_collector',
    'performance_monitor',
    'performance_tracked',
]
