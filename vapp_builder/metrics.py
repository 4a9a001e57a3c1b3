"""Prometheus metrics for the vApp builder.

Tracks remote driver call latency, task wait latency and build failures.
Served by whatever process embeds the builder via get_metrics().
"""
from __future__ import annotations

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    Counter,
    Histogram,
    generate_latest,
)

driver_call_duration = Histogram(
    "vapp_builder_driver_call_seconds",
    "Duration of remote driver calls",
    ["operation", "status"],
    buckets=(0.1, 0.25, 0.5, 1, 2, 5, 10, 30, float("inf")),
)

task_wait_duration = Histogram(
    "vapp_builder_task_wait_seconds",
    "Time spent waiting for remote tasks to reach a terminal state",
    ["operation", "status"],
    buckets=(1, 5, 10, 30, 60, 120, 300, 600, 1800, float("inf")),
)

build_errors = Counter(
    "vapp_builder_build_errors_total",
    "Total vApp build failures",
    ["branch", "error"],
)


def get_metrics() -> tuple[bytes, str]:
    """Generate Prometheus metrics output."""
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
