"""Prometheus metrics for inbound rejections and upstream calls."""

from __future__ import annotations

import logging

from prometheus_client import Counter, Histogram, start_http_server

logger = logging.getLogger(__name__)

REQUESTS_REJECTED = Counter(
    "gateway_requests_rejected_total",
    "Total number of analysis requests rejected before forwarding",
    labelnames=("kind",),
)
UPSTREAM_CALLS = Counter(
    "gateway_upstream_calls_total",
    "Total number of calls made to the inference host",
    labelnames=("kind", "outcome"),
)
UPSTREAM_LATENCY = Histogram(
    "gateway_upstream_latency_seconds",
    "Wall time spent waiting on the inference host",
    labelnames=("kind",),
)

_metrics_started = False


def ensure_metrics_server(port: int) -> None:
    global _metrics_started
    if _metrics_started:
        return
    start_http_server(port)
    _metrics_started = True
    logger.info("Prometheus metrics server started", extra={"port": port})


def record_rejected(kind: str) -> None:
    REQUESTS_REJECTED.labels(kind=kind).inc()


def record_upstream_call(kind: str, outcome: str, elapsed_sec: float) -> None:
    UPSTREAM_CALLS.labels(kind=kind, outcome=outcome).inc()
    UPSTREAM_LATENCY.labels(kind=kind).observe(elapsed_sec)
