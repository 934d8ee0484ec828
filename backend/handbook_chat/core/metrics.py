"""Prometheus metrics instrumentation."""

from __future__ import annotations

from fastapi import Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

REGISTRY = CollectorRegistry()

CHAT_REQUESTS = Counter(
    "hbchat_chat_requests_total",
    "Chat questions handled, by outcome",
    labelnames=("outcome",),
    registry=REGISTRY,
)

ANSWER_LATENCY = Histogram(
    "hbchat_answer_latency_seconds",
    "Latency of generation calls",
    labelnames=("model",),
    registry=REGISTRY,
)

EMBED_CALLS = Counter(
    "hbchat_embed_calls_total",
    "Embedding calls issued, by backend and outcome",
    labelnames=("backend", "outcome"),
    registry=REGISTRY,
)

REINDEX_DURATION = Histogram(
    "hbchat_reindex_duration_seconds",
    "Index rebuild duration",
    labelnames=("collection",),
    registry=REGISTRY,
)

INDEX_SIZE = Gauge(
    "hbchat_index_chunks",
    "Number of chunks stored in the index collection",
    labelnames=("collection",),
    registry=REGISTRY,
)

SIGN_INS = Counter(
    "hbchat_sign_ins_total",
    "Sign-in attempts, by outcome",
    labelnames=("outcome",),
    registry=REGISTRY,
)


def metrics_response() -> Response:
    """Return Prometheus metrics as an HTTP response."""
    payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)


__all__ = [
    "REGISTRY",
    "CHAT_REQUESTS",
    "ANSWER_LATENCY",
    "EMBED_CALLS",
    "REINDEX_DURATION",
    "INDEX_SIZE",
    "SIGN_INS",
    "metrics_response",
]
