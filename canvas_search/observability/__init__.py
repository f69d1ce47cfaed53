"""Observability module for metrics and monitoring."""

from canvas_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
    track_embedding_request,
    track_llm_request,
    track_pipeline_stage,
    track_search,
    track_vector_index_operation,
)

__all__ = [
    "MetricsMiddleware",
    "get_metrics",
    "get_metrics_content_type",
    "track_embedding_request",
    "track_llm_request",
    "track_pipeline_stage",
    "track_search",
    "track_vector_index_operation",
]
