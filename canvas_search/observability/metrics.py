"""Prometheus metrics for canvas search.

Provides metrics instrumentation for:
- HTTP request latency and counts
- Search outcomes (reranked, fallback, empty, error)
- LLM latency and token usage
- Embedding request latency
- Vector index operation latency
- Lifecycle pipeline stage outcomes
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from canvas_search.logging_config import get_logger

logger = get_logger(__name__)

# HTTP Request Metrics
HTTP_REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint", "status_code"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0],
)

HTTP_REQUEST_TOTAL = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

# Search Metrics
SEARCH_DURATION = Histogram(
    "search_duration_seconds",
    "Search-by-description duration in seconds",
    ["outcome"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
)

SEARCH_TOTAL = Counter(
    "searches_total",
    "Total searches by outcome",
    ["outcome"],  # reranked, fallback, empty, error
)

SEARCH_RESULTS_RETURNED = Histogram(
    "search_results_returned",
    "Number of results returned per search",
    buckets=[0, 1, 2, 3, 4, 5, 10, 20],
)

# LLM Metrics
LLM_REQUEST_DURATION = Histogram(
    "llm_request_duration_seconds",
    "LLM request duration in seconds",
    ["model", "status"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)

LLM_TOKENS_TOTAL = Counter(
    "llm_tokens_total",
    "Total LLM tokens used",
    ["model", "type"],  # "type" label values: prompt, completion
)

LLM_REQUEST_TOTAL = Counter(
    "llm_requests_total",
    "Total LLM requests",
    ["model", "status"],
)

# Embedding Metrics
EMBEDDING_REQUEST_DURATION = Histogram(
    "embedding_request_duration_seconds",
    "Embedding request duration in seconds",
    ["model", "status"],
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0],
)

EMBEDDING_REQUEST_TOTAL = Counter(
    "embedding_requests_total",
    "Total embedding requests",
    ["model", "status"],
)

# Vector Index Metrics
VECTOR_INDEX_OPERATION_DURATION = Histogram(
    "vector_index_operation_duration_seconds",
    "Vector index operation duration",
    ["operation", "status"],
    buckets=[0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

# Lifecycle Metrics
PIPELINE_STAGE_TOTAL = Counter(
    "pipeline_stages_total",
    "Lifecycle pipeline stage outcomes",
    ["stage", "status"],
)


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware to collect HTTP request metrics."""

    def __init__(self, app: ASGIApp) -> None:
        """Initialize the middleware."""
        super().__init__(app)

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        """Process request and collect metrics."""
        # Skip metrics endpoint to avoid recursion
        if request.url.path == "/metrics":
            return await call_next(request)

        start_time = time.perf_counter()

        response = await call_next(request)

        duration = time.perf_counter() - start_time
        endpoint = self._normalize_endpoint(request.url.path)

        HTTP_REQUEST_DURATION.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).observe(duration)

        HTTP_REQUEST_TOTAL.labels(
            method=request.method,
            endpoint=endpoint,
            status_code=response.status_code,
        ).inc()

        return response

    def _normalize_endpoint(self, path: str) -> str:
        """Normalize endpoint path to reduce cardinality.

        Project ids are collapsed so each route yields one label value.
        """
        if path.startswith("/health"):
            return "/health"
        if path.startswith("/api/v1/projects/"):
            parts = path.split("/")
            suffix = f"/{parts[5]}" if len(parts) > 5 else ""
            return f"/api/v1/projects/{{id}}{suffix}"
        return path


def get_metrics() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()


def get_metrics_content_type() -> str:
    """Get the content type for metrics response."""
    return CONTENT_TYPE_LATEST


def track_search(outcome: str, duration: float, results_returned: int) -> None:
    """Track a completed or failed search.

    Args:
        outcome: One of reranked, fallback, empty, error.
        duration: Search duration in seconds.
        results_returned: Number of results handed back.
    """
    SEARCH_TOTAL.labels(outcome=outcome).inc()
    SEARCH_DURATION.labels(outcome=outcome).observe(duration)
    if outcome != "error":
        SEARCH_RESULTS_RETURNED.observe(results_returned)


def track_llm_request(
    model: str,
    duration: float,
    prompt_tokens: int,
    completion_tokens: int,
    success: bool = True,
) -> None:
    """Track LLM request metrics.

    Args:
        model: LLM model name.
        duration: Request duration in seconds.
        prompt_tokens: Number of prompt tokens.
        completion_tokens: Number of completion tokens.
        success: Whether the request succeeded.
    """
    status = "success" if success else "error"

    LLM_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    LLM_REQUEST_TOTAL.labels(model=model, status=status).inc()

    if success:
        LLM_TOKENS_TOTAL.labels(model=model, type="prompt").inc(prompt_tokens)
        LLM_TOKENS_TOTAL.labels(model=model, type="completion").inc(completion_tokens)


def track_embedding_request(
    model: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track embedding request metrics."""
    status = "success" if success else "error"

    EMBEDDING_REQUEST_DURATION.labels(model=model, status=status).observe(duration)
    EMBEDDING_REQUEST_TOTAL.labels(model=model, status=status).inc()


def track_vector_index_operation(
    operation: str,
    duration: float,
    success: bool = True,
) -> None:
    """Track a vector index operation."""
    status = "success" if success else "error"
    VECTOR_INDEX_OPERATION_DURATION.labels(
        operation=operation,
        status=status,
    ).observe(duration)


def track_pipeline_stage(stage: str, status: str) -> None:
    """Count a lifecycle pipeline stage outcome."""
    PIPELINE_STAGE_TOTAL.labels(stage=stage, status=status).inc()
