"""FastAPI application entry point.

Configures the application with logging, exception handling, metrics
and health checks.
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from canvas_search import __version__
from canvas_search.api.dependencies import Services, get_services
from canvas_search.api.routes import router
from canvas_search.config import get_settings
from canvas_search.exceptions import CanvasSearchError, ErrorCode
from canvas_search.logging_config import get_logger, setup_logging
from canvas_search.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)

logger = get_logger(__name__)

_STATUS_CODES: dict[ErrorCode, int] = {
    ErrorCode.INVALID_QUERY: 400,
    ErrorCode.LLM_RATE_LIMIT: 429,
    ErrorCode.DESCRIPTION_GENERATION_FAILED: 502,
    ErrorCode.DESCRIPTION_PARSE_ERROR: 502,
    ErrorCode.EMBEDDING_FAILED: 502,
    ErrorCode.EMBEDDING_DIMENSION_MISMATCH: 502,
    ErrorCode.EMBEDDING_EMPTY_INPUT: 400,
    ErrorCode.LLM_SERVICE_ERROR: 502,
    ErrorCode.PROJECT_STORE_ERROR: 502,
    ErrorCode.INDEX_UNAVAILABLE: 503,
    ErrorCode.INDEX_DIMENSION_MISMATCH: 500,
    ErrorCode.INDEX_TIMEOUT: 504,
    ErrorCode.LLM_TIMEOUT: 504,
}


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Handles startup and shutdown events.
    """
    settings = get_settings()
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting Canvas Search",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    yield

    logger.info("Shutting down Canvas Search")
    if get_services.cache_info().currsize:
        await get_services().aclose()
        get_services.cache_clear()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance.
    """
    settings = get_settings()

    app = FastAPI(
        title="Canvas Search",
        description="Find canvas projects by describing what is on them",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )

    app.add_middleware(MetricsMiddleware)
    app.add_exception_handler(CanvasSearchError, canvas_search_exception_handler)

    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["Metrics"])
    app.include_router(router)

    return app


async def canvas_search_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Convert CanvasSearchError exceptions to structured JSON responses."""
    if not isinstance(exc, CanvasSearchError):
        return JSONResponse(
            status_code=500,
            content={
                "error": {
                    "code": ErrorCode.INTERNAL_ERROR.value,
                    "message": str(exc),
                    "details": {},
                }
            },
        )

    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )

    return JSONResponse(
        status_code=get_status_code(exc.code),
        content=exc.to_dict(),
    )


def get_status_code(code: ErrorCode) -> int:
    """Map error code to HTTP status code."""
    return _STATUS_CODES.get(code, 500)


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(
    services: Services = Depends(get_services),
) -> JSONResponse:
    """Readiness probe.

    Ready when the project index can be read.
    """
    checks: dict[str, str] = {"config": "ok"}

    try:
        await services.vector_index.count()
        checks["vector_index"] = "ok"
    except CanvasSearchError as e:
        logger.warning(f"Readiness check failed: {e.message}")
        checks["vector_index"] = "unavailable"

    all_ok = all(v == "ok" for v in checks.values())

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
            "timestamp": datetime.now(UTC).isoformat(),
        },
    )


async def liveness_check() -> dict[str, str]:
    """Liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus scrape endpoint."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()
