"""API routes for project search and index maintenance."""

import base64
import binascii
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field

from canvas_search.api.dependencies import Services, get_services
from canvas_search.description.models import Snapshot
from canvas_search.logging_config import get_logger
from canvas_search.pipeline.models import PipelineReport
from canvas_search.search.models import SearchResponse

logger = get_logger(__name__)


# Create router
router = APIRouter(prefix="/api/v1", tags=["Search"])


class SearchRequest(BaseModel):
    """Request body for a description search."""

    query: str = Field(description="Free-text description of the project")


class SearchResultItem(BaseModel):
    """One matched project."""

    id: str = Field(description="Project identifier")
    similarity: float = Field(description="Similarity score")


class SearchResultsResponse(BaseModel):
    """Response from a description search."""

    query: str = Field(description="Normalized query")
    results: list[SearchResultItem] = Field(description="Ordered matches")
    reranked: bool = Field(description="False when similarity fallback was used")


class ContentSavedRequest(BaseModel):
    """Request body sent after a project's canvas is saved."""

    snapshot: str = Field(description="Base64-encoded canvas snapshot")
    mime_type: str = Field(default="image/png", description="Snapshot MIME type")
    canvas_json: dict[str, Any] | str | None = Field(
        default=None,
        description="Serialized canvas document",
    )


class DescriptionRequest(BaseModel):
    """Request body for a description-only refresh."""

    description: str = Field(min_length=1, description="New description")


class StageResultItem(BaseModel):
    """One pipeline stage outcome."""

    stage: str = Field(description="Stage name")
    status: str = Field(description="ok, error or skipped")
    error: dict[str, Any] | None = Field(default=None, description="Error body")


class PipelineReportResponse(BaseModel):
    """Per-stage outcome of a lifecycle hook."""

    project_id: str = Field(description="Project identifier")
    ok: bool = Field(description="True when no stage failed")
    failed_stages: list[str] = Field(description="Stages that failed")
    stages: list[StageResultItem] = Field(description="All stage outcomes")
    description: str | None = Field(default=None, description="Generated description")


class EnsureIndexResponse(BaseModel):
    """Response from index provisioning."""

    created: bool = Field(description="True if the index was created now")


def search_response_to_api(response: SearchResponse) -> SearchResultsResponse:
    """Convert internal SearchResponse to API SearchResultsResponse."""
    return SearchResultsResponse(
        query=response.query,
        results=[
            SearchResultItem(id=r.id, similarity=r.similarity)
            for r in response.results
        ],
        reranked=response.reranked,
    )


def report_to_response(report: PipelineReport) -> PipelineReportResponse:
    """Convert internal PipelineReport to API PipelineReportResponse."""
    return PipelineReportResponse(
        project_id=report.project_id,
        ok=report.ok,
        failed_stages=[stage.value for stage in report.failed_stages],
        stages=[
            StageResultItem(stage=s.stage.value, status=s.status.value, error=s.error)
            for s in report.stages
        ],
        description=report.description,
    )


def decode_snapshot(request: ContentSavedRequest) -> Snapshot:
    """Decode the base64 snapshot of a save request."""
    try:
        data = base64.b64decode(request.snapshot, validate=True)
    except (binascii.Error, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid snapshot", "message": str(e)},
        ) from e
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "Invalid snapshot", "message": "Snapshot is empty"},
        )
    return Snapshot(data=data, mime_type=request.mime_type)


@router.post("/search", response_model=SearchResultsResponse)
async def search_endpoint(
    request: SearchRequest,
    services: Services = Depends(get_services),
) -> SearchResultsResponse:
    """Find projects by describing their content.

    No matches is an empty list, not an error.
    """
    response = await services.orchestrator.search(request.query)
    return search_response_to_api(response)


@router.post(
    "/projects/{project_id}",
    response_model=PipelineReportResponse,
    status_code=status.HTTP_201_CREATED,
)
async def project_created_endpoint(
    project_id: str,
    services: Services = Depends(get_services),
) -> PipelineReportResponse:
    """Register a newly created project with a placeholder vector."""
    report = await services.pipeline.on_project_created(project_id)
    return report_to_response(report)


@router.put("/projects/{project_id}/content", response_model=PipelineReportResponse)
async def project_saved_endpoint(
    project_id: str,
    request: ContentSavedRequest,
    services: Services = Depends(get_services),
) -> PipelineReportResponse:
    """Re-describe and re-index a project after its canvas was saved."""
    snapshot = decode_snapshot(request)
    report = await services.pipeline.on_project_saved(
        project_id,
        snapshot,
        request.canvas_json,
    )
    return report_to_response(report)


@router.patch("/projects/{project_id}/description", response_model=PipelineReportResponse)
async def description_endpoint(
    project_id: str,
    request: DescriptionRequest,
    services: Services = Depends(get_services),
) -> PipelineReportResponse:
    """Replace a project's indexed description, keeping its vector."""
    report = await services.pipeline.refresh_description(project_id, request.description)
    return report_to_response(report)


@router.delete("/projects/{project_id}", response_model=PipelineReportResponse)
async def project_deleted_endpoint(
    project_id: str,
    services: Services = Depends(get_services),
) -> PipelineReportResponse:
    """Remove a deleted project's vector."""
    report = await services.pipeline.on_project_deleted(project_id)
    return report_to_response(report)


@router.post("/index", response_model=EnsureIndexResponse)
async def ensure_index_endpoint(
    services: Services = Depends(get_services),
) -> EnsureIndexResponse:
    """Create the project index if it does not exist."""
    created = await services.vector_index.ensure_index()
    return EnsureIndexResponse(created=created)
