"""Keeps the vector index in step with the project lifecycle.

Project create, save and delete hooks each run a short staged pipeline
and return a PipelineReport instead of raising, so the caller can tell
which step of a partially failed run went wrong.
"""

import base64
from collections.abc import Awaitable
from typing import Any, TypeVar

from canvas_search.description.models import Snapshot
from canvas_search.description.structural import extract_structural_content
from canvas_search.description.synthesizer import DescriptionSynthesizer
from canvas_search.exceptions import CanvasSearchError
from canvas_search.logging_config import get_logger
from canvas_search.observability.metrics import track_pipeline_stage
from canvas_search.pipeline.models import PipelineReport, Stage, StageResult, StageStatus
from canvas_search.projects.store import ProjectStore
from canvas_search.vectorstore.service import VectorIndex

logger = get_logger(__name__)

T = TypeVar("T")


def thumbnail_data_url(snapshot: Snapshot) -> str:
    """Encode a snapshot as a ``data:`` URL."""
    encoded = base64.b64encode(snapshot.data).decode("ascii")
    return f"data:{snapshot.mime_type};base64,{encoded}"


class ProjectIndexingPipeline:
    """Runs index maintenance for project create, save and delete."""

    def __init__(
        self,
        synthesizer: DescriptionSynthesizer,
        vector_index: VectorIndex,
        project_store: ProjectStore,
    ) -> None:
        self._synthesizer = synthesizer
        self._vector_index = vector_index
        self._project_store = project_store

    def _record(
        self,
        report: PipelineReport,
        stage: Stage,
        status: StageStatus,
        error: CanvasSearchError | None = None,
    ) -> None:
        report.stages.append(
            StageResult(
                stage=stage,
                status=status,
                error=error.to_dict()["error"] if error else None,
            )
        )
        track_pipeline_stage(stage.value, status.value)
        if error is not None:
            logger.error(
                f"Stage {stage.value} failed: {error.message}",
                extra={"project_id": report.project_id, "error_code": error.code.value},
            )

    def _skip(self, report: PipelineReport, *stages: Stage) -> None:
        for stage in stages:
            self._record(report, stage, StageStatus.SKIPPED)

    async def _run(
        self,
        report: PipelineReport,
        stage: Stage,
        step: Awaitable[T],
    ) -> tuple[bool, T | None]:
        try:
            value = await step
        except CanvasSearchError as e:
            self._record(report, stage, StageStatus.ERROR, e)
            return False, None
        self._record(report, stage, StageStatus.OK)
        return True, value

    async def on_project_created(self, project_id: str) -> PipelineReport:
        """Give a new project a placeholder vector so it is searchable."""
        report = PipelineReport(project_id=project_id)
        await self._run(report, Stage.INDEX_WRITE, self._vector_index.create_placeholder(project_id))
        return report

    async def on_project_saved(
        self,
        project_id: str,
        snapshot: Snapshot,
        canvas_json: str | dict[str, Any] | None = None,
    ) -> PipelineReport:
        """Regenerate description and embedding after a content save.

        Stages: structural extraction, image analysis, embedding, index
        write, metadata persist. Index write and metadata persist are
        independent: either may fail without undoing the other.
        """
        report = PipelineReport(project_id=project_id)

        if canvas_json is None:
            structural = None
            self._skip(report, Stage.STRUCTURAL_EXTRACTION)
        else:
            structural = extract_structural_content(canvas_json)
            self._record(report, Stage.STRUCTURAL_EXTRACTION, StageStatus.OK)

        described, description = await self._run(
            report,
            Stage.IMAGE_ANALYSIS,
            self._synthesizer.describe(snapshot, structural, project_id=project_id),
        )
        if not described or description is None:
            self._skip(report, Stage.EMBEDDING, Stage.INDEX_WRITE, Stage.METADATA_PERSIST)
            return report
        report.description = description

        embedded, embedding = await self._run(
            report,
            Stage.EMBEDDING,
            self._synthesizer.embed(description),
        )
        if embedded and embedding is not None:
            await self._run(
                report,
                Stage.INDEX_WRITE,
                self._vector_index.upsert(project_id, description, embedding),
            )
        else:
            self._skip(report, Stage.INDEX_WRITE)

        await self._run(
            report,
            Stage.METADATA_PERSIST,
            self._project_store.patch_project_metadata(
                project_id,
                description,
                thumbnail_data_url(snapshot),
            ),
        )

        logger.info(
            "Project save pipeline finished",
            extra={
                "project_id": project_id,
                "failed_stages": [s.value for s in report.failed_stages],
            },
        )
        return report

    async def refresh_description(self, project_id: str, description: str) -> PipelineReport:
        """Replace the indexed description while keeping the stored vector."""
        report = PipelineReport(project_id=project_id, description=description)
        await self._run(
            report,
            Stage.INDEX_WRITE,
            self._vector_index.update_description_only(project_id, description),
        )
        return report

    async def on_project_deleted(self, project_id: str) -> PipelineReport:
        """Remove the project's vector after the project itself is gone.

        A failure here is reported, never rolled back into the project
        deletion.
        """
        report = PipelineReport(project_id=project_id)
        await self._run(report, Stage.INDEX_DELETE, self._vector_index.delete_point(project_id))
        return report
