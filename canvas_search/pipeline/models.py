"""Lifecycle pipeline result models."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Stage(str, Enum):
    """Steps of the project lifecycle pipelines."""

    STRUCTURAL_EXTRACTION = "structural_extraction"
    IMAGE_ANALYSIS = "image_analysis"
    EMBEDDING = "embedding"
    INDEX_WRITE = "index_write"
    INDEX_DELETE = "index_delete"
    METADATA_PERSIST = "metadata_persist"


class StageStatus(str, Enum):
    """Outcome of a single stage."""

    OK = "ok"
    ERROR = "error"
    SKIPPED = "skipped"


class StageResult(BaseModel):
    """Outcome of one pipeline stage.

    Attributes:
        stage: Which stage ran.
        status: ok, error or skipped.
        error: Structured error body when the stage failed.
    """

    stage: Stage = Field(description="Pipeline stage")
    status: StageStatus = Field(description="Stage outcome")
    error: dict[str, Any] | None = Field(default=None, description="Error body")


class PipelineReport(BaseModel):
    """Per-stage report of a lifecycle pipeline run.

    Stages are independent best-effort steps, so a report can mix
    successes and failures; callers render it stage by stage.
    """

    project_id: str = Field(description="Project identifier")
    stages: list[StageResult] = Field(default_factory=list, description="Stage results")
    description: str | None = Field(default=None, description="Generated description")

    @property
    def ok(self) -> bool:
        """True when no stage failed; skipped stages do not count."""
        return not self.failed_stages

    @property
    def failed_stages(self) -> list[Stage]:
        return [s.stage for s in self.stages if s.status == StageStatus.ERROR]

    def status_for(self, stage: Stage) -> StageStatus | None:
        for result in self.stages:
            if result.stage == stage:
                return result.status
        return None

    def error_for(self, stage: Stage) -> dict[str, Any] | None:
        for result in self.stages:
            if result.stage == stage:
                return result.error
        return None
