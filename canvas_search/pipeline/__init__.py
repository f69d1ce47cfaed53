"""Project lifecycle pipeline module."""

from canvas_search.pipeline.lifecycle import ProjectIndexingPipeline, thumbnail_data_url
from canvas_search.pipeline.models import PipelineReport, Stage, StageResult, StageStatus

__all__ = [
    "PipelineReport",
    "ProjectIndexingPipeline",
    "Stage",
    "StageResult",
    "StageStatus",
    "thumbnail_data_url",
]
