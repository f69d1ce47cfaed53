"""Vector index module."""

from canvas_search.vectorstore.models import ProjectVector, SearchCandidate, point_id
from canvas_search.vectorstore.service import (
    QdrantVectorIndex,
    VectorIndex,
    placeholder_embedding,
)

__all__ = [
    "ProjectVector",
    "QdrantVectorIndex",
    "SearchCandidate",
    "VectorIndex",
    "placeholder_embedding",
    "point_id",
]
