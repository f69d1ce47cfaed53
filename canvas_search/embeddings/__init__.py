"""Embedding service module."""

from canvas_search.embeddings.models import EmbeddingResult
from canvas_search.embeddings.service import EmbeddingService, HTTPEmbeddingService

__all__ = [
    "EmbeddingResult",
    "EmbeddingService",
    "HTTPEmbeddingService",
]
