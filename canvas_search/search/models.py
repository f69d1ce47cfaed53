"""Search data models."""

from enum import Enum

from pydantic import BaseModel, Field


class SearchState(str, Enum):
    """Steps of a single search call, as reported in logs."""

    IDLE = "idle"
    EMBEDDING = "embedding"
    QUERYING = "querying"
    RERANKING = "reranking"
    FALLBACK = "fallback"
    DONE = "done"
    FAILED = "failed"


class RankedResult(BaseModel):
    """A project matched by a search.

    Attributes:
        id: Project identifier.
        similarity: Re-ranked score, or the raw index similarity when
            re-ranking was unavailable.
    """

    id: str = Field(description="Project identifier")
    similarity: float = Field(description="Similarity score")


class SearchResponse(BaseModel):
    """Full outcome of a search call.

    Attributes:
        query: The normalized query text.
        results: Ordered matches; empty when nothing was indexed nearby.
        reranked: False when the fallback ranking produced ``results``.
    """

    query: str = Field(description="Query text")
    results: list[RankedResult] = Field(default_factory=list, description="Matches")
    reranked: bool = Field(default=False, description="Whether re-ranking succeeded")
