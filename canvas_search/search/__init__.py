"""Semantic project search module."""

from canvas_search.search.models import RankedResult, SearchResponse, SearchState
from canvas_search.search.orchestrator import SearchOrchestrator, fallback_ranking
from canvas_search.search.reranker import (
    LLMReranker,
    Reranker,
    apply_ranking_policy,
    is_exact_match,
)

__all__ = [
    "LLMReranker",
    "RankedResult",
    "Reranker",
    "SearchOrchestrator",
    "SearchResponse",
    "SearchState",
    "apply_ranking_policy",
    "fallback_ranking",
    "is_exact_match",
]
