"""Search-by-description orchestrator."""

import time

from canvas_search.config import SearchSettings, get_settings
from canvas_search.description.synthesizer import DescriptionSynthesizer
from canvas_search.exceptions import InvalidQueryError
from canvas_search.logging_config import get_logger
from canvas_search.observability.metrics import track_search
from canvas_search.search.models import RankedResult, SearchResponse, SearchState
from canvas_search.search.reranker import Reranker
from canvas_search.vectorstore.models import SearchCandidate
from canvas_search.vectorstore.service import VectorIndex

logger = get_logger(__name__)


def fallback_ranking(
    candidates: list[SearchCandidate],
    max_results: int,
) -> list[RankedResult]:
    """First ``max_results`` candidates in index order, raw scores kept."""
    return [
        RankedResult(id=candidate.id, similarity=candidate.raw_score)
        for candidate in candidates[:max_results]
    ]


class SearchOrchestrator:
    """Finds projects whose content matches a free-text description.

    Steps run strictly in sequence: embed the query, fetch nearest
    neighbours, re-rank. Embedding and index failures propagate; a
    re-ranking failure never does and falls back to raw similarity.
    The orchestrator holds no per-call state, so concurrent searches
    are independent.
    """

    def __init__(
        self,
        synthesizer: DescriptionSynthesizer,
        vector_index: VectorIndex,
        reranker: Reranker,
        settings: SearchSettings | None = None,
    ) -> None:
        self._synthesizer = synthesizer
        self._vector_index = vector_index
        self._reranker = reranker
        self._settings = settings or get_settings().search

    async def search_by_description(self, query: str) -> list[RankedResult]:
        """Ordered matches for ``query``; see :meth:`search`."""
        response = await self.search(query)
        return response.results

    async def search(self, query: str) -> SearchResponse:
        """Run a search and report whether re-ranking was used.

        Raises:
            InvalidQueryError: If the query is shorter than the minimum.
            EmbeddingFailedError: If the query cannot be embedded.
            IndexUnavailableError: If the vector index cannot be queried.
        """
        query = (query or "").strip()
        if len(query) < self._settings.min_query_length:
            logger.info(
                "Search rejected",
                extra={"state": SearchState.IDLE.value, "query_length": len(query)},
            )
            raise InvalidQueryError(
                f"Query must be at least {self._settings.min_query_length} characters",
                details={"length": len(query)},
            )

        started = time.perf_counter()
        state = SearchState.EMBEDDING
        try:
            embedding = await self._synthesizer.embed(query)
            state = SearchState.QUERYING
            candidates = await self._vector_index.query(embedding, self._settings.top_k)
        except Exception:
            track_search("error", time.perf_counter() - started, 0)
            logger.error(
                "Search failed",
                extra={
                    "state": SearchState.FAILED.value,
                    "failed_in": state.value,
                    "query_length": len(query),
                },
            )
            raise

        if not candidates:
            track_search("empty", time.perf_counter() - started, 0)
            logger.info("Search found no candidates", extra={"query_length": len(query)})
            return SearchResponse(query=query, results=[], reranked=False)

        max_results = self._settings.max_results
        state = SearchState.RERANKING
        try:
            results = await self._reranker.rank(query, candidates, max_results)
        except Exception as e:
            logger.warning(
                f"Re-ranking failed, using similarity order: {e}",
                extra={"state": state.value, "candidates": len(candidates)},
            )
            results = []

        reranked = bool(results)
        if reranked:
            results = results[:max_results]
        else:
            state = SearchState.FALLBACK
            results = fallback_ranking(candidates, max_results)

        outcome = "reranked" if reranked else "fallback"
        track_search(outcome, time.perf_counter() - started, len(results))
        logger.info(
            "Search completed",
            extra={
                "outcome": outcome,
                "candidates": len(candidates),
                "results": len(results),
                "state": SearchState.DONE.value,
            },
        )
        return SearchResponse(query=query, results=results, reranked=reranked)
