"""Tests for the search-by-description orchestrator."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from canvas_search.config import SearchSettings
from canvas_search.exceptions import (
    EmbeddingFailedError,
    ErrorCode,
    IndexUnavailableError,
    InvalidQueryError,
    RerankFailedError,
)
from canvas_search.search.models import RankedResult
from canvas_search.search.orchestrator import SearchOrchestrator, fallback_ranking
from canvas_search.vectorstore.models import SearchCandidate


def _candidates(*pairs: tuple[str, float]) -> list[SearchCandidate]:
    return [
        SearchCandidate(id=pid, description=f"project {pid}", raw_score=score)
        for pid, score in pairs
    ]


class TestFallbackRanking:
    """Tests for the similarity-order fallback."""

    def test_keeps_store_order_and_scores(self) -> None:
        candidates = _candidates(("a", 0.9), ("b", 0.95), ("c", 0.1))

        results = fallback_ranking(candidates, max_results=2)

        assert results == [
            RankedResult(id="a", similarity=0.9),
            RankedResult(id="b", similarity=0.95),
        ]

    def test_fewer_than_cap(self) -> None:
        assert len(fallback_ranking(_candidates(("a", 0.5)), max_results=5)) == 1


class TestSearchOrchestrator:
    """Tests for SearchOrchestrator."""

    def _create_orchestrator(
        self,
        candidates: list[SearchCandidate] | None = None,
        ranked: list[RankedResult] | None = None,
        settings: SearchSettings | None = None,
    ) -> tuple[SearchOrchestrator, MagicMock, MagicMock, MagicMock]:
        synthesizer = MagicMock()
        synthesizer.embed = AsyncMock(return_value=[0.1, 0.2, 0.3])

        index = MagicMock()
        index.query = AsyncMock(return_value=candidates or [])

        reranker = MagicMock()
        reranker.rank = AsyncMock(return_value=ranked or [])

        orchestrator = SearchOrchestrator(
            synthesizer,
            index,
            reranker,
            settings or SearchSettings(),
        )
        return orchestrator, synthesizer, index, reranker

    @pytest.mark.asyncio
    async def test_no_candidates(self) -> None:
        """An empty index yields no results and skips re-ranking."""
        orchestrator, _, _, reranker = self._create_orchestrator(candidates=[])

        response = await orchestrator.search("mountain")

        assert response.results == []
        assert response.reranked is False
        reranker.rank.assert_not_called()

    @pytest.mark.asyncio
    async def test_reranked_results(self) -> None:
        """Re-ranked results are returned as the reranker ordered them."""
        candidates = _candidates(("a", 0.9), ("b", 0.8), ("c", 0.7))
        ranked = [
            RankedResult(id="c", similarity=0.95),
            RankedResult(id="b", similarity=0.8),
            RankedResult(id="a", similarity=0.6),
        ]
        orchestrator, synthesizer, index, reranker = self._create_orchestrator(
            candidates, ranked
        )

        response = await orchestrator.search("mountain")

        assert response.results == ranked
        assert response.reranked is True
        synthesizer.embed.assert_awaited_once_with("mountain")
        index.query.assert_awaited_once_with([0.1, 0.2, 0.3], 20)
        reranker.rank.assert_awaited_once_with("mountain", candidates, 5)

    @pytest.mark.asyncio
    async def test_rerank_failure_falls_back(self) -> None:
        """A failing reranker yields the top raw-similarity candidates."""
        candidates = _candidates(*[(f"p{i}", 0.9 - i / 10) for i in range(6)])
        orchestrator, _, _, reranker = self._create_orchestrator(
            candidates,
            settings=SearchSettings(max_results=4),
        )
        reranker.rank = AsyncMock(side_effect=RerankFailedError("bad output"))

        response = await orchestrator.search("tree")

        assert [r.id for r in response.results] == ["p0", "p1", "p2", "p3"]
        assert [r.similarity for r in response.results] == [
            c.raw_score for c in candidates[:4]
        ]
        assert response.reranked is False

    @pytest.mark.asyncio
    async def test_unexpected_rerank_error_falls_back(self) -> None:
        candidates = _candidates(("a", 0.9))
        orchestrator, _, _, reranker = self._create_orchestrator(candidates)
        reranker.rank = AsyncMock(side_effect=RuntimeError("bug"))

        response = await orchestrator.search("tree")

        assert response.results == [RankedResult(id="a", similarity=0.9)]

    @pytest.mark.asyncio
    async def test_empty_rerank_falls_back(self) -> None:
        """An empty ranking for a non-empty shortlist is treated as failure."""
        candidates = _candidates(("a", 0.9), ("b", 0.8))
        orchestrator, _, _, _ = self._create_orchestrator(candidates, ranked=[])

        response = await orchestrator.search("tree")

        assert [r.id for r in response.results] == ["a", "b"]
        assert response.reranked is False

    @pytest.mark.asyncio
    async def test_results_capped(self) -> None:
        """A reranker returning too many results is truncated."""
        candidates = _candidates(*[(f"p{i}", 0.5) for i in range(8)])
        ranked = [RankedResult(id=f"p{i}", similarity=0.5) for i in range(8)]
        orchestrator, _, _, _ = self._create_orchestrator(candidates, ranked)

        response = await orchestrator.search("tree")

        assert len(response.results) == 5

    @pytest.mark.asyncio
    async def test_short_query(self) -> None:
        """Too-short queries fail before any collaborator is called."""
        orchestrator, synthesizer, index, reranker = self._create_orchestrator()

        with pytest.raises(InvalidQueryError):
            await orchestrator.search("ab")

        synthesizer.embed.assert_not_called()
        index.query.assert_not_called()
        reranker.rank.assert_not_called()

    @pytest.mark.asyncio
    async def test_query_is_stripped(self) -> None:
        """Surrounding whitespace does not count towards the minimum."""
        orchestrator, synthesizer, _, _ = self._create_orchestrator()

        with pytest.raises(InvalidQueryError):
            await orchestrator.search("  ab  ")

        response = await orchestrator.search("  bee ")
        assert response.query == "bee"
        synthesizer.embed.assert_awaited_once_with("bee")

    @pytest.mark.asyncio
    async def test_index_timeout_propagates(self) -> None:
        """Index failures are raised, not masked by the fallback."""
        orchestrator, _, index, reranker = self._create_orchestrator()
        index.query = AsyncMock(
            side_effect=IndexUnavailableError("timed out", code=ErrorCode.INDEX_TIMEOUT)
        )

        with pytest.raises(IndexUnavailableError) as exc_info:
            await orchestrator.search("mountain")

        assert exc_info.value.code == ErrorCode.INDEX_TIMEOUT
        reranker.rank.assert_not_called()

    @pytest.mark.asyncio
    async def test_short_query_logged_as_idle(self, caplog: pytest.LogCaptureFixture) -> None:
        orchestrator, _, _, _ = self._create_orchestrator()
        caplog.set_level(logging.INFO, logger="canvas_search.search.orchestrator")

        with pytest.raises(InvalidQueryError):
            await orchestrator.search("ab")

        records = [r for r in caplog.records if r.name == "canvas_search.search.orchestrator"]
        assert [r.state for r in records] == ["idle"]

    @pytest.mark.asyncio
    async def test_failure_logged_with_failing_step(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        """A failed search logs the failed state and the step it broke in."""
        orchestrator, _, index, _ = self._create_orchestrator()
        index.query = AsyncMock(side_effect=IndexUnavailableError("down"))
        caplog.set_level(logging.INFO, logger="canvas_search.search.orchestrator")

        with pytest.raises(IndexUnavailableError):
            await orchestrator.search("mountain")

        failed = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert len(failed) == 1
        assert failed[0].state == "failed"
        assert failed[0].failed_in == "querying"

    @pytest.mark.asyncio
    async def test_embedding_failure_propagates(self) -> None:
        orchestrator, synthesizer, index, _ = self._create_orchestrator()
        synthesizer.embed = AsyncMock(side_effect=EmbeddingFailedError("down"))

        with pytest.raises(EmbeddingFailedError):
            await orchestrator.search("mountain")

        index.query.assert_not_called()

    @pytest.mark.asyncio
    async def test_search_by_description(self) -> None:
        candidates = _candidates(("a", 0.9))
        ranked = [RankedResult(id="a", similarity=0.99)]
        orchestrator, _, _, _ = self._create_orchestrator(candidates, ranked)

        assert await orchestrator.search_by_description("bee") == ranked

    @pytest.mark.asyncio
    async def test_concurrent_searches_are_independent(self) -> None:
        """Parallel calls each get their own results."""
        orchestrator, _, index, reranker = self._create_orchestrator()

        async def query(embedding: list[float], top_k: int) -> list[SearchCandidate]:
            await asyncio.sleep(0)
            return _candidates(("shared", 0.5))

        async def rank(
            query_text: str,
            candidates: list[SearchCandidate],
            max_results: int,
        ) -> list[RankedResult]:
            await asyncio.sleep(0)
            return [RankedResult(id=f"{query_text}-hit", similarity=0.9)]

        index.query = AsyncMock(side_effect=query)
        reranker.rank = AsyncMock(side_effect=rank)

        bee, barn = await asyncio.gather(
            orchestrator.search("bee"),
            orchestrator.search("barn"),
        )

        assert bee.results[0].id == "bee-hit"
        assert barn.results[0].id == "barn-hit"
