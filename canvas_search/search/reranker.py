"""Re-ranking of nearest-neighbour shortlists."""

import re
from abc import ABC, abstractmethod

from canvas_search.exceptions import LLMError, RerankFailedError
from canvas_search.llm.client import LLMClient
from canvas_search.llm.parsing import parse_ranked_results
from canvas_search.llm.prompts import RerankPromptTemplate
from canvas_search.logging_config import get_logger
from canvas_search.search.models import RankedResult
from canvas_search.vectorstore.models import SearchCandidate

logger = get_logger(__name__)

_WHITESPACE = re.compile(r"\s+")


def _normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip().lower()


def is_exact_match(query: str, description: str) -> bool:
    """True when the query appears as a whole phrase in the description."""
    needle = _normalize(query)
    if not needle:
        return False
    pattern = rf"(?<!\w){re.escape(needle)}(?!\w)"
    return re.search(pattern, _normalize(description)) is not None


def _order(
    query: str,
    results: list[RankedResult],
    descriptions: dict[str, str],
) -> list[RankedResult]:
    # Similarity descending, then exact lexical matches moved to the front
    by_score = sorted(results, key=lambda r: r.similarity, reverse=True)
    exact_ids = {
        r.id for r in by_score if is_exact_match(query, descriptions.get(r.id, ""))
    }
    exact = [r for r in by_score if r.id in exact_ids]
    rest = [r for r in by_score if r.id not in exact_ids]
    return exact + rest


def apply_ranking_policy(
    query: str,
    candidates: list[SearchCandidate],
    ranked: list[tuple[str, float | None]],
    max_results: int,
) -> list[RankedResult]:
    """Turn a model ordering into a policy-conforming result list.

    - Ids unknown to the shortlist and repeated ids are dropped.
    - A missing score falls back to the candidate's raw similarity.
    - The result holds ``min(len(candidates), max_results)`` entries,
      padded with the most similar unused candidates when the model
      returned too few.
    - Exact matches come first, the rest by similarity descending. An
      exact match the model left out is kept with its raw similarity.

    Returns:
        The ordered results; empty only if ``ranked`` named no candidate.
    """
    by_id: dict[str, SearchCandidate] = {}
    for candidate in candidates:
        by_id.setdefault(candidate.id, candidate)
    descriptions = {cid: c.description for cid, c in by_id.items()}

    scored: dict[str, float] = {}
    for project_id, similarity in ranked:
        candidate = by_id.get(project_id)
        if candidate is None or project_id in scored:
            continue
        scored[project_id] = similarity if similarity is not None else candidate.raw_score

    if not scored:
        return []

    # Exact matches the model left out still lead the results
    for candidate in by_id.values():
        if candidate.id not in scored and is_exact_match(query, candidate.description):
            scored[candidate.id] = candidate.raw_score

    target = min(len(by_id), max_results)
    chosen = _order(
        query,
        [RankedResult(id=pid, similarity=score) for pid, score in scored.items()],
        descriptions,
    )[:target]

    if len(chosen) < target:
        used = {r.id for r in chosen}
        spare = sorted(
            (c for c in by_id.values() if c.id not in used),
            key=lambda c: c.raw_score,
            reverse=True,
        )
        chosen += [
            RankedResult(id=c.id, similarity=c.raw_score)
            for c in spare[: target - len(chosen)]
        ]

    return _order(query, chosen, descriptions)


class Reranker(ABC):
    """Abstract base class for shortlist re-rankers."""

    @abstractmethod
    async def rank(
        self,
        query: str,
        candidates: list[SearchCandidate],
        max_results: int,
    ) -> list[RankedResult]:
        """Order a shortlist against the query.

        Args:
            query: Search text.
            candidates: Nearest neighbours from the index.
            max_results: Result cap.

        Returns:
            All candidates when there are at most ``max_results`` of
            them, otherwise exactly ``max_results``; never empty for a
            non-empty shortlist.

        Raises:
            RerankFailedError: If no confident ordering can be produced.
        """
        ...


class LLMReranker(Reranker):
    """Re-ranks a shortlist by asking a generative model to compare the
    query against each stored description."""

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_template: RerankPromptTemplate | None = None,
    ) -> None:
        self._llm_client = llm_client
        self._prompt_template = prompt_template or RerankPromptTemplate()

    async def rank(
        self,
        query: str,
        candidates: list[SearchCandidate],
        max_results: int,
    ) -> list[RankedResult]:
        if not candidates:
            return []

        # Placeholders have nothing for the model to compare against
        described = [c for c in candidates if c.description.strip()]
        if not described:
            raise RerankFailedError(
                "No candidate has a description to compare",
                details={"candidates": len(candidates)},
            )

        system_prompt, user_prompt = self._prompt_template.build_prompt(
            query=query,
            projects=[(c.id, c.description, c.raw_score) for c in described],
            max_results=max_results,
        )

        try:
            generation = await self._llm_client.generate_text(
                prompt=user_prompt,
                system_prompt=system_prompt,
            )
        except LLMError as e:
            raise RerankFailedError(
                f"Re-rank request failed: {e.message}",
                details={"cause": e.code.value},
            ) from e

        ranked = parse_ranked_results(generation.content)
        results = apply_ranking_policy(query, candidates, ranked, max_results)
        if not results:
            raise RerankFailedError(
                "Re-rank response named no known project",
                details={"response": generation.content[:200]},
            )

        logger.debug(
            f"Re-ranked {len(candidates)} candidates into {len(results)} results",
            extra={"model_results": len(ranked)},
        )
        return results
