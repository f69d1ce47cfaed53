"""Process-wide service wiring for the API.

Clients are built once, on first request, and shared by every request.
Routes receive them through ``Depends(get_services)``, which tests
override with fakes.
"""

from functools import lru_cache

from canvas_search.config import Settings, get_settings
from canvas_search.description.synthesizer import DescriptionSynthesizer
from canvas_search.embeddings.service import HTTPEmbeddingService
from canvas_search.llm.client import OpenAICompatibleClient
from canvas_search.logging_config import get_logger
from canvas_search.pipeline.lifecycle import ProjectIndexingPipeline
from canvas_search.projects.store import HTTPProjectStore
from canvas_search.search.orchestrator import SearchOrchestrator
from canvas_search.search.reranker import LLMReranker
from canvas_search.vectorstore.service import QdrantVectorIndex, VectorIndex

logger = get_logger(__name__)


class Services:
    """Shared service objects, wired together once per process."""

    def __init__(self, settings: Settings) -> None:
        self.llm_client = OpenAICompatibleClient(settings.llm)
        self.embedding_service = HTTPEmbeddingService(settings.embedding)
        self.vector_index: VectorIndex = QdrantVectorIndex(
            settings.qdrant,
            dimensions=settings.embedding.dimensions,
            placeholder_magnitude=settings.search.placeholder_magnitude,
        )
        self.project_store = HTTPProjectStore(settings.project_store)

        self.synthesizer = DescriptionSynthesizer(self.llm_client, self.embedding_service)
        self.reranker = LLMReranker(self.llm_client)
        self.orchestrator = SearchOrchestrator(
            self.synthesizer,
            self.vector_index,
            self.reranker,
            settings.search,
        )
        self.pipeline = ProjectIndexingPipeline(
            self.synthesizer,
            self.vector_index,
            self.project_store,
        )

    async def aclose(self) -> None:
        """Close every client this container owns."""
        await self.llm_client.close()
        await self.embedding_service.close()
        if isinstance(self.vector_index, QdrantVectorIndex):
            await self.vector_index.close()
        await self.project_store.close()
        logger.info("Closed service clients")


@lru_cache
def get_services() -> Services:
    """Get the shared services, building them on first use."""
    return Services(get_settings())
