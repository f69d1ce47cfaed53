"""Vector index interface and Qdrant implementation."""

import random
import time
from abc import ABC, abstractmethod
from typing import Any

import httpx
from qdrant_client import AsyncQdrantClient
from qdrant_client.models import (
    Distance,
    PointIdsList,
    PointStruct,
    PointVectors,
    VectorParams,
)

from canvas_search.config import QdrantSettings, get_settings
from canvas_search.exceptions import ErrorCode, IndexUnavailableError
from canvas_search.logging_config import get_logger
from canvas_search.observability.metrics import track_vector_index_operation
from canvas_search.vectorstore.models import ProjectVector, SearchCandidate, point_id

logger = get_logger(__name__)

DEFAULT_DIMENSIONS = 768


def placeholder_embedding(
    dimensions: int,
    magnitude: float,
    rng: random.Random | None = None,
) -> list[float]:
    """Build a low-information vector for a project with no content yet.

    Every component lies in ``[-magnitude, -magnitude/10]`` or
    ``[magnitude/10, magnitude]``, so the vector is never all-zero and
    cosine similarity against it stays defined.
    """
    rng = rng or random.Random()
    return [
        rng.uniform(magnitude / 10, magnitude) * rng.choice((-1.0, 1.0))
        for _ in range(dimensions)
    ]


def _is_timeout(error: BaseException) -> bool:
    # qdrant-client wraps transport errors and keeps the original on `source`
    source = getattr(error, "source", None)
    return isinstance(error, (TimeoutError, httpx.TimeoutException)) or isinstance(
        source, (TimeoutError, httpx.TimeoutException)
    )


class VectorIndex(ABC):
    """Abstract base class for the project vector index.

    Holds at most one vector per project id.
    """

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Vector dimensionality of the index."""
        ...

    @abstractmethod
    async def ensure_index(self) -> bool:
        """Create the index if absent.

        Returns:
            True if the index was created by this call.

        Raises:
            IndexUnavailableError: If the index cannot be provisioned.
        """
        ...

    @abstractmethod
    async def delete_index(self) -> bool:
        """Delete the index if present.

        Returns:
            True if an index was deleted.

        Raises:
            IndexUnavailableError: If deletion fails.
        """
        ...

    @abstractmethod
    async def count(self) -> int:
        """Number of stored project vectors.

        Raises:
            IndexUnavailableError: If the index cannot be read.
        """
        ...

    @abstractmethod
    async def exists(self, project_id: str) -> bool:
        """Check whether a vector is stored for the project.

        Never raises: any error is reported as not found.
        """
        ...

    @abstractmethod
    async def upsert(self, project_id: str, description: str, embedding: list[float]) -> None:
        """Update the project's vector and description, or insert them.

        Raises:
            IndexUnavailableError: If the write fails.
        """
        ...

    @abstractmethod
    async def update_description_only(self, project_id: str, description: str) -> None:
        """Replace the stored description without touching the vector.

        Raises:
            IndexUnavailableError: If the write fails.
        """
        ...

    @abstractmethod
    async def delete_point(self, project_id: str) -> None:
        """Delete the project's vector. Deleting an absent id succeeds.

        Raises:
            IndexUnavailableError: If deletion fails.
        """
        ...

    @abstractmethod
    async def create_placeholder(self, project_id: str) -> bool:
        """Store a placeholder vector with an empty description.

        Returns:
            True if a placeholder was written, False if the project
            already had a vector.

        Raises:
            IndexUnavailableError: If the write fails.
        """
        ...

    @abstractmethod
    async def query(self, embedding: list[float], top_k: int) -> list[SearchCandidate]:
        """Return up to ``top_k`` nearest projects, most similar first.

        Raises:
            IndexUnavailableError: If the query fails.
        """
        ...


class QdrantVectorIndex(VectorIndex):
    """Qdrant-backed project vector index (cosine distance)."""

    def __init__(
        self,
        settings: QdrantSettings | None = None,
        client: AsyncQdrantClient | None = None,
        dimensions: int = DEFAULT_DIMENSIONS,
        placeholder_magnitude: float = 0.01,
    ) -> None:
        """Initialize Qdrant vector index.

        Args:
            settings: Qdrant configuration.
            client: Existing client (for testing).
            dimensions: Vector dimensionality.
            placeholder_magnitude: Bound for placeholder vector components.
        """
        self._settings = settings or get_settings().qdrant
        self._client = client
        self._owns_client = client is None
        self._dimensions = dimensions
        self._placeholder_magnitude = placeholder_magnitude

    @property
    def dimensions(self) -> int:
        return self._dimensions

    @property
    def collection(self) -> str:
        return self._settings.collection_name

    async def _get_client(self) -> AsyncQdrantClient:
        """Get or create Qdrant client."""
        if self._client is None:
            api_key = None
            if self._settings.api_key:
                api_key = self._settings.api_key.get_secret_value()

            self._client = AsyncQdrantClient(
                url=self._settings.url,
                api_key=api_key,
                timeout=self._settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the Qdrant client."""
        if self._owns_client and self._client is not None:
            await self._client.close()
            self._client = None

    def _failure(
        self,
        operation: str,
        error: Exception,
        started: float,
        **details: Any,
    ) -> IndexUnavailableError:
        track_vector_index_operation(operation, time.perf_counter() - started, success=False)
        code = ErrorCode.INDEX_TIMEOUT if _is_timeout(error) else ErrorCode.INDEX_UNAVAILABLE
        logger.error(
            f"Vector index {operation} failed: {error}",
            extra={"collection": self.collection, "operation": operation, **details},
        )
        return IndexUnavailableError(
            f"Vector index {operation} failed: {error}",
            code=code,
            details={"collection": self.collection, "error": str(error), **details},
        )

    def _check_dimensions(self, embedding: list[float]) -> None:
        if len(embedding) != self._dimensions:
            raise IndexUnavailableError(
                f"Expected {self._dimensions} dimensions, got {len(embedding)}",
                code=ErrorCode.INDEX_DIMENSION_MISMATCH,
                details={"expected": self._dimensions, "actual": len(embedding)},
            )

    async def ensure_index(self) -> bool:
        """Create the project collection unless it already exists."""
        client = await self._get_client()
        started = time.perf_counter()

        try:
            if await client.collection_exists(self.collection):
                logger.debug(f"Collection {self.collection} already exists")
                return False

            await client.create_collection(
                collection_name=self.collection,
                vectors_config=VectorParams(
                    size=self._dimensions,
                    distance=Distance.COSINE,
                ),
            )
        except Exception as e:
            # A concurrent creator may have won the race between check and create
            try:
                created_elsewhere = await client.collection_exists(self.collection)
            except Exception:
                created_elsewhere = False
            if created_elsewhere:
                logger.info(f"Collection {self.collection} was created concurrently")
                return False
            raise self._failure("ensure_index", e, started) from e

        track_vector_index_operation("ensure_index", time.perf_counter() - started)
        logger.info(
            f"Created collection: {self.collection}",
            extra={"dimensions": self._dimensions},
        )
        return True

    async def delete_index(self) -> bool:
        """Delete the project collection if it exists."""
        client = await self._get_client()
        started = time.perf_counter()

        try:
            if not await client.collection_exists(self.collection):
                logger.info(f"Collection {self.collection} does not exist")
                return False
            await client.delete_collection(self.collection)
        except Exception as e:
            raise self._failure("delete_index", e, started) from e

        track_vector_index_operation("delete_index", time.perf_counter() - started)
        logger.info(f"Deleted collection: {self.collection}")
        return True

    async def count(self) -> int:
        """Count stored project vectors."""
        client = await self._get_client()
        started = time.perf_counter()
        try:
            result = await client.count(collection_name=self.collection, exact=True)
        except Exception as e:
            raise self._failure("count", e, started) from e
        track_vector_index_operation("count", time.perf_counter() - started)
        return result.count

    async def exists(self, project_id: str) -> bool:
        """Probe for the project's point; errors count as absent."""
        started = time.perf_counter()
        try:
            client = await self._get_client()
            records = await client.retrieve(
                collection_name=self.collection,
                ids=[point_id(project_id)],
                with_payload=False,
                with_vectors=False,
            )
        except Exception as e:
            track_vector_index_operation("exists", time.perf_counter() - started, success=False)
            logger.warning(
                f"Existence probe failed, treating as absent: {e}",
                extra={"project_id": project_id},
            )
            return False

        track_vector_index_operation("exists", time.perf_counter() - started)
        return len(records) > 0

    async def upsert(self, project_id: str, description: str, embedding: list[float]) -> None:
        """Update an existing point in place, or insert a new one.

        Updating sets the vector and the payload separately so fields
        not named here survive a refresh.
        """
        self._check_dimensions(embedding)
        vector = ProjectVector(id=project_id, embedding=embedding, description=description)

        if await self.exists(project_id):
            client = await self._get_client()
            started = time.perf_counter()
            try:
                await client.update_vectors(
                    collection_name=self.collection,
                    points=[PointVectors(id=point_id(project_id), vector=vector.embedding)],
                    wait=True,
                )
                await client.set_payload(
                    collection_name=self.collection,
                    payload=vector.to_payload(),
                    points=[point_id(project_id)],
                    wait=True,
                )
            except Exception as e:
                raise self._failure("update", e, started, project_id=project_id) from e
            track_vector_index_operation("update", time.perf_counter() - started)
            logger.info("Updated project vector", extra={"project_id": project_id})
            return

        await self._insert(vector, operation="insert")
        logger.info("Inserted project vector", extra={"project_id": project_id})

    async def _insert(self, vector: ProjectVector, operation: str) -> None:
        client = await self._get_client()
        started = time.perf_counter()
        try:
            await client.upsert(
                collection_name=self.collection,
                points=[
                    PointStruct(
                        id=point_id(vector.id),
                        vector=vector.embedding,
                        payload=vector.to_payload(),
                    )
                ],
                wait=True,
            )
        except Exception as e:
            raise self._failure(operation, e, started, project_id=vector.id) from e
        track_vector_index_operation(operation, time.perf_counter() - started)

    async def update_description_only(self, project_id: str, description: str) -> None:
        """Overwrite the description payload, leaving the vector as is."""
        client = await self._get_client()
        started = time.perf_counter()
        try:
            await client.set_payload(
                collection_name=self.collection,
                payload={"project_id": project_id, "description": description},
                points=[point_id(project_id)],
                wait=True,
            )
        except Exception as e:
            raise self._failure(
                "update_description", e, started, project_id=project_id
            ) from e
        track_vector_index_operation("update_description", time.perf_counter() - started)
        logger.info("Updated project description", extra={"project_id": project_id})

    async def delete_point(self, project_id: str) -> None:
        """Delete the project's point; Qdrant ignores unknown ids."""
        client = await self._get_client()
        started = time.perf_counter()
        try:
            await client.delete(
                collection_name=self.collection,
                points_selector=PointIdsList(points=[point_id(project_id)]),
                wait=True,
            )
        except Exception as e:
            raise self._failure("delete_point", e, started, project_id=project_id) from e
        track_vector_index_operation("delete_point", time.perf_counter() - started)
        logger.info("Deleted project vector", extra={"project_id": project_id})

    async def create_placeholder(self, project_id: str) -> bool:
        """Insert a random low-magnitude vector unless one is already stored."""
        if await self.exists(project_id):
            logger.debug(
                "Project already has a vector, keeping it",
                extra={"project_id": project_id},
            )
            return False

        vector = ProjectVector(
            id=project_id,
            embedding=placeholder_embedding(self._dimensions, self._placeholder_magnitude),
            description="",
        )
        await self._insert(vector, operation="create_placeholder")
        logger.info("Created placeholder vector", extra={"project_id": project_id})
        return True

    async def query(self, embedding: list[float], top_k: int) -> list[SearchCandidate]:
        """Nearest-neighbour query, in the order the store returns."""
        self._check_dimensions(embedding)
        client = await self._get_client()
        started = time.perf_counter()

        try:
            response = await client.query_points(
                collection_name=self.collection,
                query=embedding,
                limit=top_k,
                with_payload=True,
            )
        except Exception as e:
            raise self._failure("query", e, started, top_k=top_k) from e

        track_vector_index_operation("query", time.perf_counter() - started)

        candidates: list[SearchCandidate] = []
        for point in response.points:
            payload = dict(point.payload) if point.payload else {}
            candidates.append(
                SearchCandidate(
                    id=str(payload.get("project_id") or point.id),
                    description=str(payload.get("description") or ""),
                    raw_score=point.score if point.score is not None else 0.0,
                )
            )

        logger.debug(
            f"Index returned {len(candidates)} candidates",
            extra={"top_k": top_k},
        )
        return candidates
