"""Embedding service interface and implementations."""

import time
from abc import ABC, abstractmethod

import httpx

from canvas_search.config import EmbeddingSettings, get_settings
from canvas_search.embeddings.models import EmbeddingResult
from canvas_search.exceptions import EmbeddingFailedError, ErrorCode
from canvas_search.logging_config import get_logger
from canvas_search.observability.metrics import track_embedding_request

logger = get_logger(__name__)


class EmbeddingService(ABC):
    """Abstract base class for embedding services.

    Implementations must be pure functions of their input: the same text
    may be embedded more than once.
    """

    @abstractmethod
    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingFailedError: If the text is empty or embedding fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name used for embeddings."""
        ...

    @property
    @abstractmethod
    def dimensions(self) -> int:
        """Get the embedding dimensions."""
        ...


class HTTPEmbeddingService(EmbeddingService):
    """Embedding service using HTTP API.

    Compatible with OpenAI-style embedding APIs and
    text-embeddings-inference (TEI) servers.
    """

    def __init__(
        self,
        settings: EmbeddingSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the HTTP embedding service.

        Args:
            settings: Embedding configuration. Uses defaults if not provided.
            client: HTTP client. Creates new one if not provided.
        """
        self._settings = settings or get_settings().embedding
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._settings.timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the model name."""
        return self._settings.model

    @property
    def dimensions(self) -> int:
        """Get embedding dimensions."""
        return self._settings.dimensions

    async def embed(self, text: str) -> EmbeddingResult:
        """Generate embedding for a single text.

        Args:
            text: Text to embed.

        Returns:
            EmbeddingResult with vector.

        Raises:
            EmbeddingFailedError: If the text is empty, the request fails,
                or the response is not a vector of the expected size.
        """
        if not text or not text.strip():
            raise EmbeddingFailedError(
                "Cannot embed empty text",
                code=ErrorCode.EMBEDDING_EMPTY_INPUT,
            )

        client = await self._get_client()
        url = f"{self._settings.base_url}/embeddings"
        payload = {"input": [text], "model": self._settings.model}

        headers = {}
        if self._settings.api_key:
            headers["Authorization"] = (
                f"Bearer {self._settings.api_key.get_secret_value()}"
            )

        start = time.perf_counter()
        try:
            response = await client.post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start, success=False
            )
            logger.error(
                f"Embedding request failed: {e.response.status_code}",
                extra={"url": url, "status": e.response.status_code},
            )
            raise EmbeddingFailedError(
                f"Embedding service returned {e.response.status_code}",
                details={"status_code": e.response.status_code},
            ) from e
        except httpx.RequestError as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start, success=False
            )
            logger.error(f"Embedding request error: {e}", extra={"url": url})
            raise EmbeddingFailedError(
                f"Failed to connect to embedding service: {e}",
                details={"url": url},
            ) from e

        try:
            data = response.json()
            embedding = [float(value) for value in data["data"][0]["embedding"]]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start, success=False
            )
            raise EmbeddingFailedError(
                f"Invalid response from embedding service: {e}",
                details={"error": str(e)},
            ) from e

        if len(embedding) != self.dimensions:
            track_embedding_request(
                self.model_name, time.perf_counter() - start, success=False
            )
            raise EmbeddingFailedError(
                f"Expected {self.dimensions} dimensions, got {len(embedding)}",
                code=ErrorCode.EMBEDDING_DIMENSION_MISMATCH,
                details={"expected": self.dimensions, "actual": len(embedding)},
            )

        try:
            result = EmbeddingResult(
                text=text,
                embedding=embedding,
                model=self.model_name,
                dimensions=len(embedding),
            )
        except ValueError as e:
            track_embedding_request(
                self.model_name, time.perf_counter() - start, success=False
            )
            raise EmbeddingFailedError(
                f"Embedding service returned an unusable vector: {e}",
                details={"error": str(e)},
            ) from e

        track_embedding_request(self.model_name, time.perf_counter() - start)
        return result
