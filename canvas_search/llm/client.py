"""LLM client interface and implementations."""

import time
from abc import ABC, abstractmethod
from typing import Any

import httpx

from canvas_search.config import LLMSettings, get_settings
from canvas_search.exceptions import ErrorCode, LLMError
from canvas_search.llm.models import GenerationResult, Message, Role
from canvas_search.logging_config import get_logger
from canvas_search.observability.metrics import track_llm_request

logger = get_logger(__name__)


class LLMClient(ABC):
    """Abstract base class for LLM clients.

    Covers the two generative capabilities the search pipeline needs:
    free-text generation and image description.
    """

    @abstractmethod
    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        model: str | None = None,
    ) -> GenerationResult:
        """Generate text from messages.

        Args:
            messages: Conversation messages.
            temperature: Sampling temperature override.
            max_tokens: Maximum tokens override.
            model: Model override.

        Returns:
            GenerationResult with generated text.

        Raises:
            LLMError: If generation fails.
        """
        ...

    @abstractmethod
    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text from a simple prompt.

        Raises:
            LLMError: If generation fails.
        """
        ...

    @abstractmethod
    async def describe_image(
        self,
        image: bytes,
        mime_type: str,
        prompt: str,
    ) -> GenerationResult:
        """Describe an image with a vision-capable model.

        Args:
            image: Raw image bytes.
            mime_type: Image MIME type, e.g. ``image/png``.
            prompt: Instructions for the description.

        Returns:
            GenerationResult with the description.

        Raises:
            LLMError: If generation fails.
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the text model name."""
        ...


class OpenAICompatibleClient(LLMClient):
    """LLM client for OpenAI-compatible APIs.

    Works with:
    - Ollama (localhost:11434/v1)
    - vLLM
    - OpenAI API
    - Any OpenAI-compatible endpoint
    """

    def __init__(
        self,
        settings: LLMSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the OpenAI-compatible client.

        Args:
            settings: LLM configuration.
            client: HTTP client (for testing).
        """
        self._settings = settings or get_settings().llm
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    @property
    def model_name(self) -> str:
        """Get the text model name."""
        return self._settings.model

    @property
    def vision_model_name(self) -> str:
        """Get the vision model name."""
        return self._settings.vision_model

    def _headers(self) -> dict[str, str]:
        api_key = self._settings.api_key.get_secret_value()
        if api_key and api_key != "not-required":
            return {"Authorization": f"Bearer {api_key}"}
        return {}

    async def generate(
        self,
        messages: list[Message],
        temperature: float | None = None,
        max_tokens: int | None = None,
        model: str | None = None,
    ) -> GenerationResult:
        """Generate text using chat completions API."""
        client = await self._get_client()
        url = f"{self._settings.base_url}/chat/completions"
        model = model or self._settings.model

        payload: dict[str, Any] = {
            "model": model,
            "messages": [
                {"role": msg.role.value, "content": msg.content} for msg in messages
            ],
            "temperature": (
                temperature if temperature is not None else self._settings.temperature
            ),
            "max_tokens": max_tokens or self._settings.max_tokens,
        }

        start = time.perf_counter()
        try:
            response = await client.post(url, json=payload, headers=self._headers())
            response.raise_for_status()

        except httpx.TimeoutException as e:
            track_llm_request(model, time.perf_counter() - start, 0, 0, success=False)
            logger.error(f"LLM request timed out: {e}", extra={"model": model})
            raise LLMError(
                "LLM request timed out",
                code=ErrorCode.LLM_TIMEOUT,
                details={"timeout": self._settings.timeout},
            ) from e

        except httpx.HTTPStatusError as e:
            track_llm_request(model, time.perf_counter() - start, 0, 0, success=False)
            status = e.response.status_code
            logger.error(f"LLM request failed: {status}", extra={"model": model})

            if status == 429:
                raise LLMError(
                    "Rate limit exceeded",
                    code=ErrorCode.LLM_RATE_LIMIT,
                    details={"status_code": status},
                ) from e

            raise LLMError(
                f"LLM service returned {status}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"status_code": status},
            ) from e

        except httpx.RequestError as e:
            track_llm_request(model, time.perf_counter() - start, 0, 0, success=False)
            logger.error(f"LLM connection error: {e}", extra={"model": model})
            raise LLMError(
                f"Failed to connect to LLM service: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"url": url},
            ) from e

        try:
            data = response.json()
            message = data["choices"][0]["message"]
            usage = data.get("usage") or {}

            result = GenerationResult(
                content=message["content"] or "",
                model=data.get("model", model),
                prompt_tokens=usage.get("prompt_tokens", 0),
                completion_tokens=usage.get("completion_tokens", 0),
                total_tokens=usage.get("total_tokens", 0),
            )

        except (KeyError, IndexError, TypeError, ValueError) as e:
            track_llm_request(model, time.perf_counter() - start, 0, 0, success=False)
            raise LLMError(
                f"Invalid response from LLM: {e}",
                code=ErrorCode.LLM_SERVICE_ERROR,
                details={"error": str(e)},
            ) from e

        track_llm_request(
            model,
            time.perf_counter() - start,
            result.prompt_tokens,
            result.completion_tokens,
        )
        return result

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> GenerationResult:
        """Generate text from a simple prompt."""
        messages: list[Message] = []

        if system_prompt:
            messages.append(Message(role=Role.SYSTEM, content=system_prompt))

        messages.append(Message(role=Role.USER, content=prompt))

        return await self.generate(
            messages=messages,
            temperature=temperature,
            max_tokens=max_tokens,
        )

    async def describe_image(
        self,
        image: bytes,
        mime_type: str,
        prompt: str,
    ) -> GenerationResult:
        """Describe an image using the configured vision model."""
        return await self.generate(
            messages=[Message.with_image(prompt, image, mime_type)],
            model=self._settings.vision_model,
        )
