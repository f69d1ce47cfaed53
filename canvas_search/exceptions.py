"""Application exception hierarchy.

All custom exceptions inherit from CanvasSearchError.
Each exception has an error code for structured error handling.
"""

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Error codes for structured error handling."""

    # General errors (1xxx)
    INTERNAL_ERROR = "CS-1000"
    CONFIGURATION_ERROR = "CS-1001"
    INVALID_QUERY = "CS-1002"

    # Description errors (2xxx)
    DESCRIPTION_GENERATION_FAILED = "CS-2000"
    DESCRIPTION_PARSE_ERROR = "CS-2001"

    # Embedding errors (3xxx)
    EMBEDDING_FAILED = "CS-3000"
    EMBEDDING_DIMENSION_MISMATCH = "CS-3001"
    EMBEDDING_EMPTY_INPUT = "CS-3002"

    # Vector index errors (4xxx)
    INDEX_UNAVAILABLE = "CS-4000"
    INDEX_TIMEOUT = "CS-4001"
    INDEX_DIMENSION_MISMATCH = "CS-4002"

    # LLM errors (5xxx)
    LLM_SERVICE_ERROR = "CS-5000"
    LLM_TIMEOUT = "CS-5001"
    LLM_RATE_LIMIT = "CS-5002"

    # Ranking errors (6xxx)
    RERANK_FAILED = "CS-6000"

    # Project store errors (7xxx)
    PROJECT_STORE_ERROR = "CS-7000"


class CanvasSearchError(Exception):
    """Base exception for all canvas search errors.

    Attributes:
        message: Human-readable error message.
        code: Structured error code.
        details: Additional error context.
    """

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INTERNAL_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
            }
        }


class ConfigurationError(CanvasSearchError):
    """Configuration or environment error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class InvalidQueryError(CanvasSearchError):
    """Search query is malformed. Never retried."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.INVALID_QUERY, details)


class DescriptionGenerationFailedError(CanvasSearchError):
    """Description could not be derived from a project snapshot."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.DESCRIPTION_GENERATION_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class EmbeddingFailedError(CanvasSearchError):
    """Text could not be turned into an embedding vector."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.EMBEDDING_FAILED,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class IndexUnavailableError(CanvasSearchError):
    """Vector index transport or availability error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.INDEX_UNAVAILABLE,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class LLMError(CanvasSearchError):
    """Generative model service error."""

    def __init__(
        self,
        message: str,
        code: ErrorCode = ErrorCode.LLM_SERVICE_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, code, details)


class RerankFailedError(CanvasSearchError):
    """Re-ranking produced no usable ordering.

    Always converted to the fallback ranking by the search orchestrator.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.RERANK_FAILED, details)


class ProjectStoreError(CanvasSearchError):
    """Project persistence service error."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, ErrorCode.PROJECT_STORE_ERROR, details)
