"""Application configuration using Pydantic Settings.

All configuration is loaded from environment variables.
No secrets are hardcoded.
"""

from enum import Enum
from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class LLMSettings(BaseSettings):
    """Generative model configuration.

    Used for image analysis, description merging and re-ranking.
    Any OpenAI-compatible chat completions endpoint works.
    """

    model_config = SettingsConfigDict(env_prefix="LLM_")

    base_url: str = Field(
        default="http://localhost:11434/v1",
        description="LLM API base URL (Ollama default)",
    )
    model: str = Field(
        default="llama3.2:3b",
        description="Model used for text generation and re-ranking",
    )
    vision_model: str = Field(
        default="llava:7b",
        description="Vision-capable model used to analyze canvas snapshots",
    )
    api_key: SecretStr = Field(
        default=SecretStr("not-required"),
        description="API key (not required for Ollama)",
    )
    timeout: float = Field(
        default=60.0,
        description="Request timeout in seconds",
    )
    max_tokens: int = Field(
        default=1024,
        description="Maximum tokens in response",
    )
    temperature: float = Field(
        default=0.1,
        description="Sampling temperature (lower = more deterministic)",
    )


class EmbeddingSettings(BaseSettings):
    """Embedding service configuration."""

    model_config = SettingsConfigDict(env_prefix="EMBEDDING_")

    base_url: str = Field(
        default="http://localhost:8080",
        description="Embedding service base URL",
    )
    model: str = Field(
        default="BAAI/bge-base-en-v1.5",
        description="Embedding model name",
    )
    dimensions: int = Field(
        default=768,
        description="Expected embedding dimensions",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="API key (optional for local servers)",
    )
    timeout: float = Field(
        default=30.0,
        description="Request timeout in seconds",
    )


class QdrantSettings(BaseSettings):
    """Qdrant vector database configuration."""

    model_config = SettingsConfigDict(env_prefix="QDRANT_")

    url: str = Field(
        default="http://localhost:6333",
        description="Qdrant server URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Qdrant API key (optional for local)",
    )
    collection_name: str = Field(
        default="projects",
        description="Collection holding one vector per project",
    )
    timeout: int = Field(
        default=10,
        description="Request timeout in seconds",
    )


class SearchSettings(BaseSettings):
    """Search and ranking policy."""

    model_config = SettingsConfigDict(env_prefix="SEARCH_")

    top_k: int = Field(
        default=20,
        ge=1,
        description="Candidates fetched from the vector index per search",
    )
    max_results: int = Field(
        default=5,
        ge=1,
        description="Maximum results returned after re-ranking or fallback",
    )
    min_query_length: int = Field(
        default=3,
        ge=1,
        description="Minimum query length in characters",
    )
    placeholder_magnitude: float = Field(
        default=0.01,
        gt=0.0,
        description="Magnitude bound for placeholder embedding components",
    )


class ProjectStoreSettings(BaseSettings):
    """Project persistence service configuration."""

    model_config = SettingsConfigDict(env_prefix="PROJECT_STORE_")

    base_url: str = Field(
        default="http://localhost:3000",
        description="Project API base URL",
    )
    api_key: SecretStr | None = Field(
        default=None,
        description="Bearer token for the project API",
    )
    timeout: float = Field(
        default=15.0,
        description="Request timeout in seconds",
    )


class Settings(BaseSettings):
    """Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application settings
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    debug: bool = Field(
        default=False,
        description="Enable debug mode",
    )

    # API settings
    api_host: str = Field(
        default="0.0.0.0",
        description="API server host",
    )
    api_port: int = Field(
        default=8000,
        description="API server port",
    )

    # Nested settings
    llm: LLMSettings = Field(default_factory=LLMSettings)
    embedding: EmbeddingSettings = Field(default_factory=EmbeddingSettings)
    qdrant: QdrantSettings = Field(default_factory=QdrantSettings)
    search: SearchSettings = Field(default_factory=SearchSettings)
    project_store: ProjectStoreSettings = Field(default_factory=ProjectStoreSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Settings instance loaded from environment.
    """
    return Settings()
