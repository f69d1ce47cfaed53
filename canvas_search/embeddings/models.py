"""Embedding data models."""

import math

from pydantic import BaseModel, Field, model_validator


class EmbeddingResult(BaseModel):
    """A text embedded into a fixed-dimension vector.

    Attributes:
        text: The original text that was embedded.
        embedding: The embedding vector.
        model: The model used to generate the embedding.
        dimensions: Number of dimensions in the embedding.
    """

    text: str = Field(description="Original text")
    embedding: list[float] = Field(description="Embedding vector")
    model: str = Field(description="Model used for embedding")
    dimensions: int = Field(description="Vector dimensions")

    @model_validator(mode="after")
    def _check_vector(self) -> "EmbeddingResult":
        if self.dimensions != len(self.embedding):
            raise ValueError(
                f"dimensions ({self.dimensions}) does not match "
                f"embedding length ({len(self.embedding)})"
            )
        if not all(math.isfinite(value) for value in self.embedding):
            raise ValueError("embedding contains non-finite values")
        return self
