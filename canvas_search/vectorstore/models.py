"""Vector index data models."""

from uuid import UUID, uuid5

from pydantic import BaseModel, Field

# Qdrant point ids must be UUIDs or integers; project ids are arbitrary
# strings, so each project maps to a stable uuid5 under this namespace.
PROJECT_NAMESPACE = UUID("5b0c3f4e-8d2a-4f61-9c7e-2a1d6e9b4c30")


def point_id(project_id: str) -> str:
    """Map a project id to its vector point id."""
    return str(uuid5(PROJECT_NAMESPACE, project_id))


class ProjectVector(BaseModel):
    """The single vector stored for a project.

    Attributes:
        id: Project identifier (owned by the project store).
        embedding: Embedding of the description.
        description: Text the embedding was derived from; empty for
            placeholders.
    """

    id: str = Field(min_length=1, description="Project identifier")
    embedding: list[float] = Field(description="Embedding vector")
    description: str = Field(default="", description="Project description")

    def to_payload(self) -> dict[str, str]:
        """Metadata stored alongside the vector."""
        return {"project_id": self.id, "description": self.description}


class SearchCandidate(BaseModel):
    """A nearest-neighbour match returned by the index.

    Attributes:
        id: Project identifier.
        description: Stored description.
        raw_score: Store similarity (cosine, higher is more similar).
    """

    id: str = Field(description="Project identifier")
    description: str = Field(default="", description="Stored description")
    raw_score: float = Field(description="Similarity reported by the store")
