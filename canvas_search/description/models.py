"""Description synthesis data models."""

from pydantic import BaseModel, Field


class Snapshot(BaseModel):
    """A rendered raster image of a project canvas.

    Attributes:
        data: Encoded image bytes.
        mime_type: Image MIME type.
    """

    data: bytes = Field(description="Encoded image bytes")
    mime_type: str = Field(default="image/png", description="Image MIME type")


class StructuralContent(BaseModel):
    """Content read from the canvas document rather than the pixels.

    Attributes:
        texts: Literal text strings, verbatim.
        numbers: Numeric and percentage values found in the texts.
        object_types: Kinds of objects on the canvas, first-seen order.
    """

    texts: list[str] = Field(default_factory=list, description="Literal texts")
    numbers: list[str] = Field(default_factory=list, description="Numeric values")
    object_types: list[str] = Field(default_factory=list, description="Object kinds")

    @property
    def is_empty(self) -> bool:
        return not (self.texts or self.numbers or self.object_types)

    def literals(self) -> list[str]:
        """Values that must survive verbatim into the description."""
        return [*self.texts, *self.numbers]
