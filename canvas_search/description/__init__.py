"""Description synthesis module."""

from canvas_search.description.models import Snapshot, StructuralContent
from canvas_search.description.structural import extract_structural_content
from canvas_search.description.synthesizer import DescriptionSynthesizer

__all__ = [
    "DescriptionSynthesizer",
    "Snapshot",
    "StructuralContent",
    "extract_structural_content",
]
