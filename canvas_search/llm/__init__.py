"""LLM client module."""

from canvas_search.llm.client import LLMClient, OpenAICompatibleClient
from canvas_search.llm.models import GenerationResult, Message, Role
from canvas_search.llm.parsing import (
    extract_json,
    parse_description,
    parse_ranked_results,
    strip_code_fences,
)
from canvas_search.llm.prompts import (
    DescriptionPromptTemplate,
    ImageAnalysisPromptTemplate,
    PromptTemplate,
    RerankPromptTemplate,
)

__all__ = [
    "DescriptionPromptTemplate",
    "GenerationResult",
    "ImageAnalysisPromptTemplate",
    "LLMClient",
    "Message",
    "OpenAICompatibleClient",
    "PromptTemplate",
    "RerankPromptTemplate",
    "Role",
    "extract_json",
    "parse_description",
    "parse_ranked_results",
    "strip_code_fences",
]
