"""Derive searchable descriptions and embeddings from project content."""

from canvas_search.description.models import Snapshot, StructuralContent
from canvas_search.embeddings.service import EmbeddingService
from canvas_search.exceptions import (
    DescriptionGenerationFailedError,
    EmbeddingFailedError,
    ErrorCode,
    LLMError,
)
from canvas_search.llm.client import LLMClient
from canvas_search.llm.parsing import parse_description
from canvas_search.llm.prompts import DescriptionPromptTemplate, ImageAnalysisPromptTemplate
from canvas_search.logging_config import get_logger

logger = get_logger(__name__)


class DescriptionSynthesizer:
    """Turns a canvas snapshot into a keyword-dense description, and text
    into an embedding vector.

    Description runs in two model calls: a vision pass over the snapshot,
    then a text pass that merges the visual analysis with the structural
    content and returns JSON.
    """

    def __init__(
        self,
        llm_client: LLMClient,
        embedding_service: EmbeddingService,
        analysis_prompt: ImageAnalysisPromptTemplate | None = None,
        description_prompt: DescriptionPromptTemplate | None = None,
    ) -> None:
        self._llm_client = llm_client
        self._embedding_service = embedding_service
        self._analysis_prompt = analysis_prompt or ImageAnalysisPromptTemplate()
        self._description_prompt = description_prompt or DescriptionPromptTemplate()

    async def describe(
        self,
        snapshot: Snapshot,
        structural_content: StructuralContent | None = None,
        project_id: str = "",
    ) -> str:
        """Produce a description of a project's visual content.

        Args:
            snapshot: Rendered canvas image.
            structural_content: Texts and numbers read from the canvas
                document. Optional; the description falls back to visual
                content alone.
            project_id: Project identifier echoed in the merge prompt.

        Returns:
            Comma-separated keywords and phrases. Every literal text and
            numeric value from ``structural_content`` appears verbatim.

        Raises:
            DescriptionGenerationFailedError: If any model call fails or
                returns nothing usable.
        """
        if not snapshot.data:
            raise DescriptionGenerationFailedError(
                "Snapshot is empty",
                details={"project_id": project_id},
            )

        structural = structural_content or StructuralContent()

        try:
            analysis = await self._llm_client.describe_image(
                snapshot.data,
                snapshot.mime_type,
                self._analysis_prompt.format(),
            )
        except LLMError as e:
            logger.error(
                f"Image analysis failed: {e.message}",
                extra={"project_id": project_id, "error_code": e.code.value},
            )
            raise DescriptionGenerationFailedError(
                f"Image analysis failed: {e.message}",
                details={"project_id": project_id, "cause": e.code.value},
            ) from e

        visual = analysis.content.strip()
        if not visual:
            raise DescriptionGenerationFailedError(
                "Image analysis returned no content",
                details={"project_id": project_id},
            )

        system_prompt, user_prompt = self._description_prompt.build_prompt(
            project_id=project_id,
            visual=visual,
            texts=structural.texts,
            numbers=structural.numbers,
            object_types=structural.object_types,
        )

        try:
            merged = await self._llm_client.generate_text(
                prompt=user_prompt,
                system_prompt=system_prompt,
            )
        except LLMError as e:
            logger.error(
                f"Description merge failed: {e.message}",
                extra={"project_id": project_id, "error_code": e.code.value},
            )
            raise DescriptionGenerationFailedError(
                f"Description merge failed: {e.message}",
                details={"project_id": project_id, "cause": e.code.value},
            ) from e

        description = parse_description(merged.content)
        if not description:
            raise DescriptionGenerationFailedError(
                "Model response did not contain a description",
                code=ErrorCode.DESCRIPTION_PARSE_ERROR,
                details={"project_id": project_id, "response": merged.content[:200]},
            )

        missing = [value for value in structural.literals() if value not in description]
        if missing:
            logger.debug(
                "Appending literals the model dropped",
                extra={"project_id": project_id, "missing": len(missing)},
            )
            description = ", ".join([description, *missing])

        logger.info(
            "Generated description",
            extra={"project_id": project_id, "length": len(description)},
        )
        return description

    async def embed(self, text: str) -> list[float]:
        """Embed text into the index's vector space.

        Raises:
            EmbeddingFailedError: If the text is empty or embedding fails.
        """
        if not text or not text.strip():
            raise EmbeddingFailedError(
                "Cannot embed empty text",
                code=ErrorCode.EMBEDDING_EMPTY_INPUT,
            )
        result = await self._embedding_service.embed(text)
        return result.embedding
