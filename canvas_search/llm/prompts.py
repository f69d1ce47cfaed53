"""Prompt templates for description synthesis and re-ranking."""

import json
from abc import ABC, abstractmethod
from typing import Any


class PromptTemplate(ABC):
    """Abstract base class for prompt templates."""

    @abstractmethod
    def format(self, **kwargs: Any) -> str:
        """Format the template with provided variables.

        Args:
            **kwargs: Template variables.

        Returns:
            Formatted prompt string.
        """
        ...


class ImageAnalysisPromptTemplate(PromptTemplate):
    """Prompt sent with the canvas snapshot to the vision model."""

    DEFAULT_TEMPLATE = """Analyze this image and list:
- Every visual object (natural elements, buildings, creatures, people, symbols, shapes), no matter how small
- Their positions and how they relate to each other
- Any text content, copied exactly
- Every number or percentage, copied exactly
- Colors used and visual style
- Overall composition and layout

Provide only descriptive adjectives and nouns separated by commas. No sentences."""

    def __init__(self, template: str | None = None) -> None:
        self.template = template or self.DEFAULT_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Return the analysis prompt; takes no variables."""
        return self.template


class DescriptionPromptTemplate(PromptTemplate):
    """Merges visual analysis and structural content into one description.

    The model must answer with a single JSON object of the form
    ``{"id": ..., "description": ...}``.
    """

    DEFAULT_SYSTEM_PROMPT = """You write dense, keyword-style descriptions of visual designs for a search index.

Rules:
- Output descriptive adjectives and nouns only, separated by commas. No sentences.
- Keep every literal text string exactly as given
- Keep every number and percentage exactly as given
- List every visual object, its position and relationships, dominant colors and overall composition
- Return ONLY a valid JSON object, no additional text"""

    DEFAULT_USER_TEMPLATE = """Analyze these visual and structural elements of project {project_id}:

Visual elements: {visual}
Literal text: {texts}
Numeric values: {numbers}
Object types: {object_types}

Return a valid JSON object with exactly this structure:
{{"id": "{project_id}", "description": "descriptive words here"}}"""

    def __init__(
        self,
        system_prompt: str | None = None,
        user_template: str | None = None,
    ) -> None:
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.user_template = user_template or self.DEFAULT_USER_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format the user template.

        Args:
            **kwargs: Must include 'project_id', 'visual', 'texts',
                'numbers' and 'object_types'.

        Returns:
            Formatted user prompt.
        """
        return self.user_template.format(**kwargs)

    def build_prompt(
        self,
        project_id: str,
        visual: str,
        texts: list[str],
        numbers: list[str],
        object_types: list[str],
    ) -> tuple[str, str]:
        """Build complete prompt from visual analysis and structural content.

        Returns:
            Tuple of (system_prompt, user_prompt).
        """
        user_prompt = self.format(
            project_id=project_id,
            visual=visual.strip(),
            texts=json.dumps(texts, ensure_ascii=False) if texts else "none",
            numbers=", ".join(numbers) if numbers else "none",
            object_types=", ".join(object_types) if object_types else "none",
        )
        return self.system_prompt, user_prompt


class RerankPromptTemplate(PromptTemplate):
    """Asks the model to order stored project descriptions against a query."""

    DEFAULT_SYSTEM_PROMPT = """You compare a search description with stored project descriptions and rank the projects.

Rules:
- If the search term matches a project exactly (searching "bee" and finding a bee image), that project comes first
- Then rank by related themes or elements, similar visual style, common color schemes and comparable compositions
- Return ALL available projects if the total count is at most {max_results}
- Return EXACTLY {max_results} projects if the total count is greater than {max_results}
- Sort by similarity score in descending order
- Use ONLY the similarity scores given with the descriptions
- Return ONLY a valid JSON array of objects with 'id' and 'similarity' properties"""

    DEFAULT_USER_TEMPLATE = """Stored project descriptions:
{projects}

Search description:
{query}"""

    def __init__(
        self,
        system_prompt: str | None = None,
        user_template: str | None = None,
    ) -> None:
        self.system_prompt = system_prompt or self.DEFAULT_SYSTEM_PROMPT
        self.user_template = user_template or self.DEFAULT_USER_TEMPLATE

    def format(self, **kwargs: Any) -> str:
        """Format the user template.

        Args:
            **kwargs: Must include 'projects' and 'query'.
        """
        return self.user_template.format(**kwargs)

    def format_projects(
        self,
        projects: list[tuple[str, str, float]],
        separator: str = "\n\n",
    ) -> str:
        """Render (id, description, score) triples as a project listing."""
        return separator.join(
            f"Project {project_id}:\n{description}\nSimilarity: {score:.2f}"
            for project_id, description, score in projects
        )

    def build_prompt(
        self,
        query: str,
        projects: list[tuple[str, str, float]],
        max_results: int,
    ) -> tuple[str, str]:
        """Build complete prompt from query and candidate projects.

        Returns:
            Tuple of (system_prompt, user_prompt).
        """
        system_prompt = self.system_prompt.format(max_results=max_results)
        user_prompt = self.format(
            projects=self.format_projects(projects),
            query=query,
        )
        return system_prompt, user_prompt
