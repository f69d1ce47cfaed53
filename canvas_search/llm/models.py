"""LLM data models."""

import base64
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class Role(str, Enum):
    """Message role in a conversation."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class Message(BaseModel):
    """A message in a conversation.

    Content is either plain text or a list of OpenAI-style content
    parts (``{"type": "text", ...}`` / ``{"type": "image_url", ...}``).

    Attributes:
        role: The role of the message sender.
        content: The message content.
    """

    role: Role = Field(description="Message role")
    content: str | list[dict[str, Any]] = Field(description="Message content")

    @classmethod
    def with_image(
        cls,
        text: str,
        image: bytes,
        mime_type: str = "image/png",
    ) -> "Message":
        """Build a user message carrying text and an inline image."""
        encoded = base64.b64encode(image).decode("ascii")
        return cls(
            role=Role.USER,
            content=[
                {"type": "text", "text": text},
                {
                    "type": "image_url",
                    "image_url": {"url": f"data:{mime_type};base64,{encoded}"},
                },
            ],
        )


class GenerationResult(BaseModel):
    """Result from LLM generation.

    Attributes:
        content: The generated text.
        model: Model used for generation.
        prompt_tokens: Number of tokens in the prompt.
        completion_tokens: Number of tokens in the completion.
        total_tokens: Total tokens used.
    """

    content: str = Field(description="Generated text")
    model: str = Field(description="Model used")
    prompt_tokens: int = Field(default=0, description="Prompt token count")
    completion_tokens: int = Field(default=0, description="Completion token count")
    total_tokens: int = Field(default=0, description="Total token count")
