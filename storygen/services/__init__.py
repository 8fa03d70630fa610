"""Service layer for composing prompts and calling the story model."""

from __future__ import annotations

from .errors import (  # noqa: F401
    EnvelopeError,
    GenerationError,
    StoryGeneratorError,
    TransportError,
    ValidationError,
)
from .gemini_client import GeminiStoryClient, GenerationRequest, GenerationResult, get_story_client  # noqa: F401
from .prompt_composer import StorySelections, compose_instruction  # noqa: F401
from .story_session import Notification, StorySession, SubmissionOutcome  # noqa: F401

__all__ = [
    "EnvelopeError",
    "GeminiStoryClient",
    "GenerationError",
    "GenerationRequest",
    "GenerationResult",
    "Notification",
    "StoryGeneratorError",
    "StorySelections",
    "StorySession",
    "SubmissionOutcome",
    "TransportError",
    "ValidationError",
    "compose_instruction",
    "get_story_client",
]
