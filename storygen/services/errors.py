"""Error taxonomy shared by the composer, the Gemini client and the session."""

from __future__ import annotations

from typing import Optional


class StoryGeneratorError(RuntimeError):
    """Base class for every failure surfaced to the story page."""

    category = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(StoryGeneratorError):
    """Raised when the draft is not ready to be submitted."""

    category = "validation"

    def __init__(self, message: str, *, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.field = field


class GenerationError(StoryGeneratorError):
    """A remote generation attempt did not produce a story."""

    category = "generation"


class TransportError(GenerationError):
    """The endpoint answered with a non-success status or could not be reached."""

    category = "transport"

    def __init__(self, status_code: Optional[int], message: Optional[str] = None) -> None:
        if message is None:
            message = f"API Error: {status_code}" if status_code is not None else "API Error: request failed"
        super().__init__(message)
        self.status_code = status_code


class EnvelopeError(GenerationError):
    """The endpoint answered successfully but the body had no candidate text."""

    category = "envelope"

    def __init__(self, message: str = "Unexpected response format.") -> None:
        super().__init__(message)
