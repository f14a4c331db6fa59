"""
Remote AI service access for PixelPrompt.
"""

from dataclasses import dataclass
from typing import Optional


class AIClientError(Exception):
    """Base exception for AI service errors."""
    pass


class RequestFailed(AIClientError):
    """The AI service answered with a non-success status or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RequestTimeout(RequestFailed):
    """The request exceeded its deadline."""
    pass


class EmptyResult(AIClientError):
    """The AI service answered successfully but returned no content."""
    pass


@dataclass
class ImageGenerationResponse:
    """Outcome of a single image generation call."""

    success: bool
    image_url: Optional[str] = None
    error: Optional[str] = None
    generation_time: Optional[int] = None  # milliseconds

    def to_dict(self) -> dict:
        data = {"success": self.success}
        if self.image_url is not None:
            data["imageUrl"] = self.image_url
        if self.error is not None:
            data["error"] = self.error
        data["generationTime"] = self.generation_time
        return data


@dataclass
class PromptEnhancementResponse:
    """Outcome of a single prompt enhancement call."""

    success: bool
    enhanced_prompt: Optional[str] = None
    error: Optional[str] = None

