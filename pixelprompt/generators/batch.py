"""
Batch generation for PixelPrompt.

Runs 1-4 image generation calls one after another against the AI client
and folds the outcomes into a single batch result. A failure of the
first call is treated as the service being down and ends the batch;
later failures are recorded and the batch carries on.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional
import logging
import time

from ..catalog import DEFAULT_SIZE, style_prompt
from ..images import generate_image_id
from ..models import GeneratedImage
from ..validation import validate_generation_request
from . import ImageGenerationResponse

logger = logging.getLogger(__name__)


@dataclass
class BatchMemberResult:
    """Outcome of one call within a batch (1-indexed)."""

    index: int
    success: bool
    image_url: Optional[str] = None
    error: Optional[str] = None
    generation_time: Optional[int] = None

    @classmethod
    def from_response(cls, index: int, response: ImageGenerationResponse) -> "BatchMemberResult":
        return cls(
            index=index,
            success=response.success,
            image_url=response.image_url,
            error=response.error,
            generation_time=response.generation_time,
        )

    def to_dict(self) -> dict:
        response = ImageGenerationResponse(
            success=self.success,
            image_url=self.image_url,
            error=self.error,
            generation_time=self.generation_time,
        )
        return {"index": self.index, **response.to_dict()}


@dataclass
class BatchResult:
    """Aggregated outcome of a batch."""

    results: list[BatchMemberResult] = field(default_factory=list)
    metadata: dict = field(default_factory=dict)

    @property
    def successes(self) -> list[BatchMemberResult]:
        return [r for r in self.results if r.success]

    @property
    def success(self) -> bool:
        return self.success_count > 0

    @property
    def success_count(self) -> int:
        return len(self.successes)

    @property
    def error_count(self) -> int:
        return len(self.results) - self.success_count

    @property
    def has_errors(self) -> bool:
        return any(not r.success for r in self.results)

    @property
    def error(self) -> Optional[str]:
        """First member's error when nothing succeeded."""
        if self.success:
            return None
        if self.results and self.results[0].error:
            return self.results[0].error
        return "Image generation failed"

    def to_dict(self) -> dict:
        results = [r.to_dict() for r in self.results]
        if not self.success:
            return {"success": False, "error": self.error, "results": results}
        return {
            "success": True,
            "results": results,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "hasErrors": self.has_errors,
            "metadata": self.metadata,
        }

    def to_images(
        self,
        prompt: str,
        size: str,
        style: Optional[str] = None,
        timestamp: Optional[int] = None,
    ) -> list[GeneratedImage]:
        """Convert successful members into GeneratedImages, in index order."""
        timestamp = timestamp if timestamp is not None else int(time.time() * 1000)
        return [
            GeneratedImage(
                id=generate_image_id(),
                url=r.image_url,
                prompt=prompt,
                size=size,
                timestamp=timestamp,
                style=style or None,
                generation_time=r.generation_time,
            )
            for r in sorted(self.successes, key=lambda r: r.index)
        ]


class BatchGenerator:
    """Issues sequential generation calls through an AIClient.

    Usage:
        generator = BatchGenerator(client)
        result = generator.generate("a cat", style="realistic", batch_count=3)
        if result.success:
            images = result.to_images("a cat", "1024x1024", "realistic")
    """

    def __init__(self, client):
        self.client = client

    def generate(
        self,
        prompt: str,
        size: str = DEFAULT_SIZE,
        style: Optional[str] = None,
        system_prompt: Optional[str] = None,
        batch_count: int = 1,
        on_progress: Optional[Callable[[int, int], None]] = None,
    ) -> BatchResult:
        """
        Run a batch.

        Args:
            prompt: The user prompt shared by every member
            size: One of the catalog size values
            style: Style id; resolved to its prompt fragment
            system_prompt: Optional system prompt override
            batch_count: Number of images to generate (1-4)
            on_progress: Called with (index, total) before each call

        Returns:
            BatchResult with one entry per call made

        Raises:
            ValidationError: If the request is invalid. No call is made.
        """
        validate_generation_request(prompt, size, batch_count)

        fragment = style_prompt(style)
        results = []

        for index in range(1, batch_count + 1):
            if on_progress:
                on_progress(index, batch_count)

            response = self.client.generate_image(
                prompt,
                size=size,
                style=fragment,
                system_prompt=system_prompt,
            )
            results.append(BatchMemberResult.from_response(index, response))

            if not response.success and index == 1:
                logger.warning("First generation in batch failed, skipping remaining %d", batch_count - 1)
                break

        result = BatchResult(
            results=results,
            metadata={
                "prompt": prompt,
                "size": size,
                "style": style,
                "batchCount": batch_count,
                "timestamp": datetime.now(timezone.utc).isoformat(),
            },
        )

        if result.has_errors and result.success:
            logger.info("Batch finished with %d/%d successful", result.success_count, len(results))

        return result
