"""
Generation session: the client-side state machine around batch generation.

States run Idle -> Generating -> Succeeded | Failed. Each new request
replaces the previous state wholesale; a partial batch failure is a soft
error that still carries images.
"""

import logging
from typing import Optional

from pixelprompt.catalog import style_context
from pixelprompt.generators import PromptEnhancementResponse
from pixelprompt.generators.batch import BatchGenerator
from pixelprompt.models import GenerationOptions, GenerationState
from pixelprompt.storage import HistoryStore, SettingsStore
from pixelprompt.validation import ValidationError, validate_enhancement_request

logger = logging.getLogger(__name__)


class GenerationSession:
    """Drives generation requests and keeps the resulting state.

    Usage:
        session = GenerationSession(client, history=history, settings=settings)
        state = session.generate(GenerationOptions(prompt="a cat", batch_count=2))
        if state.error and not state.images:
            state = session.retry()
    """

    def __init__(
        self,
        client,
        history: Optional[HistoryStore] = None,
        settings: Optional[SettingsStore] = None,
    ):
        self.client = client
        self.generator = BatchGenerator(client)
        self.history = history
        self.settings = settings
        self.state = GenerationState()
        self.last_options: Optional[GenerationOptions] = None

    def generate(self, options: GenerationOptions) -> GenerationState:
        """Run a generation request and return the new state."""
        self.last_options = options
        self.state = GenerationState(
            is_generating=True,
            total_batches=options.batch_count,
        )

        def on_progress(index: int, total: int):
            self.state.current_batch = index
            self.state.progress = int((index - 1) / total * 100)

        try:
            result = self.generator.generate(
                options.prompt,
                size=options.size,
                style=options.style,
                system_prompt=options.system_prompt,
                batch_count=options.batch_count,
                on_progress=on_progress,
            )
        except ValidationError as e:
            self._fail(str(e))
            return self.state
        except Exception as e:
            logger.exception("Unexpected error during image generation")
            self._fail(str(e) or "Unknown error occurred")
            return self.state

        if not result.success:
            self._fail(result.error or "Image generation failed")
            return self.state

        images = result.to_images(options.prompt, options.size, options.style)
        self.state.is_generating = False
        self.state.progress = 100
        self.state.images = images
        if result.has_errors:
            self.state.error = f"Generated {result.success_count}/{len(result.results)} images successfully"

        self._record(images)
        return self.state

    def retry(self) -> Optional[GenerationState]:
        """Replay the last request unchanged. Returns None if there is none."""
        if self.last_options is None:
            return None
        return self.generate(self.last_options)

    def clear_images(self) -> None:
        self.state.images = []
        self.state.error = None
        self.state.progress = 0

    def clear_error(self) -> None:
        self.state.error = None

    def enhance(self, prompt: str, style: Optional[str] = None) -> PromptEnhancementResponse:
        """Enhance a prompt using the stored system prompt override, if any."""
        try:
            validate_enhancement_request(prompt)
        except ValidationError as e:
            return PromptEnhancementResponse(success=False, error=str(e))

        system_prompt = self.settings.get_system_prompt() if self.settings else ""
        return self.client.enhance_prompt(
            prompt,
            style_context=style_context(style),
            system_prompt=system_prompt or None,
        )

    def _fail(self, message: str) -> None:
        logger.error("Image generation error: %s", message)
        self.state.is_generating = False
        self.state.progress = 0
        self.state.images = []
        self.state.error = message

    def _record(self, images) -> None:
        if self.history is None or not images:
            return
        if self.settings is not None and not self.settings.load().save_history:
            return
        self.history.add_images(images)
