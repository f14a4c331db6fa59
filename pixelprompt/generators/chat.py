"""
Chat-completions client for image generation and prompt enhancement.

The remote service exposes a single chat-completions endpoint. Image
generation and prompt rewriting are both plain chat calls; the text
content of the first choice is either the generated image URL or the
enhanced prompt.
"""

import logging
from time import perf_counter
from typing import Optional

import httpx

from . import (
    EmptyResult,
    ImageGenerationResponse,
    PromptEnhancementResponse,
    RequestFailed,
    RequestTimeout,
)
from ..catalog import IMAGE_GENERATION_SYSTEM_PROMPT, PROMPT_ENHANCEMENT_SYSTEM_PROMPT
from ..config import (
    DEFAULT_ENDPOINT,
    DEFAULT_IMAGE_MODEL,
    DEFAULT_TEXT_MODEL,
    IMAGE_TIMEOUT_MS,
    TEXT_TIMEOUT_MS,
)
from ..images import is_valid_image_url

logger = logging.getLogger(__name__)

ENHANCEMENT_DIRECTIVE = (
    "Please provide an enhanced version that adds specific visual details, lighting, mood, "
    "and composition elements while maintaining the original creative intent. "
    "Return only the enhanced prompt, no explanations."
)


class AIClient:
    """Client for the remote chat-completions AI service.

    Holds no per-request state, so one instance can be shared by every
    caller in a process. Each operation makes exactly one HTTP request.

    Usage:
        with AIClient(api_key="...", customer_id="...") as client:
            result = client.generate_image("a cat", size="1024x1024")
            if result.success:
                print(result.image_url)
    """

    def __init__(
        self,
        api_key: str = "",
        customer_id: str = "",
        endpoint: str = DEFAULT_ENDPOINT,
        image_model: str = DEFAULT_IMAGE_MODEL,
        text_model: str = DEFAULT_TEXT_MODEL,
        image_timeout_ms: int = IMAGE_TIMEOUT_MS,
        text_timeout_ms: int = TEXT_TIMEOUT_MS,
        strict_urls: bool = False,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        """
        Initialize the AI client.

        Args:
            api_key: Bearer credential for the service
            customer_id: Tenant identifier sent with every request
            endpoint: Chat-completions URL
            image_model: Model id used for image generation
            text_model: Model id used for prompt enhancement
            image_timeout_ms: Deadline for image generation calls
            text_timeout_ms: Deadline for enhancement calls
            strict_urls: Reject generation content that is not an http(s) or
                         data:image URL instead of passing it through
            transport: Optional httpx transport (used by tests)
        """
        self.endpoint = endpoint
        self.image_model = image_model
        self.text_model = text_model
        self.image_timeout_ms = image_timeout_ms
        self.text_timeout_ms = text_timeout_ms
        self.strict_urls = strict_urls
        self._headers = {
            "customerId": customer_id,
            "Content-Type": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        self._client = httpx.Client(transport=transport)

    @classmethod
    def from_config(cls, config, transport: Optional[httpx.BaseTransport] = None) -> "AIClient":
        """Build a client from a loaded Config."""
        service = config.service
        return cls(
            api_key=service.api_key,
            customer_id=service.customer_id,
            endpoint=service.endpoint,
            image_model=service.image_model,
            text_model=service.text_model,
            image_timeout_ms=service.image_timeout_ms,
            text_timeout_ms=service.text_timeout_ms,
            transport=transport,
        )

    def generate_image(
        self,
        prompt: str,
        size: Optional[str] = None,
        style: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> ImageGenerationResponse:
        """
        Generate an image from a prompt.

        Args:
            prompt: The user prompt
            size: Resolution hint such as "1024x1024"
            style: Style prompt fragment (not the style id)
            system_prompt: Override for the default generation system prompt

        Returns:
            ImageGenerationResponse; failures are reported in ``error``, never raised.
            ``generation_time`` is filled in for both outcomes.
        """
        start = perf_counter()
        try:
            full_prompt = build_image_prompt(prompt, size=size, style=style)
            content = self._complete(
                model=self.image_model,
                system_prompt=system_prompt or IMAGE_GENERATION_SYSTEM_PROMPT,
                user_content=full_prompt,
                timeout_ms=self.image_timeout_ms,
            )
            if not content:
                raise EmptyResult("No image URL received from AI service")

            image_url = content.strip()
            if not is_valid_image_url(image_url):
                if self.strict_urls:
                    raise EmptyResult("AI service returned content that is not an image URL")
                logger.warning("AI service content does not look like an image URL: %.80s", image_url)

            return ImageGenerationResponse(
                success=True,
                image_url=image_url,
                generation_time=_elapsed_ms(start),
            )
        except (RequestFailed, EmptyResult) as e:
            logger.error("Image generation error: %s", e)
            return ImageGenerationResponse(
                success=False,
                error=str(e),
                generation_time=_elapsed_ms(start),
            )

    def enhance_prompt(
        self,
        original_prompt: str,
        style_context: Optional[str] = None,
        system_prompt: Optional[str] = None,
    ) -> PromptEnhancementResponse:
        """
        Rewrite a prompt with richer visual detail.

        Args:
            original_prompt: The prompt to enhance
            style_context: Optional "<Name> style: <description>" line
            system_prompt: Override for the default enhancement system prompt

        Returns:
            PromptEnhancementResponse with the stripped enhanced prompt.
        """
        try:
            instruction = build_enhancement_instruction(original_prompt, style_context)
            content = self._complete(
                model=self.text_model,
                system_prompt=system_prompt or PROMPT_ENHANCEMENT_SYSTEM_PROMPT,
                user_content=instruction,
                timeout_ms=self.text_timeout_ms,
            )
            if not content or not content.strip():
                raise EmptyResult("No enhanced prompt received from AI service")

            return PromptEnhancementResponse(success=True, enhanced_prompt=content.strip())
        except (RequestFailed, EmptyResult) as e:
            logger.error("Prompt enhancement error: %s", e)
            return PromptEnhancementResponse(success=False, error=str(e))

    def _complete(self, model: str, system_prompt: str, user_content: str, timeout_ms: int) -> str:
        """Issue one chat-completions call and return the first choice's content."""
        payload = {
            "model": model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_content},
            ],
        }

        try:
            response = self._client.post(
                self.endpoint,
                json=payload,
                headers=self._headers,
                timeout=timeout_ms / 1000,
            )
        except httpx.TimeoutException as e:
            raise RequestTimeout(f"Request timed out after {timeout_ms}ms") from e
        except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
            # ValueError covers credentials that cannot be encoded into a header.
            raise RequestFailed(f"Request to AI service failed: {e}") from e

        if not response.is_success:
            raise RequestFailed(f"HTTP error! status: {response.status_code}", response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            raise RequestFailed("Invalid JSON in AI service response") from e

        return extract_content(data)

    def close(self):
        """Close the HTTP client."""
        self._client.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


def build_image_prompt(prompt: str, size: Optional[str] = None, style: Optional[str] = None) -> str:
    """Composite prompt: base prompt, then style fragment, then size hint."""
    full_prompt = prompt
    if style:
        full_prompt += f", {style}"
    if size:
        full_prompt += f", {size} resolution"
    return full_prompt


def build_enhancement_instruction(original_prompt: str, style_context: Optional[str] = None) -> str:
    instruction = f'Enhance this image generation prompt: "{original_prompt}"\n\n'
    if style_context:
        instruction += f"Style context: {style_context}\n"
    instruction += ENHANCEMENT_DIRECTIVE
    return instruction


def extract_content(data) -> str:
    """Pull ``choices[0].message.content`` out of a response, or "" if absent."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not choices or not isinstance(choices, list) or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message") or {}
    content = message.get("content") if isinstance(message, dict) else None
    return content if isinstance(content, str) else ""


def _elapsed_ms(start: float) -> int:
    return int((perf_counter() - start) * 1000)
