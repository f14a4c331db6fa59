"""
HTTP proxy for PixelPrompt.

Exposes /generate and /enhance, forwarding to the remote AI service
through a single shared AIClient.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pixelprompt import __version__
from pixelprompt.catalog import DEFAULT_SIZE, MAX_BATCH_SIZE, MAX_PROMPT_LENGTH, STYLES, size_values, style_context
from pixelprompt.config import Config
from pixelprompt.generators.batch import BatchGenerator
from pixelprompt.generators.chat import AIClient
from pixelprompt.validation import ValidationError, validate_enhancement_request

logger = logging.getLogger(__name__)


# Fields are deliberately loose; semantic checks live in pixelprompt.validation
# so that every rejection is a 400 with a specific message.
class GenerateBody(BaseModel):
    prompt: Any = None
    size: Any = DEFAULT_SIZE
    style: Optional[str] = None
    systemPrompt: Optional[str] = None
    batchCount: Any = 1


class EnhanceBody(BaseModel):
    originalPrompt: Any = None
    style: Optional[str] = None
    systemPrompt: Optional[str] = None


def get_client(request: Request) -> AIClient:
    return request.app.state.client


def error_response(status_code: int, error: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def create_app(client: Optional[AIClient] = None, config: Optional[Config] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        client: AIClient to share across requests. Built from ``config`` if omitted.
        config: Configuration; loaded from disk and environment if omitted.
    """
    owns_client = client is None
    if client is None:
        client = AIClient.from_config(config or Config.load())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_client:
            client.close()

    app = FastAPI(
        title="PixelPrompt API",
        description="AI image generation and prompt enhancement proxy",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.client = client

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        logger.info("Rejected malformed request to %s: %s", request.url.path, exc.errors())
        return error_response(400, "Request body must be a JSON object with valid fields")

    @app.post("/generate")
    def generate(body: GenerateBody, client: AIClient = Depends(get_client)):
        """Generate 1-4 images from a prompt."""
        try:
            result = BatchGenerator(client).generate(
                body.prompt,
                size=body.size,
                style=body.style,
                system_prompt=body.systemPrompt,
                batch_count=body.batchCount,
            )
        except ValidationError as e:
            return error_response(400, str(e))
        except Exception as e:
            logger.exception("Generation API error")
            return error_response(
                500,
                str(e) or "Internal server error",
                details="An unexpected error occurred during image generation",
            )

        if not result.success:
            return JSONResponse(status_code=500, content=result.to_dict())
        return result.to_dict()

    @app.get("/generate")
    def generate_info():
        return {
            "message": "AI Image Generation API",
            "endpoints": {
                "generate": "POST /generate - Generate AI images",
                "enhance": "POST /enhance - Enhance prompts",
            },
            "supportedSizes": size_values(),
            "supportedStyles": [{"id": s.id, "name": s.name} for s in STYLES],
            "limits": {
                "maxPromptLength": MAX_PROMPT_LENGTH,
                "maxBatchSize": MAX_BATCH_SIZE,
                "timeout": f"{client.image_timeout_ms // 60000} minutes",
            },
        }

    @app.post("/enhance")
    def enhance(body: EnhanceBody, client: AIClient = Depends(get_client)):
        """Rewrite a prompt with richer visual detail."""
        try:
            validate_enhancement_request(body.originalPrompt)
            result = client.enhance_prompt(
                body.originalPrompt,
                style_context=style_context(body.style),
                system_prompt=body.systemPrompt,
            )
        except ValidationError as e:
            return error_response(400, str(e))
        except Exception as e:
            logger.exception("Prompt enhancement API error")
            return error_response(
                500,
                str(e) or "Internal server error",
                details="An unexpected error occurred during prompt enhancement",
            )

        if not result.success:
            return error_response(
                500,
                result.error or "Failed to enhance prompt",
                details="The AI service could not enhance this prompt",
            )

        return {
            "success": True,
            "originalPrompt": body.originalPrompt,
            "enhancedPrompt": result.enhanced_prompt,
            "style": body.style,
            "metadata": {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "styleUsed": body.style or None,
                "enhancementLength": len(result.enhanced_prompt or ""),
            },
        }

    @app.get("/enhance")
    def enhance_info():
        return {
            "message": "AI Prompt Enhancement API",
            "description": "Enhance user prompts for better AI image generation results",
            "supportedStyles": [
                {"id": s.id, "name": s.name, "description": s.description} for s in STYLES
            ],
            "usage": {
                "method": "POST",
                "requiredFields": ["originalPrompt"],
                "optionalFields": ["style", "systemPrompt"],
                "limits": {
                    "maxPromptLength": MAX_PROMPT_LENGTH,
                    "timeout": f"{client.text_timeout_ms // 1000} seconds",
                },
            },
            "examples": [
                {
                    "input": {"originalPrompt": "a cat", "style": "realistic"},
                    "description": "Enhance a simple prompt with realistic style context",
                },
                {
                    "input": {"originalPrompt": "sunset over mountains"},
                    "description": "Enhance a prompt without specific style",
                },
            ],
        }

    return app
