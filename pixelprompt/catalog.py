"""
Static style and size catalogs for PixelPrompt.

These entries are immutable and shared by the HTTP layer, the batch
generator and the CLI.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class StyleConfig:
    """A named prompt-enhancement preset."""

    id: str
    name: str
    description: str
    prompt: str


@dataclass(frozen=True)
class SizeConfig:
    """A supported output resolution."""

    label: str
    value: str
    width: int
    height: int


STYLES: tuple[StyleConfig, ...] = (
    StyleConfig(
        id="realistic",
        name="Realistic",
        description="Lifelike and natural appearance",
        prompt="photorealistic, high quality, detailed",
    ),
    StyleConfig(
        id="artistic",
        name="Artistic",
        description="Creative and expressive artwork",
        prompt="artistic, creative, expressive style",
    ),
    StyleConfig(
        id="digital-art",
        name="Digital Art",
        description="Modern digital illustration",
        prompt="digital art, vibrant colors, modern style",
    ),
    StyleConfig(
        id="fantasy",
        name="Fantasy",
        description="Magical and mystical themes",
        prompt="fantasy art, magical, ethereal, mystical",
    ),
    StyleConfig(
        id="abstract",
        name="Abstract",
        description="Non-representational art forms",
        prompt="abstract art, geometric, contemporary",
    ),
    StyleConfig(
        id="vintage",
        name="Vintage",
        description="Nostalgic and classic appearance",
        prompt="vintage style, retro, classic aesthetic",
    ),
)

SIZES: tuple[SizeConfig, ...] = (
    SizeConfig(label="512×512", value="512x512", width=512, height=512),
    SizeConfig(label="768×768", value="768x768", width=768, height=768),
    SizeConfig(label="1024×1024", value="1024x1024", width=1024, height=1024),
    SizeConfig(label="1536×1024", value="1536x1024", width=1536, height=1024),
    SizeConfig(label="1024×1536", value="1024x1536", width=1024, height=1536),
)

DEFAULT_SIZE = "1024x1024"
DEFAULT_STYLE = "realistic"
MAX_PROMPT_LENGTH = 500
MIN_BATCH_SIZE = 1
MAX_BATCH_SIZE = 4

IMAGE_GENERATION_SYSTEM_PROMPT = """You are an expert AI image generator. Create high-quality, detailed images based on user prompts. Focus on:
- Visual clarity and composition
- Appropriate lighting and atmosphere
- Rich detail and texture
- Professional quality output
- Safe, appropriate content only"""

PROMPT_ENHANCEMENT_SYSTEM_PROMPT = """You are a creative prompt enhancement assistant. Improve user prompts for AI image generation by:
- Adding specific visual details
- Including lighting and mood descriptions
- Specifying artistic techniques or styles
- Enhancing composition elements
- Maintaining the original creative intent
- Keeping prompts concise but descriptive"""

# Persisted state keys
HISTORY_KEY = "ai-image-generator-history"
SETTINGS_KEY = "ai-image-generator-settings"
SYSTEM_PROMPT_KEY = "ai-image-generator-system-prompt"


def get_style(style_id: Optional[str]) -> Optional[StyleConfig]:
    """Look up a style by id."""
    if not style_id:
        return None
    for style in STYLES:
        if style.id == style_id:
            return style
    return None


def style_prompt(style_id: Optional[str]) -> str:
    """Prompt fragment appended to generation prompts ("" for unknown styles)."""
    style = get_style(style_id)
    return style.prompt if style else ""


def style_context(style_id: Optional[str]) -> str:
    """Style description used as context for prompt enhancement."""
    style = get_style(style_id)
    if not style:
        return ""
    return f"{style.name} style: {style.description}"


def get_size(value: Optional[str]) -> Optional[SizeConfig]:
    for size in SIZES:
        if size.value == value:
            return size
    return None


def size_values() -> list[str]:
    return [s.value for s in SIZES]


def style_ids() -> list[str]:
    return [s.id for s in STYLES]
