"""
PixelPrompt - AI image generation and prompt enhancement.

A thin proxy and client for a remote chat-completions AI service, with
batch generation, a bounded generation history and persisted settings.
"""

from pathlib import Path

# Read version from VERSION file (single source of truth)
_version_file = Path(__file__).parent.parent / "VERSION"
if _version_file.exists():
    __version__ = _version_file.read_text().strip()
else:
    __version__ = "0.3.0"  # Fallback for installed packages

from pixelprompt.models import GeneratedImage, UserSettings, GenerationOptions
from pixelprompt.config import Config

__all__ = [
    "__version__",
    "GeneratedImage",
    "UserSettings",
    "GenerationOptions",
    "Config",
]
