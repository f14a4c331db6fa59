"""
Data models for PixelPrompt.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional

from pixelprompt.catalog import DEFAULT_SIZE, DEFAULT_STYLE, get_style, size_values


class SettingsKeyError(KeyError):
    """Raised when a settings change names a field that does not exist."""
    pass


@dataclass
class GeneratedImage:
    """A single generated image.

    ``timestamp`` is client-side epoch milliseconds, ``generation_time`` the
    elapsed milliseconds of the remote call that produced the image.
    """

    id: str
    url: str
    prompt: str
    size: str
    timestamp: int
    style: Optional[str] = None
    generation_time: Optional[int] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "url": self.url,
            "prompt": self.prompt,
            "size": self.size,
            "timestamp": self.timestamp,
        }
        if self.style:
            data["style"] = self.style
        if self.generation_time is not None:
            data["generationTime"] = self.generation_time
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "GeneratedImage":
        return cls(
            id=data["id"],
            url=data["url"],
            prompt=data["prompt"],
            size=data.get("size", DEFAULT_SIZE),
            timestamp=int(data["timestamp"]),
            style=data.get("style") or None,
            generation_time=data.get("generationTime"),
        )


class Theme(Enum):
    """UI colour theme preference."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"

    @classmethod
    def from_string(cls, value: str) -> "Theme":
        normalized = value.lower().strip()
        for theme in cls:
            if theme.value == normalized:
                return theme
        raise ValueError(f"Unknown theme: {value}. Use 'light', 'dark', or 'system'.")


@dataclass
class UserSettings:
    """Persisted user preferences."""

    # wire key -> attribute name
    FIELDS = {
        "defaultSize": "default_size",
        "defaultStyle": "default_style",
        "theme": "theme",
        "autoEnhancePrompts": "auto_enhance_prompts",
        "saveHistory": "save_history",
    }

    default_size: str = DEFAULT_SIZE
    default_style: str = DEFAULT_STYLE
    theme: Theme = Theme.SYSTEM
    auto_enhance_prompts: bool = False
    save_history: bool = True

    def to_dict(self) -> dict:
        return {
            "defaultSize": self.default_size,
            "defaultStyle": self.default_style,
            "theme": self.theme.value,
            "autoEnhancePrompts": self.auto_enhance_prompts,
            "saveHistory": self.save_history,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "UserSettings":
        """Build settings from persisted data, validating every field."""
        if not isinstance(data, dict):
            raise ValueError("Settings must be a JSON object")
        return cls().update(**{k: v for k, v in data.items() if k in cls.FIELDS})

    def update(self, **changes) -> "UserSettings":
        """Return a copy with ``changes`` applied.

        Keys may be wire names (``defaultSize``) or attribute names
        (``default_size``). Unknown keys raise SettingsKeyError, invalid
        values raise ValueError.
        """
        attrs = set(self.FIELDS.values())
        resolved = {}
        for key, value in changes.items():
            attr = self.FIELDS.get(key, key)
            if attr not in attrs:
                raise SettingsKeyError(key)
            resolved[attr] = _validate_setting(attr, value)
        return replace(self, **resolved)


def _validate_setting(attr: str, value):
    if attr == "default_size":
        if value not in size_values():
            raise ValueError(f"Invalid size. Must be one of: {', '.join(size_values())}")
        return value
    if attr == "default_style":
        if value and get_style(value) is None:
            raise ValueError(f"Unknown style: {value}")
        return value or ""
    if attr == "theme":
        return value if isinstance(value, Theme) else Theme.from_string(str(value))
    if not isinstance(value, bool):
        raise ValueError(f"{attr} must be a boolean")
    return value


@dataclass
class GenerationOptions:
    """A generation request, kept so it can be replayed verbatim."""

    prompt: str
    size: str = DEFAULT_SIZE
    style: Optional[str] = None
    system_prompt: Optional[str] = None
    batch_count: int = 1


@dataclass
class GenerationState:
    """Progress and output of the current generation request."""

    is_generating: bool = False
    progress: int = 0
    current_batch: int = 0
    total_batches: int = 0
    error: Optional[str] = None
    images: list[GeneratedImage] = field(default_factory=list)

    @property
    def status(self) -> str:
        """One of idle, generating, succeeded, failed."""
        if self.is_generating:
            return "generating"
        if self.images:
            return "succeeded"
        if self.error:
            return "failed"
        return "idle"

    @property
    def has_soft_error(self) -> bool:
        """Partial batch failure: images are usable but some members failed."""
        return bool(self.images) and self.error is not None


@dataclass
class DownloadState:
    """Progress of the download subsystem."""

    is_downloading: bool = False
    download_progress: float = 0
    error: Optional[str] = None
    last_downloaded_id: Optional[str] = None
