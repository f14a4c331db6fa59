"""
Persistent state for PixelPrompt: generation history, user settings and
the system prompt override.

Values are kept as serialized JSON text under fixed keys. Reads that find
missing or malformed data fall back to a default instead of failing, and
every mutation rewrites the whole value. There is a single writer; two
processes writing the same key race and the last write wins.
"""

import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Iterable, Optional

from pixelprompt.catalog import HISTORY_KEY, SETTINGS_KEY, SYSTEM_PROMPT_KEY
from pixelprompt.models import GeneratedImage, UserSettings

logger = logging.getLogger(__name__)


class StorageParseError(ValueError):
    """Persisted data could not be decoded."""
    pass


def decode(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError as e:
        raise StorageParseError(str(e)) from e


class KeyValueStore(ABC):
    """Key-value persistence with parse-or-default reads."""

    @abstractmethod
    def read_text(self, key: str) -> Optional[str]:
        """Return the raw stored text for ``key``, or None if absent."""
        pass

    @abstractmethod
    def write_text(self, key: str, text: str) -> None:
        pass

    @abstractmethod
    def delete(self, key: str) -> None:
        pass

    def get(self, key: str, default: Any = None) -> Any:
        text = self.read_text(key)
        if text is None:
            return default
        try:
            return decode(text)
        except StorageParseError as e:
            logger.warning("Discarding malformed value for %s: %s", key, e)
            return default

    def set(self, key: str, value: Any) -> None:
        self.write_text(key, json.dumps(value, indent=2))


class JsonFileStore(KeyValueStore):
    """One ``<key>.json`` file per key inside a directory."""

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def read_text(self, key: str) -> Optional[str]:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            logger.warning("Discarding unreadable value for %s: %s", key, e)
            return None

    def write_text(self, key: str, text: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.path_for(key)

        # Atomic rewrite
        temp_path = path.with_suffix(".tmp")
        temp_path.write_text(text, encoding="utf-8")
        temp_path.replace(path)

    def delete(self, key: str) -> None:
        path = self.path_for(key)
        if path.exists():
            path.unlink()


class MemoryStore(KeyValueStore):
    """In-process store; values are still kept serialized."""

    def __init__(self, initial: Optional[dict] = None):
        self._data: dict[str, str] = dict(initial or {})

    def read_text(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write_text(self, key: str, text: str) -> None:
        self._data[key] = text

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class HistoryStore:
    """Bounded, most-recent-first list of generated images."""

    def __init__(self, store: KeyValueStore, max_items: int = 50):
        self.store = store
        self.max_items = max_items

    def get_history(self, limit: Optional[int] = None) -> list[GeneratedImage]:
        """Load history, optionally limited to the most recent ``limit`` items."""
        raw = self.store.get(HISTORY_KEY, [])
        if not isinstance(raw, list):
            logger.warning("History is not a list, starting empty")
            return []

        images = []
        for entry in raw:
            try:
                images.append(GeneratedImage.from_dict(entry))
            except (KeyError, TypeError, ValueError, AttributeError):
                logger.warning("Dropping malformed history entry: %r", entry)

        if limit is not None:
            images = images[:limit]
        return images

    def get(self, image_id: str) -> Optional[GeneratedImage]:
        for image in self.get_history():
            if image.id == image_id:
                return image
        return None

    def add_images(self, images: Iterable[GeneratedImage]) -> list[GeneratedImage]:
        """Prepend ``images`` (first stays first) and truncate to the cap."""
        new = list(images)
        new_ids = {image.id for image in new}
        existing = [image for image in self.get_history() if image.id not in new_ids]
        history = (new + existing)[: self.max_items]
        self._save(history)
        return history

    def add_image(self, image: GeneratedImage) -> list[GeneratedImage]:
        return self.add_images([image])

    def remove(self, image_id: str) -> bool:
        """Remove an image by id. Returns True if it was present."""
        history = self.get_history()
        filtered = [image for image in history if image.id != image_id]
        self._save(filtered)
        return len(filtered) != len(history)

    def clear(self) -> None:
        self._save([])

    def _save(self, history: list[GeneratedImage]) -> None:
        self.store.set(HISTORY_KEY, [image.to_dict() for image in history])


class SettingsStore:
    """User settings and the free-text system prompt override."""

    def __init__(self, store: KeyValueStore):
        self.store = store

    def load(self) -> UserSettings:
        """Load settings, falling back to defaults if missing or invalid."""
        raw = self.store.get(SETTINGS_KEY)
        if raw is None:
            return UserSettings()
        try:
            return UserSettings.from_dict(raw)
        except ValueError as e:
            logger.warning("Invalid stored settings, using defaults: %s", e)
            return UserSettings()

    def save(self, settings: UserSettings) -> None:
        self.store.set(SETTINGS_KEY, settings.to_dict())

    def update(self, **changes) -> UserSettings:
        """Apply and persist changes. Unknown keys raise SettingsKeyError."""
        settings = self.load().update(**changes)
        self.save(settings)
        return settings

    def reset(self) -> UserSettings:
        """Restore default settings and clear the system prompt override."""
        settings = UserSettings()
        self.save(settings)
        self.set_system_prompt("")
        return settings

    def get_system_prompt(self) -> str:
        value = self.store.get(SYSTEM_PROMPT_KEY, "")
        return value if isinstance(value, str) else ""

    def set_system_prompt(self, text: str) -> None:
        self.store.set(SYSTEM_PROMPT_KEY, text)

    def export_settings(self) -> dict:
        return {
            "userSettings": self.load().to_dict(),
            "systemPrompt": self.get_system_prompt(),
            "exportDate": datetime.now().isoformat(),
        }

    def import_settings(self, data: dict) -> UserSettings:
        """Apply an exported settings document.

        Raises:
            SettingsKeyError: If userSettings names an unknown field
            ValueError: If a value is invalid
        """
        if not isinstance(data, dict):
            raise ValueError("Settings export must be a JSON object")

        settings = self.load()
        if data.get("userSettings"):
            user_settings = data["userSettings"]
            if not isinstance(user_settings, dict):
                raise ValueError("userSettings must be an object")
            settings = settings.update(**user_settings)
            self.save(settings)
        if data.get("systemPrompt"):
            self.set_system_prompt(str(data["systemPrompt"]))
        return settings
