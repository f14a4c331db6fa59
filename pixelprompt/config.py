"""
Configuration management for PixelPrompt.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional
import yaml


GLOBAL_CONFIG_DIR = Path.home() / ".pixelprompt"
GLOBAL_CONFIG_FILE = GLOBAL_CONFIG_DIR / "config.yaml"
DEFAULT_DATA_DIR = GLOBAL_CONFIG_DIR / "data"

DEFAULT_ENDPOINT = "https://oi-server.onrender.com/chat/completions"
DEFAULT_IMAGE_MODEL = "replicate/black-forest-labs/flux-1.1-pro"
DEFAULT_TEXT_MODEL = "openrouter/claude-sonnet-4"
IMAGE_TIMEOUT_MS = 300_000  # 5 minutes
TEXT_TIMEOUT_MS = 30_000


@dataclass
class ServiceConfig:
    """Remote AI service configuration."""

    endpoint: str = DEFAULT_ENDPOINT
    customer_id: str = ""
    api_key: str = ""
    image_model: str = DEFAULT_IMAGE_MODEL
    text_model: str = DEFAULT_TEXT_MODEL
    image_timeout_ms: int = IMAGE_TIMEOUT_MS
    text_timeout_ms: int = TEXT_TIMEOUT_MS

    @classmethod
    def from_dict(cls, data: dict) -> "ServiceConfig":
        return cls(
            endpoint=data.get("endpoint", DEFAULT_ENDPOINT),
            customer_id=data.get("customer_id", ""),
            api_key=data.get("api_key", ""),
            image_model=data.get("image_model", DEFAULT_IMAGE_MODEL),
            text_model=data.get("text_model", DEFAULT_TEXT_MODEL),
            image_timeout_ms=data.get("image_timeout_ms", IMAGE_TIMEOUT_MS),
            text_timeout_ms=data.get("text_timeout_ms", TEXT_TIMEOUT_MS),
        )

    def to_dict(self) -> dict:
        return {
            "endpoint": self.endpoint,
            "customer_id": self.customer_id,
            "api_key": self.api_key,
            "image_model": self.image_model,
            "text_model": self.text_model,
            "image_timeout_ms": self.image_timeout_ms,
            "text_timeout_ms": self.text_timeout_ms,
        }

    def merge_env(self) -> "ServiceConfig":
        """Merge with environment variables (env takes precedence)."""
        return ServiceConfig(
            endpoint=os.getenv("PIXELPROMPT_ENDPOINT") or self.endpoint,
            customer_id=os.getenv("PIXELPROMPT_CUSTOMER_ID") or self.customer_id,
            api_key=os.getenv("PIXELPROMPT_API_KEY") or self.api_key,
            image_model=self.image_model,
            text_model=self.text_model,
            image_timeout_ms=self.image_timeout_ms,
            text_timeout_ms=self.text_timeout_ms,
        )


@dataclass
class Defaults:
    """Default settings."""

    data_dir: str = str(DEFAULT_DATA_DIR)
    max_history_items: int = 50
    history_view_items: int = 20
    download_dir: str = "."
    download_delay: float = 0.5  # seconds between images in a multi-download
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_dict(cls, data: dict) -> "Defaults":
        return cls(
            data_dir=data.get("data_dir", str(DEFAULT_DATA_DIR)),
            max_history_items=data.get("max_history_items", 50),
            history_view_items=data.get("history_view_items", 20),
            download_dir=data.get("download_dir", "."),
            download_delay=data.get("download_delay", 0.5),
            host=data.get("host", "127.0.0.1"),
            port=data.get("port", 8000),
        )

    def to_dict(self) -> dict:
        return {
            "data_dir": self.data_dir,
            "max_history_items": self.max_history_items,
            "history_view_items": self.history_view_items,
            "download_dir": self.download_dir,
            "download_delay": self.download_delay,
            "host": self.host,
            "port": self.port,
        }


@dataclass
class Config:
    """Complete configuration."""

    service: ServiceConfig = field(default_factory=ServiceConfig)
    defaults: Defaults = field(default_factory=Defaults)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Config":
        """Load configuration from file and environment."""
        config_path = config_path or GLOBAL_CONFIG_FILE

        config = cls()

        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
                config.service = ServiceConfig.from_dict(data.get("service", {}))
                config.defaults = Defaults.from_dict(data.get("defaults", {}))

        # Environment variables take precedence
        config.service = config.service.merge_env()
        if os.getenv("PIXELPROMPT_DATA_DIR"):
            config.defaults.data_dir = os.environ["PIXELPROMPT_DATA_DIR"]

        return config

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save configuration to file."""
        config_path = config_path or GLOBAL_CONFIG_FILE
        config_path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "service": self.service.to_dict(),
            "defaults": self.defaults.to_dict(),
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False)

    def validate(self) -> list[str]:
        """Validate configuration and return list of issues."""
        issues = []

        if not self.service.endpoint:
            issues.append("AI service endpoint not configured (PIXELPROMPT_ENDPOINT)")
        if not self.service.api_key:
            issues.append("AI service API key not configured (PIXELPROMPT_API_KEY)")
        if not self.service.customer_id:
            issues.append("AI service customer id not configured (PIXELPROMPT_CUSTOMER_ID)")
        if self.service.image_timeout_ms <= 0 or self.service.text_timeout_ms <= 0:
            issues.append("Request timeouts must be positive")
        if self.defaults.max_history_items < 1:
            issues.append("max_history_items must be at least 1")

        return issues

    @property
    def data_path(self) -> Path:
        return Path(self.defaults.data_dir).expanduser()
