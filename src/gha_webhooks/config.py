"""Webhook receiver configuration and credential storage."""

import logging
import threading
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

Secret = Union[str, bytes]


class WebhookSettings(BaseSettings):
    """Webhook server settings.

    Values come from the ``webhook`` section of the YAML config and can be
    overridden with ``GHA_WEBHOOK_*`` environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="GHA_WEBHOOK_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Shared secret configured on the GitHub side
    secret: str = Field(default="", description="Webhook HMAC secret")
    secret_file: Optional[Path] = Field(
        default=None, description="File holding the webhook secret, used when secret is empty"
    )

    # HTTP
    path: str = Field(default="/webhooks/github", description="Route receiving webhook POSTs")
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, ge=1, le=65535, description="Server port")

    # Event stream
    redis_url: str = Field(default="redis://localhost:6379", description="Redis connection URL")
    stream: str = Field(default="gerrit-events", description="Stream receiving webhook events")
    stream_max_length: int = Field(default=10000, ge=1, description="Approximate stream length cap")

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # Environment beats values loaded from config.yaml
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    def resolve_secret(self) -> Optional[str]:
        """Return the configured secret, reading ``secret_file`` if needed."""
        if self.secret:
            return self.secret
        if self.secret_file is None:
            return None
        try:
            value = self.secret_file.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            logger.warning(f"webhook secret file not found: {self.secret_file}")
            return None
        return value or None


def _deep_merge(base: dict, override: dict) -> None:
    """Merge override dict into base dict in-place (recursive)."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_merge(base[key], value)
        else:
            base[key] = value


def load_config(path: Union[str, Path] = "config.yaml") -> dict[str, Any]:
    """Load a YAML config file, merging ``<name>.local.yaml`` over it.

    A missing file yields an empty config.
    """
    path = Path(path)
    cfg: dict[str, Any] = {}
    if path.exists():
        with open(path) as f:
            cfg = yaml.safe_load(f) or {}
    local = path.with_suffix(".local.yaml")
    if local.exists():
        with open(local) as f:
            local_cfg = yaml.safe_load(f) or {}
        _deep_merge(cfg, local_cfg)
    return cfg


def load_settings(config_path: Union[str, Path] = "config.yaml") -> WebhookSettings:
    """Build WebhookSettings from the ``webhook`` section of a config file."""
    cfg = load_config(config_path)
    return WebhookSettings(**(cfg.get("webhook") or {}))


class Credentials:
    """Holds the current webhook secret.

    Readers get whichever secret is current when they ask; ``rotate``
    swaps the whole value at once so a reader never sees a partial update.
    """

    def __init__(self, webhook_secret: Optional[Secret] = None):
        self._lock = threading.Lock()
        self._webhook_secret: Optional[Secret] = webhook_secret or None

    @classmethod
    def from_settings(cls, settings: WebhookSettings) -> "Credentials":
        return cls(settings.resolve_secret())

    def get_webhook_secret(self) -> Optional[Secret]:
        with self._lock:
            return self._webhook_secret

    def is_configured(self) -> bool:
        return bool(self.get_webhook_secret())

    def rotate(self, webhook_secret: Optional[Secret]) -> None:
        """Replace the secret. ``None`` or empty unconfigures it."""
        with self._lock:
            self._webhook_secret = webhook_secret or None
        if webhook_secret:
            logger.info("webhook-secret rotated")
        else:
            logger.warning("webhook-secret cleared")

    def reload(self, settings: WebhookSettings) -> None:
        """Re-read the secret from settings (e.g. after secret_file changed)."""
        self.rotate(settings.resolve_secret())
