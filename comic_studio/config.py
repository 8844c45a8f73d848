"""
Comic Studio: Configuration.

Settings come from the process environment (a .env file is loaded by
comic_main.py before this is read).

Environment:
    ANTHROPIC_API_KEY             Claude credential (required)
    REPLICATE_API_TOKEN           Replicate credential (required)
    COMIC_TEXT_MODEL              Claude model id
    COMIC_IMAGE_MODEL             Replicate model, "owner/name"
    COMIC_WORKSPACE               Output root (default .workspace)
    COMIC_REDETAIL_BEFORE_RENDER  "1" = describe each panel twice
    COMIC_IMAGE_MAX_WAIT          Seconds to poll a prediction (0 = forever)
    COMIC_LOG_LEVEL               Console log level (default WARNING)

A malformed optional setting raises ConfigError from from_env().
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from comic_studio.errors import ConfigError

DEFAULT_TEXT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_IMAGE_MODEL = "black-forest-labs/flux-kontext-max"
DEFAULT_WORKSPACE = ".workspace"


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_seconds(name: str) -> Optional[float]:
    """Positive number of seconds, or None when unset or 0."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        seconds = float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number of seconds, got {raw!r}")
    if seconds < 0:
        raise ConfigError(f"{name} must not be negative, got {raw!r}")
    return seconds if seconds > 0 else None


def _env_log_level(name: str, default: str = "WARNING") -> str:
    level = os.environ.get(name, default).strip().upper() or default
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(
            f"{name} must be one of DEBUG, INFO, WARNING, ERROR, CRITICAL, got {level!r}"
        )
    return level


@dataclass
class ComicConfig:
    """Runtime configuration for one comic session."""
    anthropic_api_key: str = ""
    replicate_api_token: str = ""
    text_model: str = DEFAULT_TEXT_MODEL
    image_model: str = DEFAULT_IMAGE_MODEL
    workspace_dir: Path = Path(DEFAULT_WORKSPACE)
    redetail_before_render: bool = False
    image_max_wait: Optional[float] = None  # None = poll until terminal status
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls) -> "ComicConfig":
        return cls(
            anthropic_api_key=os.environ.get("ANTHROPIC_API_KEY", ""),
            replicate_api_token=os.environ.get("REPLICATE_API_TOKEN", ""),
            text_model=os.environ.get("COMIC_TEXT_MODEL", DEFAULT_TEXT_MODEL),
            image_model=os.environ.get("COMIC_IMAGE_MODEL", DEFAULT_IMAGE_MODEL),
            workspace_dir=Path(os.environ.get("COMIC_WORKSPACE", DEFAULT_WORKSPACE)),
            redetail_before_render=_env_flag("COMIC_REDETAIL_BEFORE_RENDER"),
            image_max_wait=_env_seconds("COMIC_IMAGE_MAX_WAIT"),
            log_level=_env_log_level("COMIC_LOG_LEVEL"),
        )

    def validate(self):
        """Raise ConfigError if a required credential is missing."""
        missing = []
        if not self.anthropic_api_key:
            missing.append("ANTHROPIC_API_KEY")
        if not self.replicate_api_token:
            missing.append("REPLICATE_API_TOKEN")
        if missing:
            raise ConfigError(
                f"Missing required environment variable(s): {', '.join(missing)}. "
                f"Set them in your shell or in a .env file."
            )
