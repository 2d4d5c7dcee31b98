"""
Settings for the folder picker tools.

Values come from a YAML file (``~/.filepilot/config.yaml`` unless
``FILEPILOT_CONFIG`` points elsewhere), then ``FILEPILOT_*`` environment
variables override them. Example file::

    drive_base_url: https://www.googleapis.com
    access_token: ya29....
    webhook_url: https://hooks.example.com/setup-complete
    user_id: 4c1d...
    email: someone@example.com
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from pydantic import BaseModel, Field, HttpUrl, ValidationError

ENV_PREFIX = "FILEPILOT_"
DEFAULT_CONFIG_PATH = Path("~/.filepilot/config.yaml")


class Settings(BaseModel):
    """Validated configuration for the picker CLI, TUI and connectors."""

    drive_base_url: HttpUrl = Field(default="https://www.googleapis.com", validate_default=True, description="Drive API base URL")
    access_token: str | None = Field(default=None, description="OAuth access token for Drive")
    page_size: int = Field(default=100, ge=1, le=1000)
    max_pages: int = Field(default=50, ge=1)
    timeout: float = Field(default=10.0, gt=0)
    webhook_url: HttpUrl | None = None
    user_id: str | None = None
    email: str | None = None
    provider: str = "google"
    log_level: str = "INFO"
    log_file: str | None = None

    @property
    def base_url(self) -> str:
        return str(self.drive_base_url).rstrip("/")


def load_settings(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> Settings:
    """Read the YAML config (if present) and apply environment overrides."""
    env = os.environ if env is None else env
    if path is None:
        path = env.get(f"{ENV_PREFIX}CONFIG") or DEFAULT_CONFIG_PATH
    config_path = Path(path).expanduser()

    payload: dict[str, Any] = {}
    if config_path.is_file():
        loaded = yaml.safe_load(config_path.read_text()) or {}
        if not isinstance(loaded, Mapping):
            raise ValueError(f"Config file {config_path} must contain a mapping")
        payload.update(loaded)

    for name in Settings.model_fields:
        value = env.get(f"{ENV_PREFIX}{name.upper()}")
        if value:
            payload[name] = value

    try:
        return Settings.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


__all__ = ["Settings", "load_settings"]
