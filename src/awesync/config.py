"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "AWESYNC_"


class Settings(BaseModel):
    app_name:       str = "awesync"
    db_url:         str = "sqlite:///awesync.db"
    github_api_url: str = Field(default="https://api.github.com", description="GitHub REST API base URL")
    github_token:   Optional[str] = Field(default=None, description="API token; falls back to GITHUB_TOKEN")
    request_timeout: int = Field(default=30, ge=1, description="Gateway request timeout in seconds")
    default_branch:    str = Field(default="main",      description="Branch used when adding a list")
    default_file_path: str = Field(default="README.md", description="List file used when adding a list")
    default_description: str = Field(
        default="A curated list of awesome resources.",
        description="Blockquote used on export when a list has no description",
    )
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR)$")


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then AWESYNC_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if not data.get("github_token") and (token := os.getenv("GITHUB_TOKEN")):
        data["github_token"] = token

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
