from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///handoff.db"


class NotificationConfig(BaseModel):
    """Configuration for notification delivery."""

    backend: Literal["inmemory", "log", "database"] = "database"


class HandoffConfig(BaseModel):
    """Top-level configuration model."""

    database_url: str = DEFAULT_DATABASE_URL
    commit_timeout: float = Field(default=5.0, gt=0)
    notifications: NotificationConfig = NotificationConfig()


def load_config(path: Optional[str] = None) -> HandoffConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to HANDOFF_CONFIG env
            variable or 'config.yaml' in the current directory.
    """

    config_path = path or os.getenv("HANDOFF_CONFIG", "config.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = HandoffConfig(**data)
    else:
        config = HandoffConfig()

    env_db_url = os.getenv("HANDOFF_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
