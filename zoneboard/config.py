"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class SchedulingConfig(BaseSettings):
    default_duration_minutes: int = 120
    business_start_hour: int = 7
    business_end_hour: int = 18
    min_duration_minutes: int = 30
    max_duration_minutes: int = 480
    position_step: float = 1000.0
    # overlap | any_job
    quick_assign_policy: str = "overlap"
    board_cache_size: int = 32


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/zoneboard.db"
    log_level: str = "INFO"
    scheduling: SchedulingConfig = Field(default_factory=SchedulingConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    sched = SchedulingConfig(**y.get("scheduling", {}))
    db_url = y.get("database", {}).get("url", "sqlite+aiosqlite:///data/zoneboard.db")
    return Settings(
        database_url=db_url,
        log_level=y.get("logging", {}).get("level", "INFO"),
        scheduling=sched,
    )
