from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional

import yaml


_CONFIG_PATH_ENV = "SEDER_CONFIG"
_DATA_DIR_ENV = "SEDER_DATA_DIR"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_CONFIG_PATH = "./seder.config"
DEFAULT_DATA_DIR = "./data"


@dataclass(frozen=True)
class Settings:
    data_dir: str
    log_level: str
    config_path: Optional[str] = None


def _read_optional_env(name: str) -> Optional[str]:
    value = os.getenv(name)
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def _read_log_level(default: str) -> str:
    value = _read_optional_env(_LOG_LEVEL_ENV)
    if value is None:
        return default
    return value.upper()


def load_config_file(path: Path) -> Dict[str, Any]:
    """Load the YAML config file, treating a missing file as empty."""

    if not path.exists():
        return {}
    try:
        with path.open("r", encoding="utf-8") as fh:
            raw = yaml.safe_load(fh) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ValueError(f"Unable to read config file {str(path)!r}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Config file {str(path)!r} must contain a mapping.")
    return raw


@lru_cache
def get_settings() -> Settings:
    config_path = _read_optional_env(_CONFIG_PATH_ENV) or DEFAULT_CONFIG_PATH
    file_values = load_config_file(Path(config_path))

    data_dir = _read_optional_env(_DATA_DIR_ENV)
    if data_dir is None:
        configured = file_values.get("data_dir")
        data_dir = str(configured).strip() if configured is not None else ""
    return Settings(
        data_dir=data_dir or DEFAULT_DATA_DIR,
        log_level=_read_log_level("INFO"),
        config_path=config_path,
    )
