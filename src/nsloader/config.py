"""Configuration loading and validation."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from .types import ExecutionMode

LOGGER = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.config/nsloader/config.yaml")
DEFAULT_ROOT_DIR = Path("~/.local/state/nsloader")
DEFAULT_LOG_LEVEL = "info"
CONFIG_ENV_VAR = "NSLOADER_CONFIG"
EXECUTION_MODES = ("auto", "immediate", "queued")


class ConfigError(ValueError):
    """Raised when configuration is invalid or missing."""


@dataclass(frozen=True)
class LoggingConfig:
    """Logging-related configuration."""

    level: str = DEFAULT_LOG_LEVEL
    debug_file: bool = False


@dataclass(frozen=True)
class Config:
    """Fully parsed configuration."""

    root_dir: Path
    base_path: Path
    manifests: list[Path] = field(default_factory=list)
    execution: ExecutionMode | None = None
    seal_module_exports: bool = True
    strict_provides: bool = False
    logging: LoggingConfig = field(default_factory=LoggingConfig)


def load_config(path: Path | str | None = None) -> Config:
    """Load and validate configuration from YAML."""

    config_path = resolve_config_path(path)
    if not config_path.exists():
        raise ConfigError(f"Config file not found: {config_path}")

    with config_path.open("r", encoding="utf-8") as handle:
        try:
            raw = yaml.safe_load(handle) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigError("Configuration root must be a mapping.")

    return _parse_config(raw, config_path.parent)


def resolve_config_path(explicit: Path | str | None) -> Path:
    if explicit:
        return Path(explicit).expanduser()
    env_path = os.environ.get(CONFIG_ENV_VAR)
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_PATH.expanduser()


def _parse_config(raw: dict[str, Any], config_dir: Path) -> Config:
    root_dir = _parse_path(raw.get("root_dir") or raw.get("rootdir") or DEFAULT_ROOT_DIR, config_dir)
    base_path = _parse_path(raw.get("base_path") or ".", config_dir)
    manifests = _parse_manifests(raw.get("manifests"), config_dir)
    if not manifests:
        LOGGER.warning("No manifests configured; only units added at runtime can be loaded.")
    return Config(
        root_dir=root_dir,
        base_path=base_path,
        manifests=manifests,
        execution=_parse_execution(raw.get("execution")),
        seal_module_exports=_parse_bool(raw.get("seal_module_exports"), "seal_module_exports", True),
        strict_provides=_parse_bool(raw.get("strict_provides"), "strict_provides", False),
        logging=_parse_logging(raw.get("logging")),
    )


def _parse_path(value: Any, config_dir: Path) -> Path:
    if not isinstance(value, (str, Path)):
        raise ConfigError(f"Expected a path, got {value!r}.")
    path = Path(value).expanduser()
    if not path.is_absolute():
        path = config_dir / path
    return path


def _parse_manifests(value: Any, config_dir: Path) -> list[Path]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ConfigError("manifests must be a list.")

    paths: list[Path] = []
    for idx, entry in enumerate(value, start=1):
        if not isinstance(entry, str):
            raise ConfigError(f"manifests[{idx}] must be a string path.")
        paths.append(_parse_path(entry, config_dir))
    return paths


def _parse_execution(value: Any) -> ExecutionMode | None:
    if value is None:
        return None
    if not isinstance(value, str) or value.strip().lower() not in EXECUTION_MODES:
        raise ConfigError(f"execution must be one of {', '.join(EXECUTION_MODES)}.")
    normalized = value.strip().lower()
    if normalized == "auto":
        return None
    return ExecutionMode(normalized)


def _parse_bool(value: Any, field_name: str, default: bool) -> bool:
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ConfigError(f"{field_name} must be true or false.")
    return value


def _parse_logging(value: Any) -> LoggingConfig:
    if value is None:
        return LoggingConfig()
    if not isinstance(value, dict):
        raise ConfigError("logging must be a mapping.")
    level = value.get("level", DEFAULT_LOG_LEVEL)
    if not isinstance(level, str):
        raise ConfigError("logging.level must be a string.")
    debug_file = _parse_bool(value.get("debug_file"), "logging.debug_file", False)
    return LoggingConfig(level=level, debug_file=debug_file)


__all__ = [
    "Config",
    "ConfigError",
    "LoggingConfig",
    "load_config",
    "resolve_config_path",
]
