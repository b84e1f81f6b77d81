"""Configuration management for fluently.

Baseline client defaults (user agent, timeout, headers) and named client
declarations are loaded from YAML or JSON files and environment variables.
"""

import json
import os
import typing as _t

from pathlib import Path

import yaml

from pydantic import BaseModel, Field


__all__ = [
    "DEFAULT_TIMEOUT",
    "DEFAULT_USER_AGENT",
    "ClientConfigEntry",
    "FluentlyConfig",
    "find_config_files",
    "get_config",
    "load_config",
    "load_config_file",
]

DEFAULT_USER_AGENT = "fluently"
DEFAULT_TIMEOUT = 15.0


class ClientConfigEntry(BaseModel):
    """A named client declared in configuration."""

    base_url: str
    timeout: float | None = None
    user_agent: str | None = None
    headers: dict[str, str] = Field(default_factory=dict)


class FluentlyConfig(BaseModel):
    """Main configuration class for fluently."""

    # Baseline defaults applied to every builder a factory creates
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = DEFAULT_TIMEOUT
    default_headers: dict[str, str] = Field(default_factory=dict)

    # Clients registered by ClientFactory.register_from_config
    clients: dict[str, ClientConfigEntry] = Field(default_factory=dict)


def load_config_file(config_path: Path) -> dict[str, _t.Any]:
    """Load configuration from a YAML or JSON file."""
    if not config_path.exists():
        return {}

    suffix = config_path.suffix.lower()
    if suffix not in (".yaml", ".yml", ".json"):
        raise ValueError(f"Unsupported config file format: {config_path.suffix}")

    try:
        content = config_path.read_text(encoding="utf-8")
        if suffix == ".json":
            return json.loads(content) or {}
        return yaml.safe_load(content) or {}
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise ValueError(f"Failed to load config from {config_path}: {e}") from e


def find_config_files(config_file: Path | None = None) -> list[Path]:
    """Find all possible configuration files in order of precedence.

    Args:
        config_file: Optional custom config file path to use instead of defaults

    Searches for config files in:
    1. ~/.fluently/ (global user config)
    2. Current working directory (project-specific config)

    Later files override earlier ones. A custom file replaces the search.
    """
    if config_file:
        if not config_file.exists():
            raise ValueError(f"Specified config file not found: {config_file}")
        return [config_file]

    config_files = []
    for config_dir in (Path.home() / ".fluently", Path.cwd()):
        for filename in ["fluently.yaml", "fluently.yml", "fluently.json"]:
            config_path = config_dir / filename
            if config_path.exists():
                config_files.append(config_path)

    return config_files


def load_config(config_file: Path | str | None = None) -> FluentlyConfig:
    """Load configuration from files and environment variables.

    Environment variables ``FLUENTLY_USER_AGENT`` and ``FLUENTLY_TIMEOUT``
    override file values.

    Args:
        config_file: Optional path to a specific config file to use
    """
    config_path = Path(config_file) if isinstance(config_file, str) else config_file

    config_data: dict[str, _t.Any] = {}
    for path in find_config_files(config_path):
        config_data.update(load_config_file(path))

    if "FLUENTLY_USER_AGENT" in os.environ:
        config_data["user_agent"] = os.environ["FLUENTLY_USER_AGENT"]

    if "FLUENTLY_TIMEOUT" in os.environ:
        config_data["timeout"] = os.environ["FLUENTLY_TIMEOUT"]

    return FluentlyConfig.model_validate(config_data)


_config: FluentlyConfig | None = None
_config_file: Path | str | None = None


def get_config(config_file: Path | str | None = None) -> FluentlyConfig:
    """Get the global configuration, loading it on first use or when the file changes."""
    global _config, _config_file

    if _config is None or config_file != _config_file:
        _config = load_config(config_file)
        _config_file = config_file

    return _config
