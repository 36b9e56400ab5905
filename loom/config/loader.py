"""Configuration loading utilities."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from loguru import logger

from loom.config.schema import Config
from loom.utils.helpers import get_data_path


def get_config_path() -> Path:
    """Get the default configuration file path."""
    return get_data_path() / "config.json"


def load_json_file(path: Path) -> dict[str, Any]:
    """Load a JSON object from file."""
    with path.open() as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path} must be a JSON object")
    return data


def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from file or create default.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        Loaded configuration object.
    """
    path = config_path or get_config_path()
    if path.exists():
        try:
            return Config.model_validate(convert_keys(load_json_file(path)))
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Failed to load config from {path}: {e}; using default configuration")
    return Config()


def save_config(config: Config, config_path: Path | None = None) -> Path:
    """Save configuration to file as camelCase JSON."""
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    data = convert_to_camel(config.model_dump())
    with path.open("w") as f:
        json.dump(data, f, indent=2)
        f.write("\n")
    return path


def normalize_config_data(data: dict[str, Any]) -> dict[str, Any]:
    """Validate config object and serialize into canonical camelCase output."""
    validated = Config.model_validate(convert_keys(data))
    return convert_to_camel(validated.model_dump())


def find_unknown_paths(source: Any, normalized: Any, prefix: str = "") -> list[str]:
    """Dotted key paths present in ``source`` but dropped by schema normalization."""
    if not isinstance(source, dict):
        return []
    unknown: list[str] = []
    for key, value in source.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        camel = snake_to_camel(str(key))
        if not isinstance(normalized, dict) or camel not in normalized:
            unknown.append(path)
            continue
        unknown.extend(find_unknown_paths(value, normalized[camel], path))
    return unknown


def convert_keys(data: Any) -> Any:
    """Convert camelCase keys to snake_case for Pydantic."""
    if isinstance(data, dict):
        return {camel_to_snake(k): convert_keys(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_keys(item) for item in data]
    return data


def convert_to_camel(data: Any) -> Any:
    """Convert snake_case keys to camelCase."""
    if isinstance(data, dict):
        return {snake_to_camel(k): convert_to_camel(v) for k, v in data.items()}
    if isinstance(data, list):
        return [convert_to_camel(item) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """Convert camelCase to snake_case."""
    result = []
    for i, char in enumerate(name):
        if char.isupper() and i > 0:
            result.append("_")
        result.append(char.lower())
    return "".join(result)


def snake_to_camel(name: str) -> str:
    """Convert snake_case to camelCase."""
    components = name.split("_")
    return components[0] + "".join(x.title() for x in components[1:])
