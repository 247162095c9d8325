"""
Reads configs/app.yaml into AppConfig.

Order of precedence, lowest first: model defaults, the YAML file (with
${VAR} / ${VAR:-default} expanded), then LOCG_FETCH_URL and
LOCG_DISPLAY_URL from the environment.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .models import AppConfig


DEFAULT_CONFIG_PATH = Path("configs/app.yaml")

# Environment variable -> client config field
ENV_OVERRIDES = {
    "LOCG_FETCH_URL": "base_url",
    "LOCG_DISPLAY_URL": "display_url",
}

_ENV_PATTERN = re.compile(r"\$\{([^}:]+)(?::-([^}]*))?\}")


class ConfigError(Exception):
    """app.yaml is missing, unreadable, or fails validation."""

    def __init__(self, message: str, path: Path | None = None, details: str | None = None):
        self.path = path
        self.details = details
        super().__init__(message)


def _read_mapping(path: Path) -> dict[str, Any]:
    """Parse ``path`` and require a mapping (or nothing) at the top level.

    Raises:
        ConfigError: Missing file, unreadable file, bad YAML, or a non-mapping document
    """
    if not path.exists():
        raise ConfigError(f"No configuration at {path}", path=path)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ConfigError(f"{path} is not valid YAML", path=path, details=str(e)) from e
    except OSError as e:
        raise ConfigError(f"Could not open {path}", path=path, details=str(e)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(
            f"{path} must contain a mapping with client/filters/logging sections",
            path=path,
        )
    return data


def _expand_env_vars(data: Any) -> Any:
    """Substitute ${VAR} and ${VAR:-default} inside every string of ``data``."""
    if isinstance(data, str):
        return _ENV_PATTERN.sub(lambda m: os.environ.get(m.group(1), m.group(2) or ""), data)
    if isinstance(data, dict):
        return {key: _expand_env_vars(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_expand_env_vars(item) for item in data]
    return data


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    """Site origins from the environment beat the file."""
    overrides = {
        field_name: os.environ[env_name]
        for env_name, field_name in ENV_OVERRIDES.items()
        if os.environ.get(env_name)
    }
    if not overrides:
        return data
    return {**data, "client": {**(data.get("client") or {}), **overrides}}


def load_app_config(
    path: Path | str | None = None,
    expand_env: bool = True,
) -> AppConfig:
    """Build the effective configuration.

    Args:
        path: YAML file; configs/app.yaml when omitted. A missing file means
            "all defaults", not an error.
        expand_env: Expand ${VAR} references in string values

    Raises:
        ConfigError: The file exists but cannot be parsed or validated
    """
    path = DEFAULT_CONFIG_PATH if path is None else Path(path)
    data = _read_mapping(path) if path.exists() else {}

    if expand_env:
        data = _expand_env_vars(data)
    data = _apply_env_overrides(data)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"{path} has invalid settings", path=path, details=str(e)) from e


def validate_config_file(path: Path | str) -> list[str]:
    """List the problems in a config file as "section.field: message" strings.

    Environment overrides are not applied; this checks the file alone.
    """
    path = Path(path)
    try:
        data = _read_mapping(path)
    except ConfigError as e:
        return [str(e)]

    try:
        AppConfig.model_validate(data)
    except ValidationError as e:
        return [
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in e.errors()
        ]
    return []


def write_default_config(path: Path | str = DEFAULT_CONFIG_PATH, force: bool = False) -> Path:
    """Write every setting with its default value to ``path``.

    Raises:
        ConfigError: ``path`` exists and ``force`` is False
    """
    path = Path(path)
    if path.exists() and not force:
        raise ConfigError(f"{path} already exists", path=path)

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        yaml.safe_dump(AppConfig().to_yaml_dict(), sort_keys=False),
        encoding="utf-8",
    )
    return path
