"""Configuration loading from pyproject.toml.

Settings live under ``[tool.build-publish]``. Credentials may be left out of
the file and supplied through environment variables instead; see
``ENV_OVERRIDES``.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from build_publish.config.models import BuildPublishConfig
from build_publish.exceptions import ConfigNotFoundError, ConfigValidationError

TOOL_KEY = "build-publish"

# (section, key) -> environment variable
ENV_OVERRIDES: dict[tuple[str, str], str] = {
    ("slack", "webhook_url"): "BUILD_PUBLISH_SLACK_WEBHOOK_URL",
    ("telegram", "bot_token"): "BUILD_PUBLISH_TELEGRAM_BOT_TOKEN",
}


def find_pyproject_toml(start: Path | None = None) -> Path:
    """Find pyproject.toml in ``start`` or any of its parents.

    Raises:
        ConfigNotFoundError: If no pyproject.toml exists up to the filesystem root
    """
    current = (start or Path.cwd()).resolve()
    for directory in (current, *current.parents):
        candidate = directory / "pyproject.toml"
        if candidate.is_file():
            return candidate
    raise ConfigNotFoundError(f"No pyproject.toml found in {current} or its parents")


def load_pyproject_toml(path: Path) -> dict[str, Any]:
    """Parse a pyproject.toml file.

    Raises:
        ConfigNotFoundError: If the file does not exist
        ConfigValidationError: If the file is not valid TOML
    """
    if not path.is_file():
        raise ConfigNotFoundError(f"Config file not found: {path}")
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigValidationError(f"Invalid TOML in {path}: {e}") from e


def extract_build_publish_config(pyproject: Mapping[str, Any]) -> dict[str, Any]:
    """Return the ``[tool.build-publish]`` table, or an empty dict."""
    return dict(pyproject.get("tool", {}).get(TOOL_KEY, {}))


def apply_env_overrides(
    raw: dict[str, Any],
    environ: Mapping[str, str] | None = None,
) -> dict[str, Any]:
    """Fill credentials from the environment.

    An override only applies when its target section is configured, so
    setting a token never enables a target on its own.
    """
    env = os.environ if environ is None else environ
    merged = dict(raw)
    for (section, key), var in ENV_OVERRIDES.items():
        value = env.get(var)
        if not value or section not in merged:
            continue
        table = dict(merged[section] or {})
        if key not in table and key.replace("_", "-") not in table:
            table[key] = value
        merged[section] = table
    return merged


def parse_config(raw: Mapping[str, Any]) -> BuildPublishConfig:
    """Validate a raw configuration mapping.

    Raises:
        ConfigValidationError: If validation fails
    """
    try:
        return BuildPublishConfig.model_validate(raw)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigValidationError(f"Invalid [tool.{TOOL_KEY}] configuration: {problems}") from e


def load_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> BuildPublishConfig:
    """Load configuration for the project at ``path``.

    A pyproject.toml without a ``[tool.build-publish]`` table yields the
    defaults, which have no notification targets.

    Args:
        path: Project directory or pyproject.toml file
        environ: Environment used for credential overrides

    Returns:
        Validated configuration
    """
    if path is not None and path.is_file():
        pyproject_path = path
    else:
        pyproject_path = find_pyproject_toml(path)

    pyproject = load_pyproject_toml(pyproject_path)
    raw = extract_build_publish_config(pyproject)
    return parse_config(apply_env_overrides(raw, environ))
