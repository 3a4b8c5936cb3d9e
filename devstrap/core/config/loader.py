"""
Configuration loader — reads devstrap.yml into domain models.

It reads YAML, validates against Pydantic schemas, and returns
typed domain objects. Without a config file the built-in defaults
apply, which reproduce the stock developer-machine profile.
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from devstrap.core.models.profile import DevstrapConfig

logger = logging.getLogger(__name__)

# Default config filename
CONFIG_FILE = "devstrap.yml"


class ConfigError(Exception):
    """Raised when devstrap configuration is invalid or missing."""


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Search for devstrap.yml starting from the given directory, walking up.

    Args:
        start_dir: Directory to start searching from (default: cwd).

    Returns:
        Path to devstrap.yml, or None if not found.
    """
    current = (start_dir or Path.cwd()).resolve()

    for _ in range(20):  # safety limit
        candidate = current / CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            break  # filesystem root
        current = parent

    return None


def load_config(path: Path | None = None, search: bool = True) -> DevstrapConfig:
    """Load and validate devstrap configuration.

    Args:
        path: Explicit path to devstrap.yml. Must exist when given.
        search: If no path is given, search upward from the cwd.

    Returns:
        Validated DevstrapConfig. Defaults when no file is found.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    if path is None and search:
        path = find_config_file()

    if path is None:
        logger.debug("No %s found — using built-in defaults", CONFIG_FILE)
        return DevstrapConfig()

    if not path.is_file():
        raise ConfigError(f"Config file not found: {path}")

    logger.debug("Loading config from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        config = DevstrapConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid devstrap configuration: {e}") from e

    logger.info(
        "Loaded profile '%s' with %d packages and %d git settings",
        config.profile.name,
        len(config.profile.packages),
        len(config.profile.git_settings()),
    )
    return config


def resolve_work_dir(config: DevstrapConfig, config_path: Path | None = None) -> Path:
    """Resolve settings.work_dir.

    Relative paths are taken relative to the config file's directory,
    or the cwd when running on defaults.
    """
    work_dir = Path(config.settings.work_dir).expanduser()
    if work_dir.is_absolute():
        return work_dir
    base = config_path.parent if config_path else Path.cwd()
    return (base / work_dir).resolve()
