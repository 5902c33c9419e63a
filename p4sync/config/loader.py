# P4Sync Configuration Loader
# Load and manage YAML configuration files

import copy
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from p4sync.config.defaults import DEFAULT_CONFIG, generate_default_config
from p4sync.config.schema import P4SyncConfig


def get_config_dir() -> Path:
    """Get the P4Sync configuration directory."""
    return Path.home() / ".config" / "p4sync"


def get_config_path() -> Path:
    """Get the path to the configuration file."""
    # Allow override via environment variable
    env_path = os.environ.get("P4SYNC_CONFIG")
    if env_path:
        return Path(env_path).expanduser()
    return get_config_dir() / "config.yaml"


def load_config(config_path: Optional[Path] = None) -> P4SyncConfig:
    """
    Load configuration from YAML file.

    A missing default config file is not an error; built-in defaults are
    used instead.

    Args:
        config_path: Optional path to config file. Uses default if not provided.

    Returns:
        P4SyncConfig: Validated configuration object.

    Raises:
        FileNotFoundError: If an explicitly given config file doesn't exist.
        ValueError: If the file does not hold a mapping.
        ValidationError: If config file is invalid.
    """
    explicit = config_path is not None
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        if explicit:
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        return P4SyncConfig.model_validate(copy.deepcopy(DEFAULT_CONFIG))

    with open(config_path, encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise ValueError(f"Configuration must be a mapping: {config_path}")

    return P4SyncConfig.model_validate(_merge_with_defaults(data))


def ensure_config_exists(config_path: Optional[Path] = None) -> tuple[Path, bool]:
    """
    Ensure configuration file exists, creating default if needed.

    Returns:
        Tuple of (config_path, was_created).
    """
    if config_path is None:
        config_path = get_config_path()

    if config_path.exists():
        return config_path, False

    config_path.parent.mkdir(parents=True, exist_ok=True)
    config_path.write_text(generate_default_config(), encoding="utf-8")
    return config_path, True


def validate_config_file(config_path: Optional[Path] = None) -> tuple[bool, list[str]]:
    """
    Validate a configuration file without loading it into the system.

    Args:
        config_path: Path to config file to validate.

    Returns:
        Tuple of (is_valid, error_messages).
    """
    if config_path is None:
        config_path = get_config_path()

    if not config_path.exists():
        return False, [f"Configuration file not found: {config_path}"]

    try:
        with open(config_path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        return False, [f"Invalid YAML syntax: {e}"]

    if data is None:
        return False, ["Configuration file is empty"]

    if not isinstance(data, dict):
        return False, ["Configuration must be a mapping"]

    try:
        P4SyncConfig.model_validate(data)
    except ValidationError as e:
        errors = []
        for error in e.errors():
            loc = " -> ".join(str(l) for l in error["loc"])
            errors.append(f"{loc}: {error['msg']}")
        return False, errors

    return True, []


def _merge_with_defaults(data: dict) -> dict:
    """Merge loaded data with default values for missing keys."""
    result = copy.deepcopy(DEFAULT_CONFIG)

    for key, value in data.items():
        if key in ("p4", "output") and isinstance(value, dict):
            result[key] = {**result[key], **value}
        else:
            result[key] = value

    return result
