# P4Sync Configuration Module
# Handles YAML-based configuration loading, validation, and defaults

from p4sync.config.defaults import DEFAULT_CONFIG, generate_default_config
from p4sync.config.loader import (
    ensure_config_exists,
    get_config_path,
    load_config,
    validate_config_file,
)
from p4sync.config.schema import OutputConfig, P4Config, P4SyncConfig

__all__ = [
    # Schema
    "P4SyncConfig",
    "P4Config",
    "OutputConfig",
    # Loader
    "load_config",
    "get_config_path",
    "ensure_config_exists",
    "validate_config_file",
    # Defaults
    "DEFAULT_CONFIG",
    "generate_default_config",
]
