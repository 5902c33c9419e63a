# P4Sync Default Configuration
# Default configuration as Python dict and YAML generator

from typing import Any

import yaml

DEFAULT_CONFIG: dict[str, Any] = {
    "depot_root": "//depot/",
    "threads": 8,
    "idle_interval": 0.002,
    "poll_interval": 0.1,
    "p4": {
        "executable": "p4",
        "workspace": None,
    },
    "output": {
        "verbose": False,
        "colored": True,
    },
}


def generate_default_config() -> str:
    """
    Generate default configuration as YAML string.

    Returns:
        YAML formatted configuration with header comment.
    """
    header = """# P4Sync Configuration
# Parallel Perforce sync
#
# depot_root: subtree arguments are appended to this path
# threads:    number of files synced concurrently
# p4.workspace: directory p4 runs in (leave empty for the current directory)

"""
    return header + yaml.dump(DEFAULT_CONFIG, default_flow_style=False, sort_keys=False, allow_unicode=True)
