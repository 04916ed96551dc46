"""User configuration management for Landscape Deploy."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml


def get_config_path() -> Path:
    """Get path to the user config file."""
    return Path.home() / ".landscape-deploy" / "config.yaml"


def load_config(config_path: Path) -> Optional[Dict[str, Any]]:
    """Load saved defaults, returning None when the file doesn't exist.

    Raises:
        yaml.YAMLError: if the file is not valid YAML
    """
    if not config_path.exists():
        return None

    with open(config_path, "r") as f:
        return yaml.safe_load(f)


def save_config(config_path: Path, config_data: Dict[str, Any]) -> None:
    """Save defaults to the config file, creating its directory if needed."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.safe_dump(config_data, f, default_flow_style=False, sort_keys=False)
