import json
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from eth_utils import is_address, to_checksum_address

from deployment.constants import REGISTRY_DIR
from deployment.exceptions import ConfigurationError


def _load_yaml(filepath: Path) -> dict:
    """Loads a YAML file."""
    try:
        with open(filepath, "r") as file:
            return yaml.safe_load(file)
    except FileNotFoundError:
        raise ConfigurationError(f"Configuration file {filepath} not found.")
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Configuration file {filepath} is not valid YAML: {e}")


def _load_json(filepath: Path) -> dict:
    """Loads a JSON file."""
    try:
        with open(filepath, "r") as file:
            return json.load(file)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{filepath} is not valid JSON: {e}")



def get_registry_filepath(config: Dict) -> Optional[Path]:
    """Returns the filepath of the registry file, if the params file names one."""
    registry_config = config.get("registry") or {}
    filename = registry_config.get("filename")
    if not filename:
        return None
    registry_dir = Path(registry_config.get("dir", REGISTRY_DIR))
    return registry_dir / filename


def checksum_if_address(value: Any) -> Any:
    """Returns hex address literals in checksum form; other values unchanged."""
    if isinstance(value, str) and is_address(value.lower()):
        return to_checksum_address(value)
    return value
