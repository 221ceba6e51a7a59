"""File helpers shared by the store and drivers."""

import logging
import os
from typing import Any, Dict

import yaml

logger = logging.getLogger(__name__)


def write_to_file(data: bytes, path: str, mode: int = 0o600) -> None:
    """Write ``data`` to ``path``, creating parent directories as needed.

    Args:
        data: Raw bytes to write
        path: Destination file
        mode: File permissions (default: 0o600)

    Raises:
        OSError: If the file cannot be written
    """
    try:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        with open(path, 'wb') as f:
            f.write(data)
        os.chmod(path, mode)
    except OSError as e:
        logger.error(f"Failed to write file {path}: {e}")
        raise


def write_yaml_file(path: str, data: Dict[str, Any], mode: int = 0o600) -> None:
    """Write a YAML document to ``path``."""
    write_to_file(
        yaml.safe_dump(data, default_flow_style=False, sort_keys=False).encode('utf-8'),
        path,
        mode,
    )


def read_yaml_file(path: str) -> Dict[str, Any]:
    """Read a YAML file and return its contents as a dictionary.

    Raises:
        FileNotFoundError: If the file does not exist
        yaml.YAMLError: If the file is not valid YAML
    """
    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except FileNotFoundError:
        logger.error(f"YAML file not found: {path}")
        raise
    except yaml.YAMLError as e:
        logger.error(f"Invalid YAML in {path}: {e}")
        raise
