"""
File Utilities Module

JSON/YAML reading and small write helpers used by the configuration
loaders and the zellij layout cache.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from rich.console import Console

from ..core.errors import ConfigError

console = Console()
logger = logging.getLogger(__name__)


class FileUtils:
    """
    File operation utilities with error handling.

    Readers return None for a missing file and raise ConfigError for a file
    that exists but cannot be parsed.
    """

    @staticmethod
    def read_json(file_path: Path) -> Optional[Any]:
        """
        Read a JSON file.

        Args:
            file_path: Path to JSON file

        Returns:
            Parsed data or None if the file does not exist

        Raises:
            ConfigError: if the file is unreadable or not valid JSON
        """
        if not file_path.exists():
            logger.debug(f"JSON file not found: {file_path}")
            return None

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"Invalid JSON in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error reading {file_path}: {e}") from e

    @staticmethod
    def read_yaml(file_path: Path) -> Optional[Any]:
        """
        Read a YAML file with yaml.safe_load.

        Args:
            file_path: Path to YAML file

        Returns:
            Parsed data or None if the file does not exist

        Raises:
            ConfigError: if the file is unreadable or not valid YAML
        """
        if not file_path.exists():
            logger.debug(f"YAML file not found: {file_path}")
            return None

        try:
            with open(file_path, 'r', encoding='utf-8') as f:
                return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {file_path}: {e}") from e
        except OSError as e:
            raise ConfigError(f"Error reading {file_path}: {e}") from e

    @staticmethod
    def read_structured(file_path: Path) -> Optional[Any]:
        """Read a .json, .yaml or .yml file based on its suffix."""
        if file_path.suffix.lower() in ('.yaml', '.yml'):
            return FileUtils.read_yaml(file_path)
        return FileUtils.read_json(file_path)

    @staticmethod
    def write_json(file_path: Path, data: Dict[str, Any], indent: int = 2) -> bool:
        """
        Write a JSON file, creating parent directories.

        Returns:
            bool: True if write succeeded
        """
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            with open(file_path, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=indent, ensure_ascii=False)
                f.write('\n')
            return True
        except OSError as e:
            console.print(f"[red]❌ Error writing JSON to {file_path}: {e}[/red]")
            return False

    @staticmethod
    def write_text(file_path: Path, content: str) -> bool:
        """
        Write a text file, creating parent directories.

        Returns:
            bool: True if write succeeded
        """
        try:
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(content, encoding='utf-8')
            return True
        except OSError as e:
            console.print(f"[red]❌ Error writing {file_path}: {e}[/red]")
            return False
