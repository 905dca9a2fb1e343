"""
Configuration Module

Loads and validates the global ghwt configuration (~/.ghwtrc.json).

The configuration is loaded once by the entry point and passed explicitly
to everything that needs it; nothing in the package reads it on its own.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from .errors import ConfigError
from ..utils.file_utils import FileUtils

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("~/.ghwtrc.json")
CONFIG_PATH_ENV = "GHWT_CONFIG"
SESSION_CONFIG_DIRNAME = "terminal-session-config"
DEFAULT_VAULT_PATH = "~/Library/Mobile Documents/iCloud~md~obsidian/Documents/projects"

MULTIPLEXERS = ["tmux", "zellij"]
TERMINAL_UIS = ["wezterm", "ghostty", "none"]

_NO_DEFAULT = object()


@dataclass
class ConfigValidationRule:
    """Validation rule for a single top-level config key."""
    key: str
    field_type: Union[type, tuple] = str
    required: bool = False
    default_value: Any = _NO_DEFAULT
    allowed_values: Optional[List[Any]] = None
    min_value: Optional[int] = None
    nullable: bool = False


@dataclass
class ConfigSchema:
    """Configuration schema definition."""
    name: str
    rules: List[ConfigValidationRule] = field(default_factory=list)
    allow_unknown: bool = False

    def add_rule(self, **kwargs) -> 'ConfigSchema':
        """Add validation rule."""
        self.rules.append(ConfigValidationRule(**kwargs))
        return self

    @property
    def keys(self) -> List[str]:
        return [rule.key for rule in self.rules]

    def validate(self, data: Dict[str, Any]) -> List[str]:
        """
        Validate data against the schema, filling in defaults in place.

        Args:
            data: Parsed configuration mapping

        Returns:
            List of error messages, empty when the data is valid
        """
        errors = []

        if not self.allow_unknown:
            for key in data:
                if key not in self.keys:
                    errors.append(f"Unknown field: {key}")

        for rule in self.rules:
            if rule.key not in data:
                if rule.required:
                    errors.append(f"Required field missing: {rule.key}")
                elif rule.default_value is not _NO_DEFAULT:
                    data[rule.key] = rule.default_value
                continue

            value = data[rule.key]
            if value is None:
                if not rule.nullable:
                    errors.append(f"Field {rule.key} must not be null")
                continue

            # bool is an int subclass; do not accept it for numeric fields
            if not isinstance(value, rule.field_type) or (
                    isinstance(value, bool) and rule.field_type is not bool):
                expected = getattr(rule.field_type, '__name__', str(rule.field_type))
                errors.append(f"Field {rule.key} must be {expected}, got {type(value).__name__}")
                continue

            if rule.allowed_values and value not in rule.allowed_values:
                errors.append(f"Field {rule.key} must be one of {rule.allowed_values}, got {value}")

            if rule.min_value is not None and value < rule.min_value:
                errors.append(f"Field {rule.key} must be >= {rule.min_value}, got {value}")

        return errors


GHWT_SCHEMA = ConfigSchema("ghwtrc").add_rule(
    key="projectsRoot", required=True
).add_rule(
    key="repositoriesDir", default_value="repositories"
).add_rule(
    key="worktreesDir", default_value="worktrees"
).add_rule(
    key="vaultPath", required=True
).add_rule(
    key="syncInterval", field_type=int, default_value=None, min_value=60, nullable=True
).add_rule(
    key="defaultBaseBranch", default_value="dev"
).add_rule(
    key="terminalMultiplexer", default_value="tmux", allowed_values=MULTIPLEXERS
).add_rule(
    key="terminalUI", default_value="wezterm", allowed_values=TERMINAL_UIS
).add_rule(
    key="obsidianVaultName"
).add_rule(
    key="shellCommandExecuteId"
)


def expand_path(value: Union[str, Path]) -> Path:
    """Expand a leading ~ in a configured path."""
    return Path(os.path.expanduser(str(value)))


@dataclass
class GhwtConfig:
    """
    Global ghwt configuration.

    Field names mirror the JSON keys in snake_case. Paths are stored
    expanded.
    """
    projects_root: Path = field(default_factory=lambda: expand_path("~/projects"))
    vault_path: Path = field(default_factory=lambda: expand_path(DEFAULT_VAULT_PATH))
    repositories_dir: str = "repositories"
    worktrees_dir: str = "worktrees"
    sync_interval: Optional[int] = None
    default_base_branch: str = "dev"
    terminal_multiplexer: str = "tmux"
    terminal_ui: str = "wezterm"
    obsidian_vault_name: Optional[str] = None
    shell_command_execute_id: Optional[str] = None

    @property
    def worktrees_root(self) -> Path:
        return self.projects_root / self.worktrees_dir

    @property
    def repos_root(self) -> Path:
        return self.projects_root / self.repositories_dir

    @property
    def vault_root(self) -> Path:
        return self.vault_path

    @property
    def session_config_dir(self) -> Path:
        return self.projects_root / SESSION_CONFIG_DIRNAME

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GhwtConfig':
        """
        Build a config from the JSON mapping, validating it first.

        Raises:
            ConfigError: if validation fails
        """
        if not isinstance(data, dict):
            raise ConfigError("Configuration must be a JSON object")

        data = dict(data)
        errors = GHWT_SCHEMA.validate(data)
        if errors:
            raise ConfigError("Invalid ghwt configuration", errors)

        return cls(
            projects_root=expand_path(data["projectsRoot"]),
            vault_path=expand_path(data["vaultPath"]),
            repositories_dir=data["repositoriesDir"],
            worktrees_dir=data["worktreesDir"],
            sync_interval=data["syncInterval"],
            default_base_branch=data["defaultBaseBranch"],
            terminal_multiplexer=data["terminalMultiplexer"],
            terminal_ui=data["terminalUI"],
            obsidian_vault_name=data.get("obsidianVaultName"),
            shell_command_execute_id=data.get("shellCommandExecuteId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "projectsRoot": str(self.projects_root),
            "repositoriesDir": self.repositories_dir,
            "worktreesDir": self.worktrees_dir,
            "vaultPath": str(self.vault_path),
            "syncInterval": self.sync_interval,
            "defaultBaseBranch": self.default_base_branch,
            "terminalMultiplexer": self.terminal_multiplexer,
            "terminalUI": self.terminal_ui,
        }
        if self.obsidian_vault_name is not None:
            data["obsidianVaultName"] = self.obsidian_vault_name
        if self.shell_command_execute_id is not None:
            data["shellCommandExecuteId"] = self.shell_command_execute_id
        return data


def resolve_config_path(path: Optional[Union[str, Path]] = None) -> Path:
    """Explicit path if given, otherwise ~/.ghwtrc.json."""
    return expand_path(path if path is not None else DEFAULT_CONFIG_PATH)


def load_config(path: Optional[Union[str, Path]] = None) -> GhwtConfig:
    """
    Load the global configuration.

    Args:
        path: Config file location; defaults to ~/.ghwtrc.json

    Returns:
        GhwtConfig, with defaults if the file does not exist

    Raises:
        ConfigError: if the file exists but is invalid
    """
    config_path = resolve_config_path(path)
    data = FileUtils.read_json(config_path)
    if data is None:
        logger.info(f"No config at {config_path}, using defaults")
        return GhwtConfig()

    logger.debug(f"Loaded config from {config_path}")
    return GhwtConfig.from_dict(data)


def save_config(config: GhwtConfig, path: Optional[Union[str, Path]] = None) -> Path:
    """
    Write the configuration as JSON.

    Raises:
        ConfigError: if the file cannot be written
    """
    config_path = resolve_config_path(path)
    if not FileUtils.write_json(config_path, config.to_dict()):
        raise ConfigError(f"Could not write config to {config_path}")
    return config_path
