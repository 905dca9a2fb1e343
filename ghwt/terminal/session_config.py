"""
Session Config Files Module

Locates, parses and validates per-project session layouts stored under

    {projects_root}/terminal-session-config/{project}/.ghwt-session.{yaml,yml,json}
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.errors import ConfigError
from ..utils.file_utils import FileUtils
from .layout import SessionConfig, ZELLIJ_UI_MODES

logger = logging.getLogger(__name__)

SESSION_CONFIG_FILENAMES = [
    ".ghwt-session.yaml",
    ".ghwt-session.yml",
    ".ghwt-session.json",
]

SESSION_KEYS = {"name", "root", "pre", "tabs", "windows", "zellij_ui"}
TAB_KEYS = {"name", "pre", "windows"}
WINDOW_KEYS = {"name", "root", "pre", "panes"}
ZELLIJ_UI_KEYS = {"mode"}


def find_session_config(project: str, config_dir: Union[str, Path]) -> Optional[Path]:
    """
    Find the session config for a project.

    Args:
        project: Project name
        config_dir: The terminal-session-config directory

    Returns:
        Path of the first existing candidate, or None
    """
    project_dir = Path(config_dir) / project
    for filename in SESSION_CONFIG_FILENAMES:
        candidate = project_dir / filename
        if candidate.is_file():
            return candidate
    return None


def _check_keys(data: Dict[str, Any], allowed: set, where: str, errors: List[str]) -> None:
    for key in data:
        if key not in allowed:
            errors.append(f"{where}: unknown field '{key}'")


def _check_str(data: Dict[str, Any], key: str, where: str, errors: List[str], required: bool = False) -> None:
    if key not in data or data[key] is None:
        if required:
            errors.append(f"{where}: required field '{key}' missing")
        return
    if not isinstance(data[key], str):
        errors.append(f"{where}.{key}: must be a string")


def _check_str_list(data: Dict[str, Any], key: str, where: str, errors: List[str]) -> None:
    value = data.get(key)
    if value is None:
        return
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        errors.append(f"{where}.{key}: must be a list of strings")


def _validate_window(data: Any, where: str, errors: List[str]) -> None:
    if not isinstance(data, dict):
        errors.append(f"{where}: must be a mapping")
        return
    _check_keys(data, WINDOW_KEYS, where, errors)
    _check_str(data, "name", where, errors, required=True)
    _check_str(data, "root", where, errors)
    _check_str_list(data, "pre", where, errors)
    _check_str_list(data, "panes", where, errors)


def _validate_windows(value: Any, where: str, errors: List[str]) -> None:
    if not isinstance(value, list):
        errors.append(f"{where}: must be a list")
        return
    for index, window in enumerate(value):
        _validate_window(window, f"{where}[{index}]", errors)


def validate_session_config(data: Any) -> List[str]:
    """
    Validate parsed session config data.

    Returns:
        List of error messages, empty when the data is valid
    """
    errors = []
    if not isinstance(data, dict):
        return ["session config must be a mapping"]

    _check_keys(data, SESSION_KEYS, "session", errors)
    _check_str(data, "name", "session", errors, required=True)
    _check_str(data, "root", "session", errors)
    _check_str_list(data, "pre", "session", errors)

    tabs = data.get("tabs")
    windows = data.get("windows")

    if tabs is not None:
        if not isinstance(tabs, list):
            errors.append("tabs: must be a list")
        else:
            for index, tab in enumerate(tabs):
                where = f"tabs[{index}]"
                if not isinstance(tab, dict):
                    errors.append(f"{where}: must be a mapping")
                    continue
                _check_keys(tab, TAB_KEYS, where, errors)
                _check_str(tab, "name", where, errors, required=True)
                _check_str_list(tab, "pre", where, errors)
                tab_windows = tab.get("windows")
                if not tab_windows:
                    errors.append(f"{where}.windows: a tab must have at least one window")
                else:
                    _validate_windows(tab_windows, f"{where}.windows", errors)

    if windows is not None:
        _validate_windows(windows, "windows", errors)

    if tabs and windows:
        errors.append("session: define either 'tabs' or 'windows', not both")
    elif not tabs and not windows:
        errors.append("session: must have either 'tabs' or 'windows' defined")

    zellij_ui = data.get("zellij_ui")
    if zellij_ui is not None:
        if not isinstance(zellij_ui, dict):
            errors.append("zellij_ui: must be a mapping")
        else:
            _check_keys(zellij_ui, ZELLIJ_UI_KEYS, "zellij_ui", errors)
            mode = zellij_ui.get("mode")
            if mode is not None and mode not in ZELLIJ_UI_MODES:
                errors.append(f"zellij_ui.mode: must be one of {ZELLIJ_UI_MODES}, got {mode}")

    return errors


def load_session_config(path: Union[str, Path]) -> SessionConfig:
    """
    Load and validate a session config file.

    Args:
        path: A .yaml, .yml or .json file

    Returns:
        SessionConfig

    Raises:
        ConfigError: if the file is missing, unparsable or invalid
    """
    path = Path(path)
    data = FileUtils.read_structured(path)
    if data is None:
        raise ConfigError(f"Session config not found: {path}")

    errors = validate_session_config(data)
    if errors:
        raise ConfigError(f"Invalid session config {path}", errors)

    logger.debug(f"Loaded session config {path}")
    return SessionConfig.from_dict(data)
