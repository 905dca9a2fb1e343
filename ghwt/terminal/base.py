"""
Terminal Session Base Module

Interface shared by the tmux and zellij backends, plus the helpers both
use to wrap an attach command in a terminal application.
"""

import hashlib
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from rich.console import Console

from ..utils.system_utils import SystemUtils
from .layout import SessionConfig, TemplateVars

console = Console()
logger = logging.getLogger(__name__)

# Longer zellij session names overflow the socket path on some systems
MAX_SESSION_NAME_LENGTH = 32
_HASH_LENGTH = 8


@dataclass
class AttachOptions:
    """
    Options for attaching to a session.

    always_new_process: start a separate wezterm process instead of reusing
    a running one (disabled by --existing-terminal).
    """
    always_new_process: bool = True


def shorten_session_name(name: str, max_length: int = MAX_SESSION_NAME_LENGTH) -> str:
    """
    Shorten a session name deterministically.

    Names within max_length are returned unchanged. Longer names keep a
    readable prefix followed by a hash of the full name, so two long names
    sharing a prefix still map to different sessions.
    """
    if len(name) <= max_length:
        return name
    digest = hashlib.sha1(name.encode('utf-8')).hexdigest()[:_HASH_LENGTH]
    prefix = name[:max_length - _HASH_LENGTH - 1].rstrip('-')
    return f"{prefix}-{digest}"


def wezterm_command(workspace: str,
                    cwd: Union[str, Path],
                    attach_command: List[str],
                    always_new_process: bool = False) -> List[str]:
    """Command line opening a wezterm workspace that runs attach_command."""
    command = ['wezterm', 'start', '--workspace', workspace, '--cwd', str(cwd)]
    if always_new_process:
        command.append('--always-new-process')
    return command + ['--'] + attach_command


def ghostty_command(attach_command: List[str]) -> List[str]:
    """Command line opening ghostty running attach_command."""
    if sys.platform == 'darwin':
        # The ghostty binary cannot open windows on macOS; go through the app bundle
        return ['open', '-na', 'Ghostty.app', '--args', '-e'] + attach_command
    return ['ghostty', '-e'] + attach_command


def ui_command(terminal_ui: str,
               workspace: str,
               cwd: Union[str, Path],
               attach_command: List[str],
               always_new_process: bool = False) -> Optional[List[str]]:
    """
    Wrap attach_command in the configured terminal UI.

    Returns:
        The wrapped command, or None when attach_command should run directly
        in the current terminal ("none" or an unknown UI)
    """
    if terminal_ui == 'wezterm':
        return wezterm_command(workspace, cwd, attach_command, always_new_process)
    if terminal_ui == 'ghostty':
        return ghostty_command(attach_command)
    return None


def attach_with_fallback(terminal_ui: str,
                         workspace: str,
                         cwd: Union[str, Path],
                         attach_command: List[str],
                         always_new_process: bool = False) -> int:
    """
    Attach through the terminal UI, falling back to the current terminal.

    A missing or failing UI wrapper is logged as a warning and the attach
    command is run directly instead.

    Returns:
        Exit code of whichever command ran last
    """
    wrapped = ui_command(terminal_ui, workspace, cwd, attach_command, always_new_process)
    if wrapped is not None:
        returncode = SystemUtils.run_interactive(wrapped, cwd=cwd)
        if returncode == 0:
            return 0
        logger.warning(f"{wrapped[0]} failed (exit {returncode}), attaching in current terminal")
        console.print("[yellow]📋 Attaching to session in current terminal...[/yellow]")

    return SystemUtils.run_interactive(attach_command, cwd=cwd)


class SessionManager(ABC):
    """
    Lifecycle operations every multiplexer backend provides.

    Backends hold no session state of their own; every call asks the
    multiplexer what currently exists.
    """

    def __init__(self, terminal_ui: str = 'wezterm'):
        self.terminal_ui = terminal_ui

    @abstractmethod
    def session_exists(self, session_name: str) -> bool:
        """True if the multiplexer reports a session with this name."""

    @abstractmethod
    def create_session(self,
                       session_name: str,
                       config: SessionConfig,
                       worktree_path: Union[str, Path],
                       template_vars: Optional[TemplateVars] = None) -> None:
        """
        Build the session described by config, rooted at worktree_path.

        Does nothing if the session already exists.
        """

    @abstractmethod
    def attach_to_session(self,
                          session_name: str,
                          worktree_path: Union[str, Path],
                          options: Optional[AttachOptions] = None) -> None:
        """Attach to an existing session; raises SessionNotFoundError if absent."""

    @abstractmethod
    def kill_session(self, session_name: str) -> bool:
        """
        Kill the session. A missing session is not an error.

        Returns:
            bool: True if a session was killed
        """

    @abstractmethod
    def launch_ui(self, session_name: str, worktree_path: Union[str, Path]) -> None:
        """Open the configured terminal UI attached to the session."""

    def _template_vars(self,
                       session_name: str,
                       worktree_path: Union[str, Path],
                       template_vars: Optional[TemplateVars]) -> TemplateVars:
        if template_vars is not None:
            return template_vars
        return TemplateVars.from_session_name(session_name, worktree_path)
