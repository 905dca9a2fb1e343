"""
Session Launcher Module

Entry points tying the worktree hierarchy to the multiplexer backends:
pick the backend from the global config, build sessions from per-project
layouts, attach, and clean up.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from rich.console import Console

from ..core.config import GhwtConfig
from ..core.paths import WorktreeInfo, parse_loose_branch_ref, session_name
from ..git.worktree_discovery import list_worktrees
from .base import AttachOptions, SessionManager, shorten_session_name
from .layout import TemplateVars
from .session_config import find_session_config, load_session_config
from .tmux_backend import TmuxBackend, tmux_session_name
from .zellij_backend import ZellijBackend

console = Console()
logger = logging.getLogger(__name__)


def get_session_manager(config: GhwtConfig) -> SessionManager:
    """Backend selected by terminalMultiplexer."""
    if config.terminal_multiplexer == 'zellij':
        return ZellijBackend(terminal_ui=config.terminal_ui)
    return TmuxBackend(terminal_ui=config.terminal_ui)


def launch_session(project: str,
                   branch: str,
                   worktree_path: Union[str, Path],
                   config: GhwtConfig,
                   manager: Optional[SessionManager] = None) -> Optional[str]:
    """
    Create the worktree's session from its project layout and open the UI.

    Args:
        project: Project name
        branch: Branch reference, e.g. "branch/feature-x" or "pr/123"
        worktree_path: Worktree directory
        config: Global configuration
        manager: Backend override; chosen from config if omitted

    Returns:
        The session name, or None when the project has no session config

    Raises:
        ConfigError: if the session config is invalid
        SessionOperationError: if the multiplexer fails while building
    """
    config_path = find_session_config(project, config.session_config_dir)
    if config_path is None:
        logger.info(f"No session config for {project}, skipping session creation")
        return None

    session_config = load_session_config(config_path)
    name = session_name(project, branch)
    manager = manager or get_session_manager(config)

    variables = TemplateVars(
        worktree_path=str(worktree_path),
        project=project,
        branch=parse_loose_branch_ref(branch).name
    )
    manager.create_session(name, session_config, worktree_path, template_vars=variables)
    console.print(f"[green]⚙️  Terminal session ready: {name}[/green]")

    manager.launch_ui(name, worktree_path)
    return name


def attach_session(project: str,
                   branch: str,
                   worktree_path: Union[str, Path],
                   config: GhwtConfig,
                   options: Optional[AttachOptions] = None,
                   manager: Optional[SessionManager] = None) -> str:
    """
    Attach to the worktree's existing session.

    Raises:
        SessionNotFoundError: if the session is not running
    """
    name = session_name(project, branch)
    manager = manager or get_session_manager(config)
    manager.attach_to_session(name, worktree_path, options)
    return name


def kill_session(name: str, config: GhwtConfig, manager: Optional[SessionManager] = None) -> bool:
    """Kill a session with the configured backend."""
    manager = manager or get_session_manager(config)
    return manager.kill_session(name)


def clean_session(project: str, branch: str, config: GhwtConfig) -> bool:
    """
    Kill the worktree's session in whichever multiplexer runs it.

    Both backends are tried, since the configured multiplexer may have
    changed after the session was created.

    Returns:
        bool: True if any session was killed
    """
    name = session_name(project, branch)
    killed = False
    for manager in (TmuxBackend(config.terminal_ui), ZellijBackend(config.terminal_ui)):
        if kill_session(name, config, manager):
            killed = True

    if not killed:
        console.print(f"[yellow]⚠️  No active session found for: {name}[/yellow]")
    return killed


@dataclass
class ActiveSessions:
    """Running sessions that belong to known worktrees, per multiplexer."""
    tmux: List[str] = field(default_factory=list)
    zellij: List[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.tmux) + len(self.zellij)


def find_active_sessions(worktrees: List[WorktreeInfo], config: GhwtConfig) -> ActiveSessions:
    """
    Match running multiplexer sessions against the worktree list.

    Sessions not named after a known worktree are left alone.
    """
    tmux = TmuxBackend(config.terminal_ui)
    zellij = ZellijBackend(config.terminal_ui)
    tmux_running = set(tmux.list_sessions())
    zellij_running = set(zellij.list_sessions())

    active = ActiveSessions()
    for info in worktrees:
        name = session_name(info.project, info.branch)
        if tmux_session_name(name) in tmux_running:
            active.tmux.append(name)
        if shorten_session_name(name) in zellij_running:
            active.zellij.append(name)
    return active


def clean_all_sessions(config: GhwtConfig,
                       sessions: Optional[ActiveSessions] = None) -> int:
    """
    Kill every session belonging to a worktree under the hierarchy root.

    Args:
        config: Global configuration
        sessions: Previously found sessions; looked up if omitted

    Returns:
        Number of sessions killed
    """
    if sessions is None:
        sessions = find_active_sessions(list_worktrees(config.worktrees_root), config)

    tmux = TmuxBackend(config.terminal_ui)
    zellij = ZellijBackend(config.terminal_ui)

    killed = 0
    for name in sessions.tmux:
        if tmux.kill_session(name):
            killed += 1
    for name in sessions.zellij:
        if zellij.kill_session(name):
            killed += 1

    logger.info(f"Killed {killed} of {sessions.total} sessions")
    return killed

