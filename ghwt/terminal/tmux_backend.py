"""
Tmux Backend Module

Builds and manages tmux sessions from a session layout. Each layout step is
one tmux command; window and pane ids printed by tmux are used as targets
for the following steps, so the build does not depend on base-index.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from rich.console import Console

from ..core.errors import SessionNotFoundError, SessionOperationError
from ..utils.system_utils import SystemUtils
from .base import AttachOptions, SessionManager, attach_with_fallback
from .layout import (SessionConfig, TemplateVars, cascade_pre_commands, normalize,
                     substitute_variables, window_root)

console = Console()
logger = logging.getLogger(__name__)

_IDS_FORMAT = '#{window_id} #{pane_id}'

# tmux rewrites these characters to "_" when it stores a session name
_TMUX_NAME_REPLACEMENTS = str.maketrans({".": "_", ":": "_"})


def tmux_session_name(session_name: str) -> str:
    """The name tmux actually stores for session_name."""
    return session_name.translate(_TMUX_NAME_REPLACEMENTS)


def exact_target(session_name: str) -> str:
    """
    Session target that only matches this exact name.

    Without the leading "=" tmux falls back to prefix matching.
    """
    return f"={tmux_session_name(session_name)}"


class TmuxBackend(SessionManager):
    """
    Tmux session manager.

    Provides functionality for:
    - Session existence checks against the running tmux server
    - Building sessions window by window and pane by pane
    - Attaching through wezterm/ghostty with a plain tmux fallback
    - Best-effort session cleanup
    """

    def _run_tmux(self, args: List[str]) -> str:
        """
        Run a tmux command that must succeed.

        Raises:
            SessionOperationError: on a non-zero exit
        """
        command = ['tmux'] + args
        returncode, stdout, stderr = SystemUtils.run_command(command)
        if returncode != 0:
            raise SessionOperationError("tmux command failed", command, returncode, stderr)
        return stdout

    def _send_keys(self, target: str, keys: str) -> None:
        self._run_tmux(['send-keys', '-t', target, keys, 'C-m'])

    @staticmethod
    def _parse_ids(output: str) -> Tuple[str, str]:
        window_id, _, pane_id = output.strip().partition(' ')
        return window_id, pane_id

    def list_sessions(self) -> List[str]:
        """Names of all sessions on the tmux server; empty if none is running."""
        returncode, stdout, _ = SystemUtils.run_command(['tmux', 'list-sessions', '-F', '#{session_name}'])
        if returncode != 0:
            return []
        return [line.strip() for line in stdout.splitlines() if line.strip()]

    def session_exists(self, session_name: str) -> bool:
        return tmux_session_name(session_name) in self.list_sessions()

    def create_session(self,
                       session_name: str,
                       config: SessionConfig,
                       worktree_path: Union[str, Path],
                       template_vars: Optional[TemplateVars] = None) -> None:
        """
        Create a tmux session from a layout.

        Window names are "{tab}:{window}". Every pane runs the session, tab
        and window pre-commands followed by its own command.

        Args:
            session_name: tmux session name
            config: Session layout
            worktree_path: Directory the session starts in
            template_vars: Substitution values; derived from the name if omitted

        Raises:
            LayoutError: if the layout has no windows
            SessionOperationError: if any tmux command fails; the partly
                built session is left in place
        """
        if self.session_exists(session_name):
            logger.info(f"Tmux session already exists: {session_name}")
            console.print(f"[yellow]⚙️  Tmux session already exists: {session_name}[/yellow]")
            return

        worktree_path = str(worktree_path)
        variables = self._template_vars(session_name, worktree_path, template_vars)
        layout = normalize(config)

        console.print(f"[blue]🚀 Creating tmux session: {session_name}[/blue]")
        output = self._run_tmux(['new-session', '-d', '-s', tmux_session_name(session_name),
                                 '-c', worktree_path, '-P', '-F', _IDS_FORMAT])
        first_window_id, first_pane_id = self._parse_ids(output)

        window_count = 0
        for tab in layout.tabs:
            for window in tab.windows:
                raw_root = window_root(worktree_path, window)
                root = substitute_variables(raw_root, variables)
                window_name = f"{tab.name}:{window.name}"

                if window_count == 0:
                    window_id, pane_id = first_window_id, first_pane_id
                    self._run_tmux(['rename-window', '-t', window_id, window_name])
                    if raw_root != worktree_path:
                        self._send_keys(pane_id, f"cd {root}")
                else:
                    output = self._run_tmux(['new-window', '-t', f"{exact_target(session_name)}:",
                                             '-n', window_name, '-c', root, '-P', '-F', _IDS_FORMAT])
                    window_id, pane_id = self._parse_ids(output)

                pre_commands = cascade_pre_commands(layout, tab, window)
                for pane_index, command in enumerate(window.panes):
                    if pane_index > 0:
                        output = self._run_tmux(['split-window', '-t', window_id, '-c', root,
                                                 '-P', '-F', '#{pane_id}'])
                        pane_id = output.strip()
                        self._run_tmux(['select-layout', '-t', window_id, 'tiled'])

                    for pre_command in pre_commands:
                        self._send_keys(pane_id, substitute_variables(pre_command, variables))
                    if command:
                        self._send_keys(pane_id, substitute_variables(command, variables))

                logger.debug(f"Created window {window_name} ({window_id}) with {len(window.panes)} panes")
                window_count += 1

        self._run_tmux(['select-window', '-t', first_window_id])
        console.print(f"[green]✅ Created session {session_name} with {window_count} windows[/green]")

    def attach_to_session(self,
                          session_name: str,
                          worktree_path: Union[str, Path],
                          options: Optional[AttachOptions] = None) -> None:
        """
        Attach to a session, detaching any other clients first.

        Raises:
            SessionNotFoundError: if the session does not exist
        """
        if not self.session_exists(session_name):
            raise SessionNotFoundError(session_name)

        options = options or AttachOptions()
        returncode, _, _ = SystemUtils.run_command(['tmux', 'detach-client', '-s', exact_target(session_name)])
        if returncode != 0:
            logger.debug(f"No other clients attached to {session_name}")

        attach_with_fallback(
            self.terminal_ui,
            tmux_session_name(session_name),
            worktree_path,
            ['tmux', 'attach-session', '-t', exact_target(session_name)],
            always_new_process=options.always_new_process
        )

    def launch_ui(self, session_name: str, worktree_path: Union[str, Path]) -> None:
        attach_with_fallback(
            self.terminal_ui,
            tmux_session_name(session_name),
            worktree_path,
            ['tmux', 'attach-session', '-t', exact_target(session_name)]
        )

    def kill_session(self, session_name: str) -> bool:
        returncode, _, stderr = SystemUtils.run_command(['tmux', 'kill-session', '-t', exact_target(session_name)])
        if returncode != 0:
            logger.debug(f"tmux kill-session {session_name}: {stderr.strip()}")
            return False
        console.print(f"[green]✓ Killed tmux session: {session_name}[/green]")
        return True
