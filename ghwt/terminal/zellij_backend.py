"""
Zellij Backend Module

Zellij builds a session from a KDL layout file in one step, so the layout
is rendered up front, cached in the worktree and handed to a detached
zellij process. Session names are shortened to fit zellij's limit.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from rich.console import Console

from ..core.errors import SessionNotFoundError, SessionOperationError
from ..utils.file_utils import FileUtils
from ..utils.system_utils import SystemUtils
from .base import AttachOptions, SessionManager, attach_with_fallback, shorten_session_name
from .layout import (NormalizedLayout, SessionConfig, TemplateVars, cascade_pre_commands,
                     normalize, substitute_variables, window_root)

console = Console()
logger = logging.getLogger(__name__)

LAYOUT_DIRNAME = ".zellij"
LAYOUT_FILENAME = "layout.kdl"
DEFAULT_SHELL = "/bin/bash"


def kdl_string(value: str) -> str:
    """Quote value as a KDL string."""
    escaped = value.replace('\\', '\\\\').replace('"', '\\"').replace('\n', '\\n')
    return f'"{escaped}"'


def _indent(lines: List[str], depth: int) -> List[str]:
    return ["    " * depth + line for line in lines]


class KdlLayoutRenderer:
    """
    Renders a normalized layout as a zellij KDL layout.

    Each window becomes a pane named after it; a window with several panes
    becomes a vertical split container. Every pane runs its pre-commands and
    its own command through one shell invocation, so commands keep running
    in order in the same shell like they do under tmux.
    """

    def __init__(self, shell: str = DEFAULT_SHELL):
        self.shell = shell

    def render(self,
               layout: NormalizedLayout,
               worktree_path: Union[str, Path],
               variables: TemplateVars,
               ui_mode: str = "full") -> str:
        lines = ["layout {"]
        lines.extend(_indent(self._tab_template(ui_mode), 1))

        for tab in layout.tabs:
            lines.append(f"    tab name={kdl_string(tab.name)} {{")
            for window in tab.windows:
                root = substitute_variables(window_root(worktree_path, window), variables)
                pre_commands = [
                    substitute_variables(command, variables)
                    for command in cascade_pre_commands(layout, tab, window)
                ]
                commands = [substitute_variables(command, variables) for command in window.panes]
                lines.extend(_indent(self._window(window.name, root, pre_commands, commands), 2))
            lines.append("    }")

        lines.append("}")
        return "\n".join(lines) + "\n"

    @staticmethod
    def _tab_template(ui_mode: str) -> List[str]:
        if ui_mode == "none":
            return []

        lines = ["default_tab_template {"]
        if ui_mode == "full":
            lines.extend([
                "    pane size=1 borderless=true {",
                '        plugin location="zellij:tab-bar"',
                "    }",
                "    children",
                "    pane size=2 borderless=true {",
                '        plugin location="zellij:status-bar"',
                "    }",
            ])
        else:
            lines.extend([
                "    children",
                "    pane size=1 borderless=true {",
                '        plugin location="zellij:compact-bar"',
                "    }",
            ])
        lines.append("}")
        return lines

    def _window(self, name: str, root: str, pre_commands: List[str], commands: List[str]) -> List[str]:
        if len(commands) <= 1:
            command = commands[0] if commands else ""
            return self._pane(f"name={kdl_string(name)} ", root, pre_commands, command)

        lines = [f'pane name={kdl_string(name)} split_direction="vertical" {{']
        for command in commands:
            lines.extend(_indent(self._pane("", root, pre_commands, command), 1))
        lines.append("}")
        return lines

    def _pane(self, attributes: str, root: str, pre_commands: List[str], command: str) -> List[str]:
        script = "; ".join(pre_commands + ([command] if command else []))
        if not script:
            return [f"pane {attributes}cwd={kdl_string(root)}"]
        return [
            f"pane {attributes}cwd={kdl_string(root)} command={kdl_string(self.shell)} {{",
            f'    args "-c" {kdl_string(script)}',
            "}",
        ]


class ZellijBackend(SessionManager):
    """
    Zellij session manager.

    Features:
    - KDL layout generation with optional tab/status bars
    - Detached session start with a bounded readiness wait
    - Attaching through wezterm/ghostty with a plain zellij fallback
    """

    def __init__(self,
                 terminal_ui: str = 'wezterm',
                 shell: Optional[str] = None,
                 ready_timeout: float = 5.0,
                 poll_interval: float = 0.1):
        """
        Args:
            terminal_ui: wezterm, ghostty or none
            shell: Shell used to run pane commands; defaults to $SHELL
            ready_timeout: Seconds to wait for a new session to appear
            poll_interval: Seconds between readiness checks
        """
        super().__init__(terminal_ui)
        self.shell = shell or SystemUtils.get_environment_variable('SHELL') or DEFAULT_SHELL
        self.ready_timeout = ready_timeout
        self.poll_interval = poll_interval
        self.renderer = KdlLayoutRenderer(self.shell)

    def list_sessions(self) -> List[str]:
        """Names of running (or resurrectable) zellij sessions."""
        returncode, stdout, _ = SystemUtils.run_command(['zellij', 'list-sessions', '--short'])
        if returncode != 0:
            return []
        return [line.strip() for line in stdout.splitlines() if line.strip()]

    def session_exists(self, session_name: str) -> bool:
        return shorten_session_name(session_name) in self.list_sessions()

    def generate_layout(self,
                        config: SessionConfig,
                        worktree_path: Union[str, Path],
                        variables: TemplateVars) -> str:
        """Render the KDL layout for a session config."""
        return self.renderer.render(normalize(config), worktree_path, variables, config.zellij_ui.mode)

    @staticmethod
    def layout_path(worktree_path: Union[str, Path]) -> Path:
        return Path(worktree_path) / LAYOUT_DIRNAME / LAYOUT_FILENAME

    def create_session(self,
                       session_name: str,
                       config: SessionConfig,
                       worktree_path: Union[str, Path],
                       template_vars: Optional[TemplateVars] = None) -> None:
        """
        Create a zellij session from a layout.

        The layout is written to {worktree}/.zellij/layout.kdl and zellij is
        started detached. Returns once zellij lists the session.

        Raises:
            LayoutError: if the layout has no windows
            SessionOperationError: if the layout cannot be written, zellij
                cannot be started, or the session does not appear in time
        """
        short_name = shorten_session_name(session_name)
        if self.session_exists(session_name):
            logger.info(f"Zellij session already exists: {short_name}")
            console.print(f"[yellow]⚙️  Zellij session already exists: {short_name}[/yellow]")
            return

        variables = self._template_vars(session_name, worktree_path, template_vars)
        layout_text = self.generate_layout(config, worktree_path, variables)
        layout_file = self.layout_path(worktree_path)
        if not FileUtils.write_text(layout_file, layout_text):
            raise SessionOperationError(f"Could not write zellij layout to {layout_file}")

        command = ['zellij', '-s', short_name, '-n', str(layout_file)]
        console.print(f"[blue]🚀 Creating zellij session: {short_name}[/blue]")
        try:
            process = SystemUtils.spawn_detached(command, cwd=worktree_path)
        except OSError as e:
            raise SessionOperationError(f"Failed to start zellij: {e}", command) from e

        def session_ready() -> bool:
            # Reap the client once it exits
            process.poll()
            return self.session_exists(session_name)

        ready = SystemUtils.wait_until(
            session_ready,
            timeout=self.ready_timeout,
            interval=self.poll_interval
        )
        if not ready:
            raise SessionOperationError(
                f"Zellij session {short_name} did not start within {self.ready_timeout}s",
                command
            )

        console.print(f"[green]✅ Created zellij session {short_name}[/green]")

    def attach_to_session(self,
                          session_name: str,
                          worktree_path: Union[str, Path],
                          options: Optional[AttachOptions] = None) -> None:
        """
        Attach to a session through the configured terminal UI.

        Raises:
            SessionNotFoundError: if the session does not exist
        """
        if not self.session_exists(session_name):
            raise SessionNotFoundError(session_name)

        options = options or AttachOptions()
        short_name = shorten_session_name(session_name)
        attach_with_fallback(
            self.terminal_ui,
            short_name,
            worktree_path,
            ['zellij', 'attach', short_name],
            always_new_process=options.always_new_process
        )

    def launch_ui(self, session_name: str, worktree_path: Union[str, Path]) -> None:
        short_name = shorten_session_name(session_name)
        attach_with_fallback(self.terminal_ui, short_name, worktree_path, ['zellij', 'attach', short_name])

    def kill_session(self, session_name: str) -> bool:
        short_name = shorten_session_name(session_name)
        returncode, _, stderr = SystemUtils.run_command(['zellij', 'delete-session', '-f', short_name])
        if returncode != 0:
            logger.debug(f"zellij delete-session {short_name}: {stderr.strip()}")
            return False
        console.print(f"[green]✓ Killed zellij session: {short_name}[/green]")
        return True
