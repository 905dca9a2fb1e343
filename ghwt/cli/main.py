"""
Command Line Interface Module

argparse front end over the worktree resolver and the session launcher,
with rich output.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from .. import __version__
from ..core.config import CONFIG_PATH_ENV, GhwtConfig, load_config, resolve_config_path
from ..core.errors import ConfigError, GhwtError
from ..core.paths import (KNOWN_PREFIXES, clean_branch_arg, note_path, parse_branch_arg, parse_loose_branch_ref,
                          worktree_path)
from ..git.branch_resolver import BranchResolver
from ..git.context_resolver import CurrentContextResolver
from ..git.worktree_discovery import list_worktrees
from ..terminal import launcher
from ..terminal.base import AttachOptions
from ..terminal.session_config import SESSION_CONFIG_FILENAMES, load_session_config
from ..utils.system_utils import SystemUtils

console = Console()
logger = logging.getLogger(__name__)

LOG_LEVELS = [logging.WARNING, logging.INFO, logging.DEBUG]


class GhwtCLI:
    """
    Command-line interface for ghwt.

    Features:
    - Worktree listing and path lookup
    - Current worktree detection (--this)
    - Session launch, attach and cleanup
    - Config linting
    """

    def __init__(self, config_path: Optional[str] = None):
        """
        Args:
            config_path: Default config file location, usually from GHWT_CONFIG
        """
        self.default_config_path = config_path
        self.parser = self._create_argument_parser()
        self._config: Optional[GhwtConfig] = None
        self._config_path: Optional[str] = None

    def error(self, message: str) -> None:
        """Display error message."""
        console.print(f"[red]❌ {message}[/red]")

    def success(self, message: str) -> None:
        """Display success message."""
        console.print(f"[green]✅ {message}[/green]")

    def warning(self, message: str) -> None:
        """Display warning message."""
        console.print(f"[yellow]⚠️  {message}[/yellow]")

    def run(self, args: Optional[List[str]] = None) -> int:
        """
        Run CLI with provided arguments.

        Args:
            args: Command-line arguments (defaults to sys.argv)

        Returns:
            Exit code (0 for success)
        """
        parsed_args = self.parser.parse_args(args)
        logging.basicConfig(
            level=LOG_LEVELS[min(parsed_args.verbose, len(LOG_LEVELS) - 1)],
            format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
        )
        self._config_path = parsed_args.config or self.default_config_path

        if not hasattr(parsed_args, 'func'):
            self.parser.print_help()
            return 1

        try:
            return parsed_args.func(parsed_args)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            return 130
        except GhwtError as e:
            self.error(str(e))
            return 1

    @property
    def config(self) -> GhwtConfig:
        if self._config is None:
            self._config = load_config(self._config_path)
        return self._config

    def _create_argument_parser(self) -> argparse.ArgumentParser:
        """Create argument parser with all commands."""
        parser = argparse.ArgumentParser(
            prog="ghwt",
            description="Git worktree hierarchy and terminal session manager",
            epilog="Use 'ghwt <command> --help' for command-specific help"
        )
        parser.add_argument("--version", action="version", version=f"ghwt {__version__}")
        parser.add_argument(
            "--verbose", "-v",
            action="count",
            default=0,
            help="Increase verbosity (use -v or -vv)"
        )
        parser.add_argument("--config", help="Path to config file (default: ~/.ghwtrc.json)")

        subparsers = parser.add_subparsers(title="commands", dest="command")

        list_parser = subparsers.add_parser("list", help="List worktrees")
        list_parser.add_argument("project", nargs="?", help="Only list this project")
        list_parser.set_defaults(func=self._cmd_list)

        resolve_parser = subparsers.add_parser("resolve", help="Resolve a branch name or PR number")
        resolve_parser.add_argument("project")
        resolve_parser.add_argument("branch")
        resolve_parser.set_defaults(func=self._cmd_resolve)

        context_parser = subparsers.add_parser("context", help="Show the worktree containing the current directory")
        context_parser.set_defaults(func=self._cmd_context)

        path_parser = subparsers.add_parser("path", help="Print a worktree path")
        self._add_target_arguments(path_parser)
        path_parser.set_defaults(func=self._cmd_path)

        note_parser = subparsers.add_parser("path-note", help="Print the note path of a worktree")
        self._add_target_arguments(note_parser)
        note_parser.set_defaults(func=self._cmd_path_note)

        session_parser = subparsers.add_parser("session", help="Create a worktree's session and open it")
        self._add_target_arguments(session_parser)
        session_parser.set_defaults(func=self._cmd_session)

        attach_parser = subparsers.add_parser("attach", help="Attach to a worktree's running session")
        self._add_target_arguments(attach_parser)
        attach_parser.add_argument(
            "--existing-terminal",
            action="store_true",
            help="Reuse a running terminal process instead of starting a new one"
        )
        attach_parser.set_defaults(func=self._cmd_attach)

        clean_parser = subparsers.add_parser("clean-session", help="Kill a worktree's session")
        self._add_target_arguments(clean_parser)
        clean_parser.add_argument("--all", action="store_true", help="Kill sessions of all worktrees")
        clean_parser.add_argument("--force", "-f", action="store_true", help="Do not ask for confirmation")
        clean_parser.set_defaults(func=self._cmd_clean_session)

        lint_parser = subparsers.add_parser("lint", help="Validate config and session layouts")
        group = lint_parser.add_mutually_exclusive_group()
        group.add_argument("--config-only", action="store_true", help="Only validate the global config")
        group.add_argument("--session-only", action="store_true", help="Only validate session layouts")
        lint_parser.set_defaults(func=self._cmd_lint)

        return parser

    @staticmethod
    def _add_target_arguments(parser: argparse.ArgumentParser) -> None:
        parser.add_argument("project", nargs="?", help="Project name")
        parser.add_argument("branch", nargs="?", help="Branch name or PR number")
        parser.add_argument("--this", action="store_true", help="Use the worktree containing the current directory")

    def _resolve_target(self, args) -> Tuple[str, str, Path]:
        """
        Work out (project, "type/name", path) from --this or positional args.

        Raises:
            GhwtError: if the target cannot be determined
        """
        root = self.config.worktrees_root

        if args.this:
            context = CurrentContextResolver(root).current_context()
            project, branch = context.project, context.branch
        else:
            if not args.project or not args.branch:
                raise GhwtError("Specify <project> <branch> or use --this")
            project = args.project
            raw = clean_branch_arg(args.branch)
            branch = BranchResolver(root).resolve(project, raw)
            if branch == raw and not raw.startswith(KNOWN_PREFIXES):
                # Unresolved; validate so the user gets a useful message
                branch = parse_branch_arg(raw).ref

        ref = parse_loose_branch_ref(branch)
        path = worktree_path(root, project, ref.branch_type, ref.name)
        return project, ref.ref, path

    def _cmd_list(self, args) -> int:
        worktrees = list_worktrees(self.config.worktrees_root, args.project)
        if not worktrees:
            self.warning(f"No worktrees found under {self.config.worktrees_root}")
            return 0

        table = Table(title="Worktrees")
        table.add_column("Project", style="bold")
        table.add_column("Branch", style="cyan")
        table.add_column("Path", style="dim")
        for info in worktrees:
            table.add_row(info.project, info.branch, str(info.path))
        console.print(table)
        return 0

    def _cmd_resolve(self, args) -> int:
        console.print(BranchResolver(self.config.worktrees_root).resolve(args.project, args.branch))
        return 0

    def _cmd_context(self, args) -> int:
        context = CurrentContextResolver(self.config.worktrees_root).current_context()
        console.print(f"[bold]{context.project}[/bold] {context.branch}")
        return 0

    def _cmd_path(self, args) -> int:
        _, _, path = self._resolve_target(args)
        if not path.is_dir():
            self.error(f"Worktree not found: {path}")
            return 1
        print(path)
        return 0

    def _cmd_path_note(self, args) -> int:
        project, branch, _ = self._resolve_target(args)
        print(note_path(self.config.vault_root, project, branch))
        return 0

    def _cmd_session(self, args) -> int:
        project, branch, path = self._resolve_target(args)
        if not path.is_dir():
            self.error(f"Worktree not found: {path}")
            return 1

        name = launcher.launch_session(project, branch, path, self.config)
        if name is None:
            self.warning(f"No session config for {project} in {self.config.session_config_dir / project}")
        return 0

    def _cmd_attach(self, args) -> int:
        project, branch, path = self._resolve_target(args)
        options = AttachOptions(always_new_process=not args.existing_terminal)
        launcher.attach_session(project, branch, path, self.config, options)
        return 0

    def _cmd_clean_session(self, args) -> int:
        if not args.all:
            project, branch, _ = self._resolve_target(args)
            launcher.clean_session(project, branch, self.config)
            return 0

        sessions = launcher.find_active_sessions(list_worktrees(self.config.worktrees_root), self.config)
        if sessions.total == 0:
            console.print("[green]✨ No active ghwt sessions found[/green]")
            return 0

        console.print(f"\n[bold]📋 Found {sessions.total} active session(s):[/bold]")
        for label, names in (("Tmux", sessions.tmux), ("Zellij", sessions.zellij)):
            if names:
                console.print(f"  {label}:")
                for name in names:
                    console.print(f"    - {name}")

        if not args.force and not Confirm.ask(f"Kill these {sessions.total} session(s)?", default=False):
            console.print("[yellow]Cancelled[/yellow]")
            return 0

        killed = launcher.clean_all_sessions(self.config, sessions)
        self.success(f"Killed {killed} session(s)")
        return 0

    def _cmd_lint(self, args) -> int:
        failures = 0

        if not args.session_only:
            config_path = resolve_config_path(self._config_path)
            try:
                self._config = load_config(config_path)
                self.success(f"Config valid: {config_path}")
            except ConfigError as e:
                self.error(str(e))
                return 1

        if not args.config_only:
            config_dir = self.config.session_config_dir
            files = sorted(
                path for filename in SESSION_CONFIG_FILENAMES
                for path in config_dir.glob(f"*/{filename}")
            )
            if not files:
                self.warning(f"No session configs found in {config_dir}")
            for path in files:
                try:
                    load_session_config(path)
                    self.success(f"Session config valid: {path}")
                except ConfigError as e:
                    self.error(str(e))
                    failures += 1

        return 1 if failures else 0


def main(argv: Optional[List[str]] = None) -> int:
    """Console script entry point."""
    cli = GhwtCLI(config_path=SystemUtils.get_environment_variable(CONFIG_PATH_ENV))
    return cli.run(argv)


if __name__ == "__main__":
    sys.exit(main())
