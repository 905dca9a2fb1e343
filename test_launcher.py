#!/usr/bin/env python3
"""
Launcher and CLI Tests

Tests backend selection, session launch wiring and the command-line
front end with stubbed backends.
"""

import json
import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add parent directory to path
sys.path.append(str(Path(__file__).parent))

from ghwt.cli.main import GhwtCLI
from ghwt.core.config import GhwtConfig
from ghwt.core.paths import WorktreeInfo
from ghwt.terminal import launcher
from ghwt.terminal.base import SessionManager
from ghwt.terminal.tmux_backend import TmuxBackend
from ghwt.terminal.zellij_backend import ZellijBackend


class TestLauncher(unittest.TestCase):
    """Test launching sessions for worktrees"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.config = GhwtConfig(projects_root=Path(self.test_dir), terminal_ui='none')
        self.worktree = self.config.worktrees_root / "acme" / "branch" / "feature-x"

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def write_session_config(self, project="acme"):
        project_dir = self.config.session_config_dir / project
        project_dir.mkdir(parents=True)
        (project_dir / ".ghwt-session.json").write_text(json.dumps({
            "name": "dev",
            "windows": [{"name": "editor", "panes": ["vim"]}],
        }))

    def test_backend_selection(self):
        self.assertIsInstance(launcher.get_session_manager(self.config), TmuxBackend)
        self.config.terminal_multiplexer = 'zellij'
        self.assertIsInstance(launcher.get_session_manager(self.config), ZellijBackend)

    def test_no_session_config(self):
        manager = MagicMock(spec=SessionManager)

        self.assertIsNone(launcher.launch_session("acme", "branch/feature-x", self.worktree, self.config, manager))
        manager.create_session.assert_not_called()

    def test_launch_creates_then_opens_ui(self):
        self.write_session_config()
        manager = MagicMock(spec=SessionManager)

        name = launcher.launch_session("acme", "branch/feature-x", self.worktree, self.config, manager)

        self.assertEqual(name, "acme-feature-x")
        args, kwargs = manager.create_session.call_args
        self.assertEqual(args[0], "acme-feature-x")
        self.assertEqual(args[1].name, "dev")
        self.assertEqual(kwargs["template_vars"].branch, "feature-x")
        self.assertEqual(kwargs["template_vars"].project, "acme")
        manager.launch_ui.assert_called_once_with("acme-feature-x", self.worktree)

    def test_attach_uses_session_name(self):
        manager = MagicMock(spec=SessionManager)
        launcher.attach_session("acme", "pr/12", self.worktree, self.config, manager=manager)
        manager.attach_to_session.assert_called_once_with("acme-12", self.worktree, None)

    @patch.object(ZellijBackend, 'kill_session', return_value=False)
    @patch.object(TmuxBackend, 'kill_session', return_value=True)
    def test_clean_session_tries_both_backends(self, mock_tmux_kill, mock_zellij_kill):
        self.assertTrue(launcher.clean_session("acme", "branch/feature-x", self.config))
        mock_tmux_kill.assert_called_once_with("acme-feature-x")
        mock_zellij_kill.assert_called_once_with("acme-feature-x")

    @patch.object(ZellijBackend, 'list_sessions', return_value=["acme-1"])
    @patch.object(TmuxBackend, 'list_sessions', return_value=["acme-feature-x", "unrelated"])
    def test_find_active_sessions(self, mock_tmux, mock_zellij):
        worktrees = [
            WorktreeInfo("acme", "branch/feature-x", Path("/w/acme/branch/feature-x")),
            WorktreeInfo("acme", "pr/1", Path("/w/acme/pr/1")),
        ]

        sessions = launcher.find_active_sessions(worktrees, self.config)

        self.assertEqual(sessions.tmux, ["acme-feature-x"])
        self.assertEqual(sessions.zellij, ["acme-1"])
        self.assertEqual(sessions.total, 2)

    @patch.object(ZellijBackend, 'list_sessions', return_value=[])
    @patch.object(TmuxBackend, 'list_sessions', return_value=["acme-v1_2"])
    def test_find_active_sessions_with_dotted_branch(self, mock_tmux, mock_zellij):
        worktrees = [WorktreeInfo("acme", "branch/v1.2", Path("/w/acme/branch/v1.2"))]

        sessions = launcher.find_active_sessions(worktrees, self.config)

        self.assertEqual(sessions.tmux, ["acme-v1.2"])

    def test_kill_session_uses_given_manager(self):
        manager = MagicMock(spec=SessionManager)
        manager.kill_session.return_value = True

        self.assertTrue(launcher.kill_session("acme-x", self.config, manager))
        manager.kill_session.assert_called_once_with("acme-x")

    @patch.object(ZellijBackend, 'kill_session', return_value=True)
    @patch.object(TmuxBackend, 'kill_session', side_effect=[True, False])
    def test_clean_all_sessions(self, mock_tmux_kill, mock_zellij_kill):
        sessions = launcher.ActiveSessions(tmux=["a-1", "a-2"], zellij=["a-3"])
        self.assertEqual(launcher.clean_all_sessions(self.config, sessions), 2)


class TestCLI(unittest.TestCase):
    """Test the command-line front end"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.projects = Path(self.test_dir) / "projects"
        self.config_path = Path(self.test_dir) / "ghwtrc.json"
        self.config_path.write_text(json.dumps({
            "projectsRoot": str(self.projects),
            "vaultPath": str(Path(self.test_dir) / "vault"),
            "terminalUI": "none",
        }))
        worktree = self.projects / "worktrees" / "acme" / "pr" / "1234"
        worktree.mkdir(parents=True)
        (worktree / ".git").write_text("gitdir: x\n")
        self.worktree = worktree
        self.cli = GhwtCLI(config_path=str(self.config_path))

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_path_resolves_pr_number(self):
        with patch('builtins.print') as mock_print:
            self.assertEqual(self.cli.run(["path", "acme", "1234"]), 0)
        mock_print.assert_called_once_with(self.worktree)

    def test_path_missing_worktree(self):
        self.assertEqual(self.cli.run(["path", "acme", "nope"]), 1)

    def test_path_note(self):
        with patch('builtins.print') as mock_print:
            self.assertEqual(self.cli.run(["path-note", "acme", "1234"]), 0)
        expected = Path(self.test_dir) / "vault" / "projects" / "acme" / "worktrees" / "1234.md"
        mock_print.assert_called_once_with(expected)

    def test_invalid_branch_argument(self):
        self.assertEqual(self.cli.run(["path", "acme", "bad name!"]), 1)

    def test_missing_target(self):
        self.assertEqual(self.cli.run(["path"]), 1)

    def test_no_command_prints_help(self):
        self.assertEqual(self.cli.run([]), 1)

    def test_invalid_config(self):
        self.config_path.write_text(json.dumps({"projectsRoot": "/p"}))
        self.assertEqual(self.cli.run(["list"]), 1)

    def test_lint_config_only(self):
        self.assertEqual(self.cli.run(["lint", "--config-only"]), 0)

    def test_lint_reports_bad_session_config(self):
        project_dir = self.projects / "terminal-session-config" / "acme"
        project_dir.mkdir(parents=True)
        (project_dir / ".ghwt-session.json").write_text(json.dumps({"name": "dev"}))

        self.assertEqual(self.cli.run(["lint", "--session-only"]), 1)

    @patch('ghwt.cli.main.launcher.launch_session', return_value=None)
    def test_session_without_config(self, mock_launch):
        self.assertEqual(self.cli.run(["session", "acme", "1234"]), 0)
        args = mock_launch.call_args[0]
        self.assertEqual(args[:3], ("acme", "pr/1234", self.worktree))


if __name__ == '__main__':
    unittest.main()
