#!/usr/bin/env python3
"""
Context and Branch Resolver Tests

Tests current-worktree detection with a stubbed git client and branch
resolution against directories on disk.
"""

import os
import shutil
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

# Add parent directory to path
sys.path.append(str(Path(__file__).parent))

from ghwt.core.errors import NotInWorktreeError
from ghwt.git.branch_resolver import BranchResolver
from ghwt.git.context_resolver import CurrentContextResolver, WorktreeContext
from ghwt.git.git_client import GitClient, GitCommandError


def stub_git(toplevel) -> MagicMock:
    client = MagicMock(spec=GitClient)
    client.show_toplevel.return_value = Path(toplevel)
    return client


class TestCurrentContextResolver(unittest.TestCase):
    """Test worktree detection from the git top-level"""

    def setUp(self):
        self.test_dir = os.path.realpath(tempfile.mkdtemp())
        self.root = Path(self.test_dir) / "worktrees"
        self.root.mkdir()

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_branch_worktree(self):
        top = self.root / "acme" / "branch" / "feature-x"
        top.mkdir(parents=True)

        context = CurrentContextResolver(self.root, stub_git(top)).current_context()
        self.assertEqual(context, WorktreeContext("acme", "branch/feature-x"))

    def test_nested_name(self):
        top = self.root / "acme" / "branch" / "claude" / "plan-x"
        top.mkdir(parents=True)

        context = CurrentContextResolver(self.root, stub_git(top)).current_context()
        self.assertEqual(context.branch, "branch/claude/plan-x")

    def test_pr_worktree(self):
        top = self.root / "acme" / "pr" / "1234"
        top.mkdir(parents=True)

        context = CurrentContextResolver(self.root, stub_git(top)).current_context()
        self.assertEqual(context, WorktreeContext("acme", "pr/1234"))

    def test_root_reached_through_symlink(self):
        top = self.root / "acme" / "branch" / "x"
        top.mkdir(parents=True)
        link = Path(self.test_dir) / "link"
        os.symlink(self.root, link)

        context = CurrentContextResolver(link, stub_git(top)).current_context()
        self.assertEqual(context, WorktreeContext("acme", "branch/x"))

    def test_outside_root_raises_with_expected_root(self):
        outside = Path(self.test_dir) / "elsewhere"
        outside.mkdir()

        with self.assertRaises(NotInWorktreeError) as ctx:
            CurrentContextResolver(self.root, stub_git(outside)).current_context()

        self.assertEqual(ctx.exception.expected_root, self.root)
        self.assertIn(str(self.root), str(ctx.exception))

    def test_project_directory_is_not_a_worktree(self):
        top = self.root / "acme" / "branch"
        top.mkdir(parents=True)

        with self.assertRaises(NotInWorktreeError):
            CurrentContextResolver(self.root, stub_git(top)).current_context()

    def test_unknown_type_directory_is_not_a_worktree(self):
        top = self.root / "acme" / "feature" / "x"
        top.mkdir(parents=True)

        with self.assertRaises(NotInWorktreeError):
            CurrentContextResolver(self.root, stub_git(top)).current_context()

    def test_git_failure_becomes_not_in_worktree(self):
        client = MagicMock(spec=GitClient)
        client.show_toplevel.side_effect = GitCommandError("not a git repository", 128)

        with self.assertRaises(NotInWorktreeError):
            CurrentContextResolver(self.root, client).current_context()

    def test_match_hierarchy_is_pure(self):
        root = Path("/w")
        self.assertEqual(
            CurrentContextResolver.match_hierarchy(root, Path("/w/acme/pr/7")),
            WorktreeContext("acme", "pr/7")
        )
        self.assertIsNone(CurrentContextResolver.match_hierarchy(root, Path("/w")))
        self.assertIsNone(CurrentContextResolver.match_hierarchy(root, Path("/other/acme/pr/7")))


class TestGitClient(unittest.TestCase):
    """Test the git executable boundary"""

    @patch('ghwt.git.git_client.SystemUtils.run_command')
    def test_show_toplevel(self, mock_run):
        mock_run.return_value = (0, "/w/acme/branch/x\n", "")

        self.assertEqual(GitClient().show_toplevel(cwd="/tmp"), Path("/w/acme/branch/x"))
        mock_run.assert_called_once_with(["git", "rev-parse", "--show-toplevel"], cwd="/tmp")

    @patch('ghwt.git.git_client.SystemUtils.run_command')
    def test_missing_git(self, mock_run):
        mock_run.return_value = (127, "", "")

        with self.assertRaises(GitCommandError) as ctx:
            GitClient().show_toplevel()
        self.assertIn("git command not found", str(ctx.exception))

    @patch('ghwt.git.git_client.SystemUtils.run_command')
    def test_not_a_repository(self, mock_run):
        mock_run.return_value = (128, "", "fatal: not a git repository\n")

        with self.assertRaises(GitCommandError) as ctx:
            GitClient().show_toplevel()
        self.assertEqual(ctx.exception.returncode, 128)
        self.assertEqual(str(ctx.exception), "fatal: not a git repository")


class TestBranchResolver(unittest.TestCase):
    """Test branch name and PR number resolution"""

    def setUp(self):
        self.test_dir = tempfile.mkdtemp()
        self.root = Path(self.test_dir)
        self.resolver = BranchResolver(self.root)

    def tearDown(self):
        shutil.rmtree(self.test_dir)

    def test_pr_number_with_worktree(self):
        (self.root / "acme" / "pr" / "1234").mkdir(parents=True)
        self.assertEqual(self.resolver.resolve("acme", "1234"), "pr/1234")

    def test_pr_number_without_worktree(self):
        (self.root / "acme").mkdir()
        self.assertEqual(self.resolver.resolve("acme", "1234"), "1234")

    def test_digits_never_resolve_to_branch(self):
        (self.root / "acme" / "branch" / "1234").mkdir(parents=True)
        self.assertEqual(self.resolver.resolve("acme", "1234"), "1234")

    def test_branch_exact_match(self):
        (self.root / "acme" / "branch" / "cool-feature").mkdir(parents=True)
        self.assertEqual(self.resolver.resolve("acme", "cool-feature"), "branch/cool-feature")

    def test_nested_branch_match(self):
        (self.root / "acme" / "branch" / "claude" / "plan").mkdir(parents=True)
        self.assertEqual(self.resolver.resolve("acme", "claude/plan"), "branch/claude/plan")

    def test_normalized_name_match(self):
        (self.root / "acme" / "branch" / "claude-plan").mkdir(parents=True)
        self.assertEqual(self.resolver.resolve("acme", "claude/plan"), "branch/claude/plan")

    def test_prefixed_input_returned_unchanged(self):
        for raw in ["branch/x", "pr/12", "feature/x", "bug/y"]:
            with self.subTest(raw=raw):
                self.assertEqual(self.resolver.resolve("acme", raw), raw)

    def test_unknown_project_returns_input(self):
        self.assertEqual(self.resolver.resolve("ghost", "anything"), "anything")

    def test_no_match_returns_input(self):
        (self.root / "acme" / "branch").mkdir(parents=True)
        self.assertEqual(self.resolver.resolve("acme", "missing"), "missing")


if __name__ == '__main__':
    unittest.main()
