"""
Current Context Resolver Module

Answers "which worktree am I standing in" for commands run with --this.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..core.errors import NotInWorktreeError
from ..core.paths import BRANCH_TYPES
from .git_client import GitClient, GitCommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorktreeContext:
    """Project and branch of the worktree containing the current directory."""
    project: str
    branch: str


class CurrentContextResolver:
    """
    Maps the git top-level of the current directory onto the hierarchy.

    Both the top-level reported by git and the configured root are resolved
    through symlinks before comparison, so a root reached through a link
    still matches.
    """

    def __init__(self, worktrees_root: Union[str, Path], git_client: Optional[GitClient] = None):
        """
        Args:
            worktrees_root: Hierarchy root ({projects_root}/{worktrees_dir})
            git_client: Client used for rev-parse; a default GitClient if omitted
        """
        self.worktrees_root = Path(worktrees_root)
        self.git_client = git_client or GitClient()

    def current_context(self, cwd: Optional[Union[str, Path]] = None) -> WorktreeContext:
        """
        Detect the worktree containing cwd.

        Args:
            cwd: Directory to resolve from; defaults to the process cwd

        Returns:
            WorktreeContext with project and "branch|pr/name" branch

        Raises:
            NotInWorktreeError: for any failure, including git being missing
        """
        root = Path(os.path.realpath(self.worktrees_root))

        try:
            toplevel = self.git_client.show_toplevel(cwd=cwd)
        except GitCommandError as e:
            logger.debug(f"git rev-parse failed: {e}")
            raise NotInWorktreeError(root, str(e)) from e

        current = Path(os.path.realpath(toplevel))
        context = self.match_hierarchy(root, current)
        if context is None:
            raise NotInWorktreeError(root)

        logger.debug(f"Resolved {current} to {context.project} {context.branch}")
        return context

    @staticmethod
    def match_hierarchy(root: Path, path: Path) -> Optional[WorktreeContext]:
        """
        Walk from path up towards root looking for {project}/{type}/{name...}.

        Both arguments must already be symlink-resolved.

        Returns:
            The matching context or None if path is not inside a worktree
        """
        current = path
        while current == root or root in current.parents:
            parts = current.relative_to(root).parts
            if len(parts) >= 3 and parts[1] in BRANCH_TYPES:
                return WorktreeContext(
                    project=parts[0],
                    branch=f"{parts[1]}/{'/'.join(parts[2:])}"
                )

            if current.parent == current:
                break
            current = current.parent

        return None
