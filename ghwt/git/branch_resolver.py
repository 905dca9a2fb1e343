"""
Branch Resolver Module

Turns a bare branch name or PR number typed by the user into its
canonical "branch/<name>" or "pr/<number>" form by looking at what exists
on disk.
"""

import logging
import os
from pathlib import Path
from typing import Union

from ..core.paths import KNOWN_PREFIXES, is_pr_number, normalize_branch

logger = logging.getLogger(__name__)


class BranchResolver:
    """
    Resolves user input against the worktree hierarchy.

    Resolution never fails: when nothing matches, the input comes back
    unchanged and the caller decides what to do with it.
    """

    def __init__(self, worktrees_root: Union[str, Path]):
        self.worktrees_root = Path(worktrees_root)

    def resolve(self, project: str, raw: str) -> str:
        """
        Resolve a branch name for a project.

        Args:
            project: Project name
            raw: User input, e.g. "cool-feature", "1234" or "branch/x"

        Returns:
            "pr/<raw>" or "branch/<raw>" when a matching directory exists,
            otherwise raw unchanged. Already-prefixed input is returned as is.
        """
        if not raw or raw.startswith(KNOWN_PREFIXES):
            return raw

        project_dir = self.worktrees_root / project
        if not os.path.isdir(project_dir):
            logger.debug(f"No worktrees for project {project}")
            return raw

        if is_pr_number(raw):
            if os.path.isdir(project_dir / "pr" / raw):
                return f"pr/{raw}"
            return raw

        branch_dir = project_dir / "branch"
        if os.path.isdir(branch_dir / raw):
            return f"branch/{raw}"

        normalized = normalize_branch(raw)
        if normalized != raw and os.path.isdir(branch_dir / normalized):
            logger.debug(f"Matched {raw} through normalized name {normalized}")
            return f"branch/{raw}"

        return raw
