"""
Git Client Module

Thin boundary around the git executable. Only the queries the resolver
needs live here; repository-changing operations belong to other tools.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from ..utils.system_utils import SystemUtils

logger = logging.getLogger(__name__)


class GitCommandError(Exception):
    """Raised when a git query fails or git is not installed."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class GitClient:
    """
    Runs read-only git queries.

    Injected into the context resolver so tests can replace it.
    """

    def __init__(self, git_executable: str = "git"):
        self.git_executable = git_executable

    def _run_git(self, args: List[str], cwd: Optional[Union[str, Path]] = None) -> str:
        returncode, stdout, stderr = SystemUtils.run_command([self.git_executable] + args, cwd=cwd)
        if returncode == 127:
            raise GitCommandError(
                "git command not found. Install git and make sure it is on PATH.",
                returncode
            )
        if returncode != 0:
            raise GitCommandError(stderr.strip() or f"git {' '.join(args)} failed", returncode)
        return stdout

    def show_toplevel(self, cwd: Optional[Union[str, Path]] = None) -> Path:
        """
        Get the top-level directory of the working tree containing cwd.

        Args:
            cwd: Directory to ask from; defaults to the process cwd

        Returns:
            Path reported by git rev-parse --show-toplevel

        Raises:
            GitCommandError: if git is missing or cwd is not in a working tree
        """
        output = self._run_git(["rev-parse", "--show-toplevel"], cwd=cwd).strip()
        if not output:
            raise GitCommandError("git rev-parse returned no top-level directory")
        return Path(output)
