"""
Error Types Module

Exception hierarchy shared by the worktree resolver and the session backends.
"Not found" outcomes are reported with False/None return values; the types
below cover the failures a caller has to act on.
"""

from pathlib import Path
from typing import List, Optional, Sequence, Union


class GhwtError(Exception):
    """Base class for all ghwt errors"""
    pass


class ConfigError(GhwtError):
    """Raised when a global or session configuration is invalid"""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        self.errors = list(errors or [])
        if self.errors:
            message = message + ":\n" + "\n".join(f"  • {error}" for error in self.errors)
        super().__init__(message)


class LayoutError(ConfigError):
    """Raised when a session layout cannot be normalized"""
    pass


class InvalidBranchError(GhwtError, ValueError):
    """Raised when a command-line branch argument is malformed"""
    pass


class NotInWorktreeError(GhwtError):
    """
    Raised when the current directory is not inside a managed worktree.

    Carries the hierarchy root so the message can tell the user where
    worktrees are expected to live.
    """

    def __init__(self, expected_root: Union[str, Path], reason: Optional[str] = None):
        self.expected_root = Path(expected_root)
        self.reason = reason
        message = (
            "Not in a worktree directory. "
            f"Expected to be in: {self.expected_root}/<project>/<branch|pr>/<name>"
        )
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class SessionNotFoundError(GhwtError):
    """Raised when attaching to a session that does not exist"""

    def __init__(self, session_name: str):
        self.session_name = session_name
        super().__init__(
            f"Session '{session_name}' does not exist. "
            "Create it first by opening the worktree."
        )


class SessionOperationError(GhwtError):
    """Raised when a multiplexer command fails while building a session"""

    def __init__(self,
                 message: str,
                 command: Optional[Sequence[str]] = None,
                 returncode: Optional[int] = None,
                 stderr: str = ""):
        self.command = list(command or [])
        self.returncode = returncode
        self.stderr = stderr
        details = message
        if self.command:
            details += f" [{' '.join(self.command)}]"
        if returncode is not None:
            details += f" (exit {returncode})"
        if stderr:
            details += f": {stderr.strip()}"
        super().__init__(details)
