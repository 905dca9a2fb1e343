"""
ghwt - Git Worktree Hierarchy and Terminal Sessions

Manages isolated worktrees laid out as

    {worktrees_root}/{project}/{branch|pr}/{name...}

and binds each one to a declaratively configured tmux or zellij session.

This package provides:
- Path model: worktree paths, branch references, session and note names
- Worktree discovery, current-worktree detection and branch resolution
- Session layouts with cascading pre-commands and template variables
- tmux and zellij backends behind one session manager interface
"""

from .core.errors import (
    GhwtError, ConfigError, LayoutError, InvalidBranchError,
    NotInWorktreeError, SessionNotFoundError, SessionOperationError
)
from .core.paths import (
    BranchRef, WorktreeInfo, worktree_path, parse_loose_branch_ref,
    note_file_name, note_path, session_name, parse_branch_arg
)
from .core.config import GhwtConfig, load_config, save_config

from .git.git_client import GitClient, GitCommandError
from .git.worktree_discovery import list_worktrees
from .git.context_resolver import CurrentContextResolver, WorktreeContext
from .git.branch_resolver import BranchResolver

from .terminal.layout import (
    SessionConfig, TabConfig, WindowConfig, NormalizedLayout, TemplateVars,
    normalize, substitute_variables
)
from .terminal.session_config import find_session_config, load_session_config
from .terminal.base import SessionManager, AttachOptions, shorten_session_name
from .terminal.tmux_backend import TmuxBackend
from .terminal.zellij_backend import ZellijBackend
from .terminal.launcher import get_session_manager, launch_session, attach_session

__version__ = "0.1.0"
__description__ = "Git worktree hierarchy and terminal session manager"

__all__ = [
    # Errors
    'GhwtError', 'ConfigError', 'LayoutError', 'InvalidBranchError',
    'NotInWorktreeError', 'SessionNotFoundError', 'SessionOperationError',

    # Path model
    'BranchRef', 'WorktreeInfo', 'worktree_path', 'parse_loose_branch_ref',
    'note_file_name', 'note_path', 'session_name', 'parse_branch_arg',

    # Configuration
    'GhwtConfig', 'load_config', 'save_config',

    # Worktree resolution
    'GitClient', 'GitCommandError',
    'list_worktrees',
    'CurrentContextResolver', 'WorktreeContext',
    'BranchResolver',

    # Sessions
    'SessionConfig', 'TabConfig', 'WindowConfig', 'NormalizedLayout', 'TemplateVars',
    'normalize', 'substitute_variables',
    'find_session_config', 'load_session_config',
    'SessionManager', 'AttachOptions', 'shorten_session_name',
    'TmuxBackend', 'ZellijBackend',
    'get_session_manager', 'launch_session', 'attach_session',

    # Package metadata
    '__version__',
    '__description__'
]


def get_version():
    """Get the current version of ghwt."""
    return __version__
