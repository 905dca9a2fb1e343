"""
Path Model Module

Pure functions describing the worktree hierarchy:

    {worktrees_root}/{project}/{branch|pr}/{name...}

plus the derived names used elsewhere (note files, session names).
No function in this module touches the filesystem.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from .errors import InvalidBranchError

BRANCH_TYPES = ("branch", "pr")

# Prefixes accepted by the loose parser. "feature/" and "bug/" are the
# pre-hierarchy spellings of "branch/".
LEGACY_BRANCH_PREFIXES = ("feature/", "bug/")
KNOWN_PREFIXES = LEGACY_BRANCH_PREFIXES + ("branch/", "pr/")

_VALID_BRANCH_NAME = re.compile(r'[A-Za-z0-9\-_/]+')
_PR_NUMBER = re.compile(r'[0-9]+')


@dataclass(frozen=True)
class BranchRef:
    """A branch reference split into its hierarchy type and name."""
    branch_type: str
    name: str

    @property
    def ref(self) -> str:
        return f"{self.branch_type}/{self.name}"


@dataclass(frozen=True)
class WorktreeInfo:
    """A worktree found on disk."""
    project: str
    branch: str
    path: Path

    @property
    def display_name(self) -> str:
        return f"{self.project}: {self.branch}"


def worktree_path(root: Union[str, Path], project: str, branch_type: str, name: str) -> Path:
    """
    Build the on-disk location of a worktree.

    Args:
        root: Worktrees root directory
        project: Project (repository) name
        branch_type: "branch" or "pr"
        name: Branch name or PR number; slashes become nested directories

    Returns:
        Path to the worktree directory
    """
    return Path(root) / project / branch_type / name


def is_pr_number(text: str) -> bool:
    """True for a non-empty string of ASCII digits."""
    return _PR_NUMBER.fullmatch(text) is not None


def normalize_branch(text: str) -> str:
    """Replace every slash with a hyphen."""
    return text.replace("/", "-")


def parse_loose_branch_ref(ref: str) -> BranchRef:
    """
    Split a possibly-prefixed branch reference into (type, name).

    "feature/x", "bug/x" and "branch/x" give ("branch", "x"), "pr/12" gives
    ("pr", "12"). Anything else is taken as a branch name as-is.
    """
    if ref.startswith("pr/"):
        return BranchRef("pr", ref[len("pr/"):])
    for prefix in LEGACY_BRANCH_PREFIXES + ("branch/",):
        if ref.startswith(prefix):
            return BranchRef("branch", ref[len(prefix):])
    return BranchRef("branch", ref)


def note_file_name(ref: str) -> str:
    """Note file name for a branch reference; only the name part is kept."""
    return f"{normalize_branch(parse_loose_branch_ref(ref).name)}.md"


def note_path(vault_root: Union[str, Path], project: str, ref: str) -> Path:
    """Location of the note describing a worktree inside the vault."""
    return Path(vault_root) / "projects" / project / "worktrees" / note_file_name(ref)


def session_name(project: str, branch: str) -> str:
    """
    Deterministic multiplexer session name for a worktree.

    The branch-type prefix is dropped so "branch/feat/x" and "feat/x" name
    the same session.
    """
    name = parse_loose_branch_ref(branch).name
    return f"{project}-{normalize_branch(name)}"


def parse_branch_arg(arg: str) -> BranchRef:
    """
    Strictly parse a branch argument given on the command line.

    Args:
        arg: A bare branch name or a PR number

    Returns:
        BranchRef with type "pr" for all-digit input, "branch" otherwise

    Raises:
        InvalidBranchError: for legacy prefixes or invalid characters
    """
    for prefix in LEGACY_BRANCH_PREFIXES + ("pr/",):
        if arg.startswith(prefix):
            raise InvalidBranchError(
                f"Invalid branch format: '{arg}'. Use the bare name "
                f"(e.g. '{arg[len(prefix):]}') instead of the '{prefix}' prefix."
            )

    if is_pr_number(arg):
        return BranchRef("pr", arg)

    if _VALID_BRANCH_NAME.fullmatch(arg):
        return BranchRef("branch", arg)

    raise InvalidBranchError(
        f"Invalid branch name: '{arg}'. Branch names may only contain "
        "letters, numbers, hyphens, underscores and slashes."
    )


def clean_branch_arg(arg: str) -> str:
    """Strip a leading "branch/" from user input."""
    if arg.startswith("branch/"):
        return arg[len("branch/"):]
    return arg


def format_worktree_for_display(info: WorktreeInfo) -> str:
    return info.display_name
