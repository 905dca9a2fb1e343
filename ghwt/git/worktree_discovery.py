"""
Worktree Discovery Module

Finds every worktree under the hierarchy root:

    {root}/{project}/{branch|pr}/{name...}

A directory is a worktree when it contains a ".git" entry that is a regular
file (linked worktrees have a gitdir pointer file; a main clone has a .git
directory and is not one). Branch names may contain slashes, so anything
else found under a branch-type directory is walked recursively.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from ..core.paths import BRANCH_TYPES, WorktreeInfo

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WorktreeMarker:
    """A directory recognised as a worktree."""
    name: str
    path: Path


@dataclass(frozen=True)
class Intermediate:
    """A directory that groups deeper entries of a slash-containing name."""
    name: str
    path: Path
    children: List[Union['WorktreeMarker', 'Intermediate']] = field(default_factory=list)


ScanNode = Union[WorktreeMarker, Intermediate]


def is_worktree_dir(path: Path) -> bool:
    """True if path has a .git entry that is a regular file."""
    try:
        return (path / ".git").is_file()
    except OSError as e:
        logger.warning(f"Cannot inspect {path}: {e}")
        return False


def _list_subdirectories(path: Path) -> List[os.DirEntry]:
    """
    Subdirectories of path, or [] if it cannot be read.

    Symlinks are not followed, so a link cycle cannot recurse forever.
    """
    try:
        with os.scandir(path) as entries:
            return [entry for entry in entries if entry.is_dir(follow_symlinks=False)]
    except OSError as e:
        logger.warning(f"Skipping unreadable directory {path}: {e}")
        return []


def scan_directory(path: Path, name: str) -> ScanNode:
    """
    Classify one directory below a branch-type root and recurse into it.

    Args:
        path: Directory to classify
        name: Slash-joined name relative to the branch-type root

    Returns:
        WorktreeMarker if path is a worktree, otherwise an Intermediate
        whose children are the scanned subdirectories (empty for a leaf)
    """
    if is_worktree_dir(path):
        return WorktreeMarker(name, path)

    children = [
        scan_directory(Path(entry.path), f"{name}/{entry.name}")
        for entry in _list_subdirectories(path)
    ]
    return Intermediate(name, path, children)


def collect_markers(node: ScanNode) -> List[WorktreeMarker]:
    """Flatten a scan tree into its worktree markers, depth first."""
    if isinstance(node, WorktreeMarker):
        return [node]

    markers = []
    for child in node.children:
        markers.extend(collect_markers(child))
    return markers


def list_worktrees(root: Union[str, Path], filter_project: Optional[str] = None) -> List[WorktreeInfo]:
    """
    List all worktrees under the hierarchy root.

    Args:
        root: Worktrees root directory
        filter_project: Only list worktrees of this project

    Returns:
        WorktreeInfo list sorted by (project, branch). Empty if the root
        does not exist. Unreadable directories are skipped with a warning.
    """
    root = Path(root)
    if not os.path.isdir(root):
        logger.debug(f"Worktrees root does not exist: {root}")
        return []

    worktrees = []
    for project_entry in _list_subdirectories(root):
        project = project_entry.name
        if filter_project and project != filter_project:
            continue

        for type_entry in _list_subdirectories(Path(project_entry.path)):
            branch_type = type_entry.name
            if branch_type not in BRANCH_TYPES:
                continue

            for entry in _list_subdirectories(Path(type_entry.path)):
                node = scan_directory(Path(entry.path), entry.name)
                for marker in collect_markers(node):
                    worktrees.append(WorktreeInfo(
                        project=project,
                        branch=f"{branch_type}/{marker.name}",
                        path=marker.path
                    ))

    worktrees.sort(key=lambda info: (info.project, info.branch))
    logger.debug(f"Found {len(worktrees)} worktrees under {root}")
    return worktrees
