"""
Session Layout Module

Declarative description of a multiplexer session: tabs contain windows,
windows contain panes. Older configs list windows directly; those are
wrapped in a single tab named "default" by normalize().
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..core.errors import LayoutError

DEFAULT_TAB_NAME = "default"
ZELLIJ_UI_MODES = ["full", "compact", "none"]
TEMPLATE_KEYS = ("worktree_path", "project", "branch")


@dataclass
class WindowConfig:
    """A window: a working directory, setup commands and one command per pane."""
    name: str
    root: Optional[str] = None
    pre: List[str] = field(default_factory=list)
    panes: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WindowConfig':
        return cls(
            name=data["name"],
            root=data.get("root"),
            pre=list(data.get("pre") or []),
            panes=list(data.get("panes") or []),
        )


@dataclass
class TabConfig:
    name: str
    windows: List[WindowConfig] = field(default_factory=list)
    pre: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TabConfig':
        return cls(
            name=data["name"],
            windows=[WindowConfig.from_dict(w) for w in data.get("windows") or []],
            pre=list(data.get("pre") or []),
        )


@dataclass
class ZellijUIConfig:
    """Which zellij bars surround every tab."""
    mode: str = "full"


@dataclass
class SessionConfig:
    """
    A session layout as written in .ghwt-session.{yaml,yml,json}.

    Exactly one of tabs or windows is expected to be set. root is accepted
    for compatibility and ignored; sessions always start in the worktree.
    """
    name: str
    root: Optional[str] = None
    pre: List[str] = field(default_factory=list)
    tabs: Optional[List[TabConfig]] = None
    windows: Optional[List[WindowConfig]] = None
    zellij_ui: ZellijUIConfig = field(default_factory=ZellijUIConfig)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SessionConfig':
        """Build from already-validated data."""
        tabs = data.get("tabs")
        windows = data.get("windows")
        zellij_ui = data.get("zellij_ui") or {}
        return cls(
            name=data["name"],
            root=data.get("root"),
            pre=list(data.get("pre") or []),
            tabs=[TabConfig.from_dict(t) for t in tabs] if tabs is not None else None,
            windows=[WindowConfig.from_dict(w) for w in windows] if windows is not None else None,
            zellij_ui=ZellijUIConfig(mode=zellij_ui.get("mode") or "full"),
        )


@dataclass
class NormalizedLayout:
    """A layout in tab form, ready for a backend to build."""
    pre: List[str]
    tabs: List[TabConfig]


@dataclass(frozen=True)
class TemplateVars:
    """Values substituted into commands and window roots."""
    worktree_path: str
    project: str
    branch: str

    @classmethod
    def from_session_name(cls, session_name: str, worktree_path: Union[str, Path]) -> 'TemplateVars':
        """
        Derive project and branch by splitting the session name at the first
        hyphen. Only used when the caller does not know them; a project name
        containing a hyphen is split wrongly.
        """
        project, _, branch = session_name.partition("-")
        return cls(worktree_path=str(worktree_path), project=project, branch=branch)

    def as_dict(self) -> Dict[str, str]:
        return {key: getattr(self, key) for key in TEMPLATE_KEYS}


def normalize(config: SessionConfig) -> NormalizedLayout:
    """
    Convert a session config to tab form.

    Args:
        config: Session config with either tabs or legacy windows

    Returns:
        NormalizedLayout; legacy windows become one tab named "default"

    Raises:
        LayoutError: if neither form is present or a tab has no windows
    """
    if config.tabs:
        for tab in config.tabs:
            if not tab.windows:
                raise LayoutError(f"Tab '{tab.name}' must have at least one window")
        return NormalizedLayout(pre=list(config.pre), tabs=list(config.tabs))

    if config.windows:
        tab = TabConfig(name=DEFAULT_TAB_NAME, windows=list(config.windows))
        return NormalizedLayout(pre=list(config.pre), tabs=[tab])

    raise LayoutError(f"Session '{config.name}' must define either 'tabs' or 'windows'")


def substitute_variables(template: str, variables: TemplateVars) -> str:
    """
    Replace {worktree_path}, {project} and {branch} in template.

    The double-brace spelling {{worktree_path}} is replaced as well.
    """
    result = template
    for key, value in variables.as_dict().items():
        result = result.replace("{{" + key + "}}", value)
        result = result.replace("{" + key + "}", value)
    return result


def cascade_pre_commands(layout: NormalizedLayout, tab: TabConfig, window: WindowConfig) -> List[str]:
    """Session, tab and window pre-commands, in that order."""
    return list(layout.pre) + list(tab.pre) + list(window.pre)


def window_root(worktree_path: Union[str, Path], window: WindowConfig) -> str:
    """Directory a window starts in: the worktree, or root relative to it."""
    if window.root:
        return os.path.join(str(worktree_path), window.root)
    return str(worktree_path)
