"""Worktree discovery and resolution against the on-disk hierarchy."""
