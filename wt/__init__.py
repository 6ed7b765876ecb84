"""wt - git worktree manager with tmux and editor integration."""

__version__ = "0.1.0"
