"""Exceptions raised by the worktree backend."""

from typing import Optional, Sequence


class WtError(Exception):
    """Base exception for all wt errors."""


class NotAGitRepositoryError(WtError):
    """Raised when the current directory is not inside a git repository."""

    def __init__(self, path: Optional[str] = None):
        self.path = path
        message = "not in a git repository"
        if path:
            message += f": {path}"
        super().__init__(message)


class RepositoryNameError(WtError):
    """Raised when the project name cannot be derived from the repository."""


class WorktreeExistsError(WtError):
    """Raised when a worktree directory already exists."""

    def __init__(self, name: str, path: str):
        self.name = name
        self.path = path
        super().__init__(f"worktree '{name}' already exists at {path}")


class CommandFailedError(WtError):
    """Raised when an external git or tmux command exits with an error.

    ``output`` holds the command's combined stdout/stderr so the caller can
    show the raw diagnostics.
    """

    def __init__(self, operation: str, command: Sequence[str], output: str = ""):
        self.operation = operation
        self.command = list(command)
        self.output = output.strip()

        message = f"failed to {operation}"
        if self.output:
            message += f": {self.output}"
        super().__init__(message)


class SelectionCancelledError(WtError):
    """Raised when the user cancels an interactive selection."""

    def __init__(self, message: str = "selection cancelled"):
        super().__init__(message)


class NotFoundError(WtError):
    """Raised when a named worktree, project or branch does not exist."""


class ForbiddenOperationError(WtError):
    """Raised when an operation is refused, e.g. deleting the main worktree."""
