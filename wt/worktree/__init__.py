"""Worktree backend for wt."""

from .branch_manager import BranchManager
from .catalog import ProjectCatalog
from .config import WindowSpec, WorktreeConfig, get_worktree_config
from .errors import (
    CommandFailedError,
    ForbiddenOperationError,
    NotAGitRepositoryError,
    NotFoundError,
    RepositoryNameError,
    SelectionCancelledError,
    WorktreeExistsError,
    WtError,
)
from .models import Branch, Project, Worktree
from .naming import sanitize_branch_name, sanitize_session_name
from .repo_manager import RepositoryManager
from .session_manager import SessionManager, TmuxDriver, session_candidates
from .worktree_manager import WorktreeManager

__all__ = [
    "Branch",
    "Project",
    "Worktree",
    "WindowSpec",
    "WorktreeConfig",
    "get_worktree_config",
    "BranchManager",
    "ProjectCatalog",
    "RepositoryManager",
    "SessionManager",
    "TmuxDriver",
    "WorktreeManager",
    "session_candidates",
    "sanitize_branch_name",
    "sanitize_session_name",
    "WtError",
    "CommandFailedError",
    "ForbiddenOperationError",
    "NotAGitRepositoryError",
    "NotFoundError",
    "RepositoryNameError",
    "SelectionCancelledError",
    "WorktreeExistsError",
]
