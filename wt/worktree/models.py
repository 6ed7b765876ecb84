"""Data models for worktree backend."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from .git import get_worktree_branch


@dataclass
class Branch:
    """A branch known locally, on a remote, or both."""

    name: str
    is_local: bool = False
    is_remote: bool = False

    @property
    def location(self) -> str:
        """Short label describing where the branch exists."""
        if self.is_local and self.is_remote:
            return "local+remote"
        if self.is_local:
            return "local"
        return "remote"


@dataclass
class Worktree:
    """Represents a worktree directory under a project.

    The checked-out branch is not stored anywhere: it is read from the
    working directory the first time ``branch`` is accessed.
    """

    name: str
    path: Path
    branch_name: Optional[str] = field(default=None, compare=False, repr=False)

    @property
    def branch(self) -> str:
        """Branch currently checked out in this worktree."""
        if self.branch_name is None:
            self.branch_name = get_worktree_branch(self.path)
        return self.branch_name

    def to_dict(self, project: str) -> Dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "project": project,
            "name": self.name,
            "path": str(self.path),
            "branch": self.branch,
        }


@dataclass
class Project:
    """All worktrees belonging to one repository."""

    name: str
    path: Path
    worktrees: List[Worktree] = field(default_factory=list)
