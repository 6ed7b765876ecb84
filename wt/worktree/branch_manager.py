"""Branch management for worktree backend."""

import logging
import re
from pathlib import Path
from typing import Dict, List, Optional, Union

from . import git
from .models import Branch

logger = logging.getLogger(__name__)

# Remote-tracking refs look like <remote>/<branch>; the branch part may hold slashes
REMOTE_BRANCH_PATTERN = re.compile(r"^[^/]+/(.+)$")


def strip_remote_prefix(remote_branch: str) -> Optional[str]:
    """Strip the remote name from a remote-tracking branch.

    Returns None for entries that are not branches: ``origin/HEAD`` and the
    bare ``origin`` newer git versions print for it.
    """
    if remote_branch.endswith("/HEAD"):
        return None
    match = REMOTE_BRANCH_PATTERN.match(remote_branch)
    if not match:
        return None
    return match.group(1)


class BranchManager:
    """Manages git branch operations."""

    def __init__(self, cwd: Optional[Union[Path, str]] = None):
        """Initialize branch manager."""
        self.cwd = cwd

    def list_branches(self) -> List[Branch]:
        """List local and remote branches, merged by name.

        A branch that exists both locally and as ``<remote>/<name>`` is
        returned once with both flags set. Local branches sort first.
        """
        branches: Dict[str, Branch] = {}

        for name in git.list_local_branches(self.cwd):
            branches[name] = Branch(name=name, is_local=True)

        for remote_name in git.list_remote_branches(self.cwd):
            name = strip_remote_prefix(remote_name)
            if name is None:
                continue
            if name in branches:
                branches[name].is_remote = True
            else:
                branches[name] = Branch(name=name, is_remote=True)

        return sorted(branches.values(), key=lambda branch: (not branch.is_local, branch.name))

    def branch_exists(self, branch: str) -> bool:
        """Check if a branch exists locally or on a remote."""
        return any(existing.name == branch for existing in self.list_branches())

    def fetch_remotes(self) -> None:
        """Fetch all remotes so remote-tracking branches are current.

        Raises:
            CommandFailedError: if the fetch fails. Callers usually log a
                warning and carry on with the stale remote state.
        """
        logger.info("Fetching remote branches")
        git.fetch_all(self.cwd)

    def get_current_branch(self) -> str:
        """Get the branch checked out in the working directory."""
        return git.get_current_branch(self.cwd)

    def create_branch(self, branch: str, start_point: Optional[str] = None) -> None:
        """Create a new local branch."""
        git.create_branch(branch, start_point, cwd=self.cwd)
        logger.info(f"Created local branch {branch}")

    def checkout_branch(self, branch: str) -> None:
        """Checkout a branch in the working directory."""
        git.checkout_branch(branch, cwd=self.cwd)
