"""Worktree manager for worktree backend.

This module manages the on-disk worktree tree for each project.

Directory Structure
-------------------
~/projects/worktrees/          # base_dir (configurable)
└── acme/                      # one directory per project (repository name)
    ├── feat_login/            # worktree for branch feat/login
    │   └── .git               # FILE (not dir) with gitdir pointer
    └── main/

The Filesystem Is The Index
---------------------------
There is no metadata file. Listing a project is a directory scan and every
directory under a project directory is reported as a worktree. The branch of
each worktree is read from git when needed, so renaming or switching branches
inside a worktree never leaves stale records behind.

Branch names and directory names can differ: a worktree for ``feat/login``
lives in ``feat_login``. Lookups by branch re-apply the sanitization instead
of keeping a mapping, and also accept the raw name so worktrees created before
a sanitization change are still found.
"""

import logging
import shutil
from pathlib import Path
from typing import List, Optional, Tuple, Union

from . import git
from .config import WorktreeConfig
from .errors import WorktreeExistsError
from .models import Worktree
from .naming import sanitize_branch_name
from .repo_manager import RepositoryManager

logger = logging.getLogger(__name__)


class WorktreeManager:
    """Manages the worktrees of projects under the configured base directory.

    Worktrees are created at ``base_dir/<project>/<name>/``.
    """

    def __init__(
        self,
        config: WorktreeConfig,
        repo_manager: Optional[RepositoryManager] = None,
    ):
        """Initialize worktree manager."""
        self.config = config
        self.repo_manager = repo_manager or RepositoryManager()

    @property
    def base_dir(self) -> Path:
        """Directory holding one subdirectory per project."""
        return Path(self.config.base_dir)

    def get_project_dir(self, project: str) -> Path:
        """Get the directory holding a project's worktrees."""
        return self.base_dir / project

    def get_worktree_path(self, project: str, name: str) -> Path:
        """Get local path for a worktree."""
        return self.get_project_dir(project) / name

    def list_worktrees(self, project: str) -> List[Worktree]:
        """List all worktrees for a project, sorted case-insensitively.

        Raises:
            OSError: if the project directory exists but cannot be read.
        """
        project_dir = self.get_project_dir(project)
        if not project_dir.exists():
            return []

        worktrees = [
            Worktree(name=entry.name, path=entry)
            for entry in project_dir.iterdir()
            if entry.is_dir()
        ]
        worktrees.sort(key=lambda worktree: worktree.name.lower())
        return worktrees

    def find_worktree(self, project: str, name: str) -> Optional[Worktree]:
        """Find a worktree by directory name, also accepting its sanitized form."""
        candidates = {name, sanitize_branch_name(name)}
        for worktree in self.list_worktrees(project):
            if worktree.name in candidates:
                return worktree
        return None

    def find_worktree_for_branch(self, project: str, branch: str) -> Optional[Worktree]:
        """Find the worktree created for ``branch``, if any."""
        sanitized_branch = sanitize_branch_name(branch)
        try:
            worktrees = self.list_worktrees(project)
        except OSError as e:
            logger.warning(f"Failed to list worktrees for {project}: {e}")
            return None

        for worktree in worktrees:
            if worktree.name in (sanitized_branch, branch):
                return worktree
        return None

    def create_worktree(self, project: str, name: str, branch: str) -> Path:
        """Create a new git worktree named ``name`` with ``branch`` checked out.

        The existence check happens before ``git worktree add`` and is not
        atomic with it. If another process creates the directory in between,
        git's own failure is raised as CommandFailedError.

        Raises:
            WorktreeExistsError: if the worktree directory already exists.
            CommandFailedError: if git fails to create the worktree.
        """
        worktree_path = self.get_worktree_path(project, name)

        if worktree_path.exists():
            raise WorktreeExistsError(name, str(worktree_path))

        # Create parent directory
        worktree_path.parent.mkdir(parents=True, exist_ok=True)

        logger.info(f"Creating worktree for {project}@{branch} at {worktree_path}")
        git.add_worktree(worktree_path, branch, cwd=self.repo_manager.cwd)

        if self.config.copy_files:
            source_root = self.repo_manager.get_main_repo_path()
            _, errors = self.copy_configured_files(worktree_path, source_root)
            if errors:
                logger.warning("Failed to copy some files:\n  %s", "\n  ".join(errors))

        logger.info(f"Successfully created worktree for {project}@{branch}")
        return worktree_path

    def copy_configured_files(
        self, worktree_path: Path, source_root: Path
    ) -> Tuple[List[str], List[str]]:
        """Copy files matching the configured patterns into a new worktree.

        Files keep their path relative to ``source_root`` and their mode.
        Patterns that match nothing are skipped. Absolute patterns are taken
        relative to ``source_root``.

        Returns:
            Tuple of (copied relative paths, error messages)
        """
        copied: List[str] = []
        errors: List[str] = []

        for pattern in self.config.copy_files:
            relative = Path(pattern)
            if relative.is_absolute():
                relative = relative.relative_to(relative.anchor)
            try:
                matches = sorted(source_root.glob(str(relative)))
            except (ValueError, OSError, NotImplementedError) as e:
                errors.append(f"{pattern}: {e}")
                continue

            for source_path in matches:
                if source_path.is_dir():
                    continue
                try:
                    rel_path = source_path.relative_to(source_root)
                    dest_path = worktree_path / rel_path
                    dest_path.parent.mkdir(parents=True, exist_ok=True)
                    shutil.copy(source_path, dest_path)
                except (ValueError, OSError) as e:
                    errors.append(f"{source_path}: {e}")
                    continue

                logger.info(f"Copied: {rel_path}")
                copied.append(str(rel_path))

        return copied, errors

    def remove_worktree(self, path: Union[Path, str]) -> None:
        """Remove a git worktree, discarding uncommitted changes.

        Raises:
            CommandFailedError: if git fails to remove the worktree.
        """
        logger.info(f"Removing worktree at {path}")
        git.remove_worktree(path, force=True, cwd=self.repo_manager.cwd)
        logger.info(f"Successfully removed worktree at {path}")
