"""Project catalog for worktree backend."""

import logging
from typing import List, Optional

from .models import Project
from .worktree_manager import WorktreeManager

logger = logging.getLogger(__name__)


class ProjectCatalog:
    """Lists every project that has worktrees under the base directory."""

    def __init__(self, worktree_manager: WorktreeManager):
        """Initialize project catalog."""
        self.worktree_manager = worktree_manager

    def list_projects(self) -> List[Project]:
        """List all projects with at least one worktree, sorted case-insensitively.

        Project directories that cannot be read, and projects without any
        worktree, are left out silently. A project whose last worktree was
        just deleted therefore disappears from the listing.
        """
        base_dir = self.worktree_manager.base_dir
        if not base_dir.is_dir():
            return []

        projects = []
        for entry in base_dir.iterdir():
            if not entry.is_dir():
                continue

            try:
                worktrees = self.worktree_manager.list_worktrees(entry.name)
            except OSError as e:
                logger.debug(f"Skipping unreadable project directory {entry}: {e}")
                continue

            if worktrees:
                projects.append(Project(name=entry.name, path=entry, worktrees=worktrees))

        projects.sort(key=lambda project: project.name.lower())
        return projects

    def get_project(self, name: str) -> Optional[Project]:
        """Get a project by name."""
        for project in self.list_projects():
            if project.name == name:
                return project
        return None
