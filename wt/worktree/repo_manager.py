"""Repository identity for worktree backend."""

import logging
from pathlib import Path
from typing import Optional, Union

from . import git
from .errors import CommandFailedError, NotAGitRepositoryError, RepositoryNameError

logger = logging.getLogger(__name__)


class RepositoryManager:
    """Resolves the git repository the tool was invoked from.

    The project name is derived from the repository's shared git directory
    rather than from the current working tree, so every linked worktree of a
    repository resolves to the same project as its main checkout.
    """

    def __init__(self, cwd: Optional[Union[Path, str]] = None):
        """Initialize repository manager."""
        self.cwd = Path(cwd) if cwd is not None else None

    def is_repository(self) -> bool:
        """Check if the working directory is inside a git repository."""
        return git.is_repository(self.cwd)

    def get_toplevel(self) -> Path:
        """Get the top-level directory of the current working tree."""
        try:
            return git.get_toplevel(self.cwd)
        except CommandFailedError as e:
            raise NotAGitRepositoryError(str(self.cwd or Path.cwd())) from e

    def get_common_dir(self) -> Path:
        """Get the absolute path of the git directory shared by all worktrees."""
        try:
            common_dir = Path(git.get_common_dir(self.cwd))
        except CommandFailedError as e:
            raise NotAGitRepositoryError(str(self.cwd or Path.cwd())) from e

        if not common_dir.is_absolute():
            # Relative output is relative to the working directory, except on
            # older git which prints it relative to the top level
            from_cwd = (self.cwd or Path.cwd()) / common_dir
            common_dir = from_cwd if from_cwd.exists() else self.get_toplevel() / common_dir

        return Path(common_dir).resolve()

    def get_project_name(self) -> str:
        """Get the project name of the repository.

        ``/src/acme/.git`` gives ``acme``; a bare repository ``/src/acme.git``
        also gives ``acme``.
        """
        common_dir = self.get_common_dir()

        if common_dir.name == ".git":
            name = common_dir.parent.name
        elif common_dir.name.endswith(".git"):
            name = common_dir.name[: -len(".git")]
        else:
            name = ""

        if not name:
            raise RepositoryNameError(
                f"unable to determine repository name from git directory {common_dir}"
            )

        logger.debug(f"Resolved project name {name} from {common_dir}")
        return name

    def get_main_repo_path(self) -> Path:
        """Get the top-level directory of the main checkout."""
        common_dir = self.get_common_dir()
        if common_dir.name == ".git":
            return common_dir.parent
        # Bare repository: there is no main working tree
        return common_dir

    def is_main_worktree(self, path: Union[Path, str]) -> bool:
        """Check if ``path`` is the main checkout or the current working tree."""
        target = Path(path).resolve()
        protected = {self.get_main_repo_path().resolve()}
        try:
            protected.add(self.get_toplevel().resolve())
        except NotAGitRepositoryError:
            # Bare repositories have no working tree
            pass
        return target in protected
