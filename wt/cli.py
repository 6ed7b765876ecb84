"""wt - git worktree manager with tmux and editor handoff."""

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import tomli_w

from . import __version__
from .editor import EditorError, get_editor_command, open_in_editor
from .selector import SelectorItem, select
from .worktree.branch_manager import BranchManager
from .worktree.catalog import ProjectCatalog
from .worktree.config import (
    WorktreeConfig,
    get_config_path,
    get_local_config_path,
    get_worktree_config,
    save_config,
)
from .worktree.errors import (
    CommandFailedError,
    ForbiddenOperationError,
    NotAGitRepositoryError,
    NotFoundError,
    WorktreeExistsError,
    WtError,
)
from .worktree.models import Branch, Project, Worktree
from .worktree.naming import sanitize_branch_name
from .worktree.repo_manager import RepositoryManager
from .worktree.session_manager import SessionManager
from .worktree.worktree_manager import WorktreeManager

logger = logging.getLogger(__name__)

CONFIRMATION_WORD = "yes"


@dataclass
class Context:
    """Configuration and managers shared by every command."""

    config: WorktreeConfig
    repo_manager: RepositoryManager
    worktree_manager: WorktreeManager
    catalog: ProjectCatalog
    branch_manager: BranchManager
    session_manager: SessionManager
    use_editor: bool = True
    use_tmux: bool = True

    @classmethod
    def create(
        cls,
        config: WorktreeConfig,
        repo_manager: Optional[RepositoryManager] = None,
        use_editor: bool = True,
        use_tmux: bool = True,
    ) -> "Context":
        """Build every manager from one loaded configuration."""
        repo_manager = repo_manager or RepositoryManager()
        worktree_manager = WorktreeManager(config, repo_manager)
        return cls(
            config=config,
            repo_manager=repo_manager,
            worktree_manager=worktree_manager,
            catalog=ProjectCatalog(worktree_manager),
            branch_manager=BranchManager(repo_manager.cwd),
            session_manager=SessionManager(windows=config.windows),
            use_editor=use_editor,
            use_tmux=use_tmux,
        )

    def require_project(self) -> str:
        """Resolve the current repository's project name or fail."""
        if not self.repo_manager.is_repository():
            raise NotAGitRepositoryError()
        return self.repo_manager.get_project_name()


def setup_logging(verbose: bool = False) -> None:
    """Configure logging to stderr."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


def confirm(prompt: str) -> str:
    """Read one line of confirmation input, empty on EOF."""
    try:
        return input(prompt).strip()
    except EOFError:
        return ""


def open_worktree(ctx: Context, project: str, worktree: str, path: Path) -> None:
    """Hand a worktree over to tmux and the editor."""
    print(f"Opening worktree: {project}/{worktree}")

    if ctx.use_tmux and ctx.session_manager.driver.is_installed():
        command = get_editor_command(path) if ctx.use_editor else None
        try:
            outcome = ctx.session_manager.ensure_session(project, worktree, path, command)
        except CommandFailedError as e:
            logger.warning(f"tmux handoff failed: {e}")
            return
        action = "created" if outcome.created else "reused"
        print(f"Tmux session '{outcome.name}' {action}")
        return

    if ctx.use_editor:
        try:
            open_in_editor(path)
        except EditorError as e:
            logger.warning(str(e))
        else:
            print("Opened in editor")


def worktree_items(worktrees: List[Worktree]) -> List[SelectorItem]:
    """Build selector items for worktrees."""
    return [
        SelectorItem(
            title=worktree.name,
            description=f"[{worktree.branch}] {worktree.path}",
            filter_key=worktree.name,
            value=worktree,
        )
        for worktree in worktrees
    ]


def project_items(projects: List[Project]) -> List[SelectorItem]:
    """Build selector items for projects."""
    items = []
    for project in projects:
        count = len(project.worktrees)
        items.append(
            SelectorItem(
                title=project.name,
                description=f"({count} worktree{'s' if count != 1 else ''})",
                filter_key=project.name,
                value=project,
            )
        )
    return items


def branch_items(branches: List[Branch]) -> List[SelectorItem]:
    """Build selector items for branches."""
    return [
        SelectorItem(
            title=branch.name,
            description=f"[{branch.location}]",
            filter_key=branch.name,
            value=branch.name,
        )
        for branch in branches
    ]


def cmd_list(ctx: Context, args: argparse.Namespace) -> int:
    """List worktrees of the current project, or of all projects."""
    rows: List[Tuple[str, Worktree]] = []
    if args.all:
        for project in ctx.catalog.list_projects():
            rows.extend((project.name, worktree) for worktree in project.worktrees)
    else:
        project_name = ctx.require_project()
        rows = [(project_name, wt) for wt in ctx.worktree_manager.list_worktrees(project_name)]

    if args.json:
        print(json.dumps([worktree.to_dict(project) for project, worktree in rows], indent=2))
        return 0

    if args.path_only:
        for _, worktree in rows:
            print(worktree.path)
        return 0

    if not rows:
        if args.all:
            print("No projects with worktrees found")
            print(f"Worktree base directory: {ctx.worktree_manager.base_dir}")
        else:
            print(f"No worktrees found for repository '{project_name}'")
            print(f"Worktree directory: {ctx.worktree_manager.get_project_dir(project_name)}")
        return 0

    if args.all:
        for project, worktree in rows:
            print(f"  {project}/{worktree.name} -> {worktree.path}")
    else:
        print(f"Worktrees for repository '{project_name}':")
        for _, worktree in rows:
            print(f"  {worktree.name} -> {worktree.path}")
    return 0


def cmd_new(ctx: Context, args: argparse.Namespace) -> int:
    """Create a new branch and a worktree for it."""
    project = ctx.require_project()

    name = args.name or confirm("Enter worktree name: ")
    if not name:
        raise WtError("worktree name cannot be empty")

    worktree_name = sanitize_branch_name(name)
    existing = ctx.worktree_manager.find_worktree(project, worktree_name)
    if existing:
        raise WorktreeExistsError(existing.name, str(existing.path))

    print(f"Creating branch '{name}'...")
    ctx.branch_manager.create_branch(name, args.source)

    print(f"Creating worktree '{worktree_name}'...")
    path = ctx.worktree_manager.create_worktree(project, worktree_name, name)
    print(f"Worktree created at: {path}")

    open_worktree(ctx, project, worktree_name, path)
    return 0


def cmd_checkout(ctx: Context, args: argparse.Namespace) -> int:
    """Create a worktree for an existing local or remote branch."""
    project = ctx.require_project()

    print("Fetching remote branches...")
    try:
        ctx.branch_manager.fetch_remotes()
    except CommandFailedError as e:
        logger.warning(f"Continuing with cached remote branches: {e}")

    branch = args.branch
    if not branch:
        try:
            current = ctx.branch_manager.get_current_branch()
        except CommandFailedError:
            current = None
        branches = [b for b in ctx.branch_manager.list_branches() if b.name != current]
        if not branches:
            raise NotFoundError("no other branches available")
        branch = select(
            branch_items(branches),
            "Select branch",
            header="Select a branch to checkout as worktree",
        )

    existing = ctx.worktree_manager.find_worktree_for_branch(project, branch)
    if existing:
        print(f"A worktree already exists for branch '{branch}' at:")
        print(f"  {existing.path}")
        answer = confirm("Would you like to switch to it? (y/n) ").lower()
        if answer in ("y", "yes"):
            open_worktree(ctx, project, existing.name, existing.path)
        else:
            print("Cancelled")
        return 0

    worktree_name = sanitize_branch_name(branch)
    print(f"Creating worktree '{worktree_name}' for branch '{branch}'...")
    path = ctx.worktree_manager.create_worktree(project, worktree_name, branch)
    print(f"Worktree created at: {path}")

    open_worktree(ctx, project, worktree_name, path)
    return 0


def cmd_switch(ctx: Context, args: argparse.Namespace) -> int:
    """Switch to a worktree of the current project."""
    project = ctx.require_project()
    worktrees = ctx.worktree_manager.list_worktrees(project)
    if not worktrees:
        raise NotFoundError(
            f"no worktrees found for repository '{project}', use 'wt new' to create one"
        )

    if args.name:
        worktree = ctx.worktree_manager.find_worktree(project, args.name)
        if worktree is None:
            available = ", ".join(wt.name for wt in worktrees)
            raise NotFoundError(f"worktree '{args.name}' not found (available: {available})")
    else:
        worktree = select(worktree_items(worktrees), "Select worktree")

    open_worktree(ctx, project, worktree.name, worktree.path)
    return 0


def cmd_open(ctx: Context, args: argparse.Namespace) -> int:
    """Open a worktree of any project."""
    projects = ctx.catalog.list_projects()
    if not projects:
        raise NotFoundError(
            f"no projects with worktrees found in {ctx.worktree_manager.base_dir}"
        )

    if args.project:
        project = next((p for p in projects if p.name == args.project), None)
        if project is None:
            raise NotFoundError(f"project '{args.project}' not found")
    elif not args.all and ctx.repo_manager.is_repository():
        current = ctx.repo_manager.get_project_name()
        project = next((p for p in projects if p.name == current), None)
        if project is None:
            raise NotFoundError(f"no worktrees found for repository '{current}'")
    elif len(projects) == 1:
        project = projects[0]
        print(f"Project: {project.name}")
    else:
        project = select(
            project_items(projects),
            "Select project",
            header="Select a project to browse worktrees",
        )

    if len(project.worktrees) == 1:
        worktree = project.worktrees[0]
        print(f"Worktree: {worktree.name}")
    else:
        worktree = select(
            worktree_items(project.worktrees),
            "Select worktree",
            header=f"Select a worktree from {project.name}",
        )

    open_worktree(ctx, project.name, worktree.name, worktree.path)
    return 0


def cmd_delete(ctx: Context, args: argparse.Namespace) -> int:
    """Delete a worktree and its tmux session."""
    project = ctx.require_project()
    worktrees = ctx.worktree_manager.list_worktrees(project)
    if not worktrees:
        raise NotFoundError("no worktrees found")

    if args.name:
        worktree = ctx.worktree_manager.find_worktree(project, args.name)
        if worktree is None:
            raise NotFoundError(f"worktree '{args.name}' not found")
    else:
        worktree = select(
            worktree_items(worktrees),
            "Select worktree to delete",
            header="WARNING: Selected worktree will be permanently deleted",
        )

    if ctx.repo_manager.is_main_worktree(worktree.path):
        raise ForbiddenOperationError("cannot delete the main repository worktree")

    if not args.force:
        print("\nWorktree Deletion Confirmation")
        print(f"Worktree:    {worktree.name}")
        print(f"Branch:      {worktree.branch}")
        print(f"Path:        {worktree.path}")
        print("\nWARNING: This will permanently remove:")
        print("   - The worktree directory and all its contents")
        print("   - Any uncommitted changes in this worktree")
        print("   - Associated tmux session (if exists)")
        if confirm(f"\nType '{CONFIRMATION_WORD}' to confirm deletion: ") != CONFIRMATION_WORD:
            print("Deletion cancelled")
            return 0

    if ctx.use_tmux and ctx.session_manager.driver.is_installed():
        try:
            killed = ctx.session_manager.kill_session(project, worktree.name)
        except CommandFailedError as e:
            logger.warning(f"Failed to kill tmux session: {e}")
        else:
            if killed:
                print(f"Killed tmux session: {killed}")

    print(f"Deleting worktree '{worktree.name}'...")
    ctx.worktree_manager.remove_worktree(worktree.path)
    print(f"Worktree '{worktree.name}' has been deleted successfully")
    return 0


def ctx_local_dir(ctx: Context) -> Optional[Path]:
    """Directory searched for the local config file."""
    try:
        return ctx.repo_manager.get_toplevel()
    except WtError:
        return None


def cmd_config(ctx: Context, args: argparse.Namespace) -> int:
    """Show or initialize configuration."""
    if args.path:
        print(f"Global config: {get_config_path()}")
        print(f"Local config:  {get_local_config_path(ctx_local_dir(ctx))}")
        return 0

    if args.init:
        config_path = get_config_path()
        if config_path.exists():
            print(f"Config file already exists: {config_path}")
            return 0
        save_config(WorktreeConfig().to_dict(), config_path)
        print(f"Wrote default config to {config_path}")
        return 0

    print(tomli_w.dumps(ctx.config.to_dict()), end="")
    return 0


COMMANDS = {
    "list": cmd_list,
    "new": cmd_new,
    "checkout": cmd_checkout,
    "switch": cmd_switch,
    "open": cmd_open,
    "delete": cmd_delete,
    "config": cmd_config,
}


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="wt",
        description="Manage git worktrees with tmux session and editor integration.",
    )
    parser.add_argument("--version", action="version", version=f"wt {__version__}")
    parser.add_argument("--no-editor", action="store_true", help="do not open the editor")
    parser.add_argument("--no-tmux", action="store_true", help="do not use tmux sessions")
    parser.add_argument("-v", "--verbose", action="store_true", help="show debug logging")

    subparsers = parser.add_subparsers(dest="command", metavar="command")
    subparsers.required = True

    list_parser = subparsers.add_parser("list", help="list worktrees")
    list_parser.add_argument("--all", action="store_true", help="list worktrees of all projects")
    output = list_parser.add_mutually_exclusive_group()
    output.add_argument("--json", action="store_true", help="print JSON")
    output.add_argument("--path-only", action="store_true", help="print worktree paths only")

    new_parser = subparsers.add_parser("new", help="create a worktree with a new branch")
    new_parser.add_argument("name", nargs="?", help="branch and worktree name")
    new_parser.add_argument(
        "--from", dest="source", metavar="BRANCH", help="start the branch from BRANCH"
    )

    checkout_parser = subparsers.add_parser(
        "checkout", help="create a worktree from an existing branch"
    )
    checkout_parser.add_argument("branch", nargs="?", help="local or remote branch name")

    switch_parser = subparsers.add_parser("switch", help="switch to a worktree")
    switch_parser.add_argument("name", nargs="?", help="worktree name")

    open_parser = subparsers.add_parser("open", help="open a worktree of any project")
    open_parser.add_argument("--all", action="store_true", help="choose among all projects")
    open_parser.add_argument("--project", help="project to open a worktree of")

    delete_parser = subparsers.add_parser("delete", help="delete a worktree")
    delete_parser.add_argument("name", nargs="?", help="worktree name")
    delete_parser.add_argument("--force", action="store_true", help="skip confirmation")

    config_parser = subparsers.add_parser("config", help="show configuration")
    config_parser.add_argument("--init", action="store_true", help="write a default config file")
    config_parser.add_argument("--path", action="store_true", help="print config file locations")

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    repo_manager = RepositoryManager()
    local_dir = None
    if repo_manager.is_repository():
        try:
            local_dir = repo_manager.get_toplevel()
        except WtError as e:
            logger.debug(f"No repository top level: {e}")

    config = get_worktree_config(local_dir)
    ctx = Context.create(
        config,
        repo_manager,
        use_editor=not args.no_editor,
        use_tmux=not args.no_tmux,
    )

    try:
        return COMMANDS[args.command](ctx, args)
    except (WtError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    sys.exit(main())
