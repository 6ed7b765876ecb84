"""Thin wrappers around the git command line.

Every function takes an optional ``cwd`` so callers can target a repository
or worktree other than the process working directory. Failures of commands
that mutate state are raised as :class:`CommandFailedError` carrying git's
combined output; read-only probes return a fallback value instead.
"""

import logging
import subprocess
from pathlib import Path
from typing import List, Optional, Union

from .errors import CommandFailedError

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def run_git(args: List[str], cwd: Optional[PathLike] = None) -> subprocess.CompletedProcess:
    """Run a git command and capture its output without raising on failure.

    Args:
        args: Arguments to pass to git (not including 'git' itself)
        cwd: Directory to run the command in

    Returns:
        CompletedProcess result
    """
    cmd = ["git"] + args
    logger.debug("Running: %s", " ".join(cmd))
    return subprocess.run(
        cmd,
        cwd=str(cwd) if cwd is not None else None,
        capture_output=True,
        text=True,
        check=False,
    )


def _run_checked(operation: str, args: List[str], cwd: Optional[PathLike] = None) -> str:
    """Run a git command, raising CommandFailedError with its output on failure."""
    cmd = ["git"] + args
    try:
        result = subprocess.run(
            cmd,
            cwd=str(cwd) if cwd is not None else None,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as e:
        output = "\n".join(part for part in (e.stderr, e.stdout) if part)
        logger.error(f"Failed to {operation}: {output.strip()}")
        raise CommandFailedError(operation, cmd, output) from e
    except OSError as e:
        raise CommandFailedError(operation, cmd, str(e)) from e

    logger.debug(f"git {args[0]} output: {result.stdout.strip()}")
    return result.stdout


def is_repository(cwd: Optional[PathLike] = None) -> bool:
    """Check whether ``cwd`` is inside a git repository."""
    try:
        return run_git(["rev-parse", "--git-dir"], cwd).returncode == 0
    except OSError:
        return False


def get_common_dir(cwd: Optional[PathLike] = None) -> str:
    """Return the repository's shared git directory, exactly as git prints it."""
    return _run_checked("find git common directory", ["rev-parse", "--git-common-dir"], cwd).strip()


def get_toplevel(cwd: Optional[PathLike] = None) -> Path:
    """Return the top-level directory of the current working tree."""
    output = _run_checked("find repository top level", ["rev-parse", "--show-toplevel"], cwd)
    return Path(output.strip())


def get_current_branch(cwd: Optional[PathLike] = None) -> str:
    """Return the checked-out branch (``HEAD`` when detached)."""
    output = _run_checked("get current branch", ["rev-parse", "--abbrev-ref", "HEAD"], cwd)
    return output.strip()


def create_branch(
    branch: str, start_point: Optional[str] = None, cwd: Optional[PathLike] = None
) -> None:
    """Create a new local branch without checking it out."""
    args = ["branch", branch]
    if start_point:
        args.append(start_point)
    _run_checked(f"create branch {branch}", args, cwd)


def checkout_branch(branch: str, cwd: Optional[PathLike] = None) -> None:
    """Checkout a branch in a repository or worktree."""
    _run_checked(f"checkout branch {branch}", ["checkout", branch], cwd)


def _output_lines(output: str) -> List[str]:
    return [line.strip() for line in output.splitlines() if line.strip()]


def list_local_branches(cwd: Optional[PathLike] = None) -> List[str]:
    """List local branch names."""
    output = _run_checked(
        "list local branches", ["branch", "--format=%(refname:short)"], cwd
    )
    return _output_lines(output)


def list_remote_branches(cwd: Optional[PathLike] = None) -> List[str]:
    """List remote-tracking branch names, e.g. ``origin/main``."""
    output = _run_checked(
        "list remote branches", ["branch", "-r", "--format=%(refname:short)"], cwd
    )
    return _output_lines(output)


def fetch_all(cwd: Optional[PathLike] = None) -> None:
    """Fetch every configured remote."""
    _run_checked("fetch remote branches", ["fetch", "--all"], cwd)


def add_worktree(path: PathLike, branch: str, cwd: Optional[PathLike] = None) -> None:
    """Create a linked worktree at ``path`` with ``branch`` checked out."""
    _run_checked("create worktree", ["worktree", "add", str(path), branch], cwd)


def remove_worktree(path: PathLike, force: bool = True, cwd: Optional[PathLike] = None) -> None:
    """Remove a linked worktree and its directory."""
    args = ["worktree", "remove"]
    if force:
        args.append("--force")
    args.append(str(path))
    _run_checked("remove worktree", args, cwd)


def get_worktree_branch(path: PathLike) -> str:
    """Return the branch checked out in the worktree at ``path``.

    Detached worktrees report ``detached@<short hash>``; when the ref cannot
    be read at all the result is ``unknown``.
    """
    try:
        result = run_git(["-C", str(path), "branch", "--show-current"])
        branch = result.stdout.strip() if result.returncode == 0 else ""
        if not branch:
            # Older git has no --show-current, and detached HEAD prints nothing
            result = run_git(["-C", str(path), "rev-parse", "--abbrev-ref", "HEAD"])
            if result.returncode != 0:
                return "unknown"
            branch = result.stdout.strip()

        if branch == "HEAD":
            result = run_git(["-C", str(path), "rev-parse", "--short", "HEAD"])
            if result.returncode != 0:
                return "detached"
            return f"detached@{result.stdout.strip()}"

        return branch or "unknown"
    except OSError:
        return "unknown"
