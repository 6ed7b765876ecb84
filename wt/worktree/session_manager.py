"""tmux session management for worktrees.

Session Naming
--------------
A worktree's session is named ``<project>-<worktree>``, sanitized for tmux.
Earlier versions named sessions after the worktree alone, and such sessions
may still be running. Every lookup therefore probes an ordered list of
candidate names, primary name first:

    session_candidates("acme", "feat_login")
    -> ["acme-feat_login", "feat_login"]

The first candidate that exists is reused; a new session is only ever created
under the primary name.

Targets are passed to tmux as ``=<name>`` so that tmux matches the session
name exactly instead of by prefix.
"""

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Union

from .config import WindowSpec
from .errors import CommandFailedError
from .naming import sanitize_session_name

logger = logging.getLogger(__name__)

ATTACHED_EXISTING = "attached-existing"
CREATED_NEW = "created-new"


def primary_session_name(project: str, worktree: str) -> str:
    """Session name used for new sessions."""
    return sanitize_session_name(f"{project}-{worktree}")


def legacy_session_names(worktree: str) -> List[str]:
    """Session names used by older versions, in probing order."""
    return [sanitize_session_name(worktree)]


def session_candidates(project: str, worktree: str) -> List[str]:
    """All names a worktree's session may have, primary name first."""
    candidates: List[str] = []
    for name in [primary_session_name(project, worktree)] + legacy_session_names(worktree):
        if name not in candidates:
            candidates.append(name)
    return candidates


def run_tmux(args: List[str], capture: bool = True) -> subprocess.CompletedProcess:
    """Run a tmux command.

    Args:
        args: Arguments to pass to tmux (not including 'tmux' itself)
        capture: Whether to capture stdout/stderr (attaching must not capture)

    Returns:
        CompletedProcess result
    """
    cmd = ["tmux"] + args
    logger.debug("Running: %s", " ".join(cmd))
    if capture:
        return subprocess.run(cmd, capture_output=True, text=True, check=False)
    return subprocess.run(cmd, check=False)


def _exact(name: str) -> str:
    return f"={name}"


class TmuxDriver:
    """Drives tmux through its command line."""

    def is_installed(self) -> bool:
        """Check if tmux is on PATH."""
        return shutil.which("tmux") is not None

    def inside_tmux(self) -> bool:
        """Check if we are running inside a tmux client."""
        return bool(os.environ.get("TMUX"))

    def _check(self, operation: str, args: List[str]) -> None:
        result = run_tmux(args)
        if result.returncode != 0:
            output = "\n".join(part for part in (result.stderr, result.stdout) if part)
            raise CommandFailedError(operation, ["tmux"] + args, output)

    def session_exists(self, name: str) -> bool:
        """Check if a session with exactly this name exists."""
        return run_tmux(["has-session", "-t", _exact(name)]).returncode == 0

    def create_session(
        self, name: str, directory: Union[Path, str], command: Optional[str] = None
    ) -> None:
        """Create a detached session, optionally running ``command``."""
        args = ["new-session", "-d", "-s", name, "-c", str(directory)]
        if command:
            args.append(command)
        self._check("create tmux session", args)

    def new_window(
        self,
        session: str,
        name: str,
        directory: Union[Path, str],
        command: Optional[str] = None,
    ) -> None:
        """Add a window to an existing session."""
        args = ["new-window", "-d", "-t", f"{_exact(session)}:", "-n", name, "-c", str(directory)]
        if command:
            args.append(command)
        self._check("create tmux window", args)

    def send_keys(self, name: str, command: str) -> None:
        """Type ``command`` into the session's active pane and press Enter."""
        self._check(
            "send command to tmux session",
            ["send-keys", "-t", f"{_exact(name)}:", command, "Enter"],
        )

    def switch_or_attach(self, name: str) -> None:
        """Switch the current client to the session, or attach to it.

        Attaching from outside tmux hands the terminal over and blocks until
        the user detaches.
        """
        if self.inside_tmux():
            self._check("switch to tmux session", ["switch-client", "-t", _exact(name)])
            return

        result = run_tmux(["attach-session", "-t", _exact(name)], capture=False)
        if result.returncode != 0:
            raise CommandFailedError("attach to tmux session", ["tmux", "attach-session"])

    def kill_session(self, name: str) -> None:
        """Kill a session."""
        self._check("kill tmux session", ["kill-session", "-t", _exact(name)])


@dataclass
class SessionOutcome:
    """Result of ensuring a worktree session."""

    name: str
    state: str

    @property
    def created(self) -> bool:
        """Whether a new session was created."""
        return self.state == CREATED_NEW


class SessionManager:
    """Finds, creates and kills the tmux session of a worktree."""

    def __init__(
        self,
        driver: Optional[TmuxDriver] = None,
        windows: Optional[Sequence[WindowSpec]] = None,
    ):
        """Initialize session manager."""
        self.driver = driver or TmuxDriver()
        self.windows = list(windows or [])

    def find_session(self, project: str, worktree: str) -> Optional[str]:
        """Return the first existing session among the worktree's candidates."""
        for name in session_candidates(project, worktree):
            if self.driver.session_exists(name):
                return name
        return None

    def ensure_session(
        self,
        project: str,
        worktree: str,
        path: Union[Path, str],
        command: Optional[str] = None,
        attach: bool = True,
    ) -> SessionOutcome:
        """Reuse the worktree's session if one exists, otherwise create it.

        An existing session, under the primary or a legacy name, is reused
        as-is and ``command`` is sent to it. A new session is created under
        the primary name running ``command``, with the configured extra
        windows added.
        """
        existing = self.find_session(project, worktree)
        if existing:
            logger.info(f"Reusing tmux session {existing}")
            if command:
                self.driver.send_keys(existing, command)
            outcome = SessionOutcome(existing, ATTACHED_EXISTING)
        else:
            name = primary_session_name(project, worktree)
            logger.info(f"Creating tmux session {name} in {path}")
            self.driver.create_session(name, path, command)
            for window in self.windows:
                self.driver.new_window(name, window.name, path, window.command)
            outcome = SessionOutcome(name, CREATED_NEW)

        if attach:
            self.driver.switch_or_attach(outcome.name)
        return outcome

    def kill_session(self, project: str, worktree: str) -> Optional[str]:
        """Kill the worktree's session if one exists, returning its name."""
        name = self.find_session(project, worktree)
        if name:
            logger.info(f"Killing tmux session {name}")
            self.driver.kill_session(name)
        return name
