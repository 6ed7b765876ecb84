"""Thin tmux mock for session tests.

This module provides a minimal mock for tmux that records calls and tracks
which sessions exist, without starting a tmux server.
"""

import subprocess
from typing import Dict, Generator, List, Set
from unittest.mock import patch

import pytest


class TmuxMock:
    """Records tmux calls and simulates the session list.

    Usage:
        mock = TmuxMock(sessions={"acme-main"})
        with mock.patch():
            # Your test code that calls tmux
            pass
        assert mock.calls  # Check recorded calls
    """

    def __init__(self, sessions=None):
        """Initialize the mock."""
        self.calls: List[List[str]] = []
        self.sessions: Set[str] = set(sessions or [])
        self.windows: Dict[str, List[str]] = {}
        self.sent_keys: List[tuple] = []
        self.fail_commands: Dict[str, str] = {}  # command -> error message
        self._patcher = None

    @staticmethod
    def _target(args: List[str]) -> str:
        target = args[args.index("-t") + 1]
        return target.lstrip("=").split(":", 1)[0]

    def __call__(self, args: List[str], capture: bool = True) -> subprocess.CompletedProcess:
        """Handle a tmux command call."""
        self.calls.append(args)
        command = args[0] if args else ""

        if command in self.fail_commands:
            return self._result(args, 1, stderr=self.fail_commands[command])

        if command == "has-session":
            return self._result(args, 0 if self._target(args) in self.sessions else 1)
        if command == "new-session":
            name = args[args.index("-s") + 1]
            if name in self.sessions:
                return self._result(args, 1, stderr=f"duplicate session: {name}")
            self.sessions.add(name)
            self.windows[name] = []
        elif command == "new-window":
            self.windows.setdefault(self._target(args), []).append(args[args.index("-n") + 1])
        elif command == "send-keys":
            self.sent_keys.append((self._target(args), args[-2]))
        elif command == "kill-session":
            target = self._target(args)
            if target not in self.sessions:
                return self._result(args, 1, stderr=f"can't find session: {target}")
            self.sessions.discard(target)
        elif command in ("switch-client", "attach-session"):
            if self._target(args) not in self.sessions:
                return self._result(args, 1, stderr="can't find session")

        return self._result(args, 0)

    @staticmethod
    def _result(args: List[str], returncode: int, stderr: str = "") -> subprocess.CompletedProcess:
        return subprocess.CompletedProcess(
            args=["tmux"] + args, returncode=returncode, stdout="", stderr=stderr
        )

    def commands(self) -> List[str]:
        """Names of the tmux commands that were run, in order."""
        return [call[0] for call in self.calls]

    def patch(self):
        """Patch run_tmux with this mock."""
        self._patcher = patch("wt.worktree.session_manager.run_tmux", self)
        return self._patcher


@pytest.fixture
def mock_tmux() -> Generator[TmuxMock, None, None]:
    """Provide a TmuxMock patched into the session manager."""
    mock = TmuxMock()
    with mock.patch():
        yield mock
