"""Name sanitization for worktree directories and tmux sessions."""

import string
from typing import FrozenSet

# Characters that are unsafe in a worktree directory name
FILESYSTEM_UNSAFE_CHARS: FrozenSet[str] = frozenset('/\\:*?<>|"') | frozenset(string.whitespace)

# tmux uses ":" and "." as target separators (session:window.pane)
SESSION_UNSAFE_CHARS: FrozenSet[str] = frozenset("/\\:.") | frozenset(string.whitespace)

REPLACEMENT = "_"


def _replace_chars(name: str, unsafe: FrozenSet[str]) -> str:
    """Replace every character of ``unsafe`` in ``name`` with an underscore.

    The replacement is one-for-one, so inputs that differ outside the unsafe
    set never collapse onto the same output, and applying it twice is a no-op.
    """
    return "".join(REPLACEMENT if char in unsafe else char for char in name)


def sanitize_branch_name(branch: str) -> str:
    """Sanitize branch name for filesystem use."""
    return _replace_chars(branch, FILESYSTEM_UNSAFE_CHARS)


def sanitize_session_name(name: str) -> str:
    """Sanitize a name for use as a tmux session name."""
    return _replace_chars(name, SESSION_UNSAFE_CHARS)
