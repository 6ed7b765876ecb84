"""Editor integration."""

import logging
import os
import shlex
import subprocess
from pathlib import Path
from typing import Union

from .worktree.errors import WtError

logger = logging.getLogger(__name__)

DEFAULT_EDITOR = "vi"


class EditorError(WtError):
    """Raised when the editor cannot be launched."""


def get_editor_command(path: Union[Path, str]) -> str:
    """Get the shell command that opens ``path`` in the user's editor."""
    editor = os.environ.get("EDITOR") or DEFAULT_EDITOR
    return f"{editor} {shlex.quote(str(path))}"


def open_in_editor(path: Union[Path, str]) -> None:
    """Open ``path`` in ``$EDITOR`` without waiting for it to exit."""
    editor = os.environ.get("EDITOR", "")
    parts = shlex.split(editor)
    if not parts:
        raise EditorError("EDITOR environment variable not set")

    cmd = parts + [str(path)]
    logger.debug("Running: %s", " ".join(cmd))
    try:
        subprocess.Popen(cmd)  # pylint: disable=consider-using-with
    except OSError as e:
        raise EditorError(f"failed to open editor: {e}") from e
