"""Interactive selection of worktrees, projects and branches.

Items carry an opaque ``value`` that is handed back to the caller untouched.
When fzf is available each line sent to it starts with a hidden index field,
and the chosen line is mapped back through that index rather than by parsing
the displayed text.
"""

import logging
import shutil
import subprocess
import sys
from dataclasses import dataclass
from typing import Any, List, Optional, TextIO

from .worktree.errors import NotFoundError, SelectionCancelledError

logger = logging.getLogger(__name__)


@dataclass
class SelectorItem:
    """A selectable entry."""

    title: str
    description: str
    filter_key: str
    value: Any


def select(items: List[SelectorItem], prompt: str, header: Optional[str] = None) -> Any:
    """Let the user pick one item and return its value.

    Raises:
        NotFoundError: if there is nothing to choose from.
        SelectionCancelledError: if the user aborts the selection.
    """
    if not items:
        raise NotFoundError("nothing to select")

    if shutil.which("fzf"):
        return select_with_fzf(items, prompt, header)
    return select_with_prompt(items, prompt)


def select_with_fzf(items: List[SelectorItem], prompt: str, header: Optional[str] = None) -> Any:
    """Select an item with fzf."""
    lines = [
        f"{index}\t{item.title}\t{item.description}" for index, item in enumerate(items)
    ]
    cmd = [
        "fzf",
        f"--prompt={prompt}: ",
        "--height=40%",
        "--layout=reverse",
        "--delimiter=\t",
        "--with-nth=2..",
    ]
    if header:
        cmd.append(f"--header={header}")

    logger.debug("Running: %s", " ".join(cmd))
    result = subprocess.run(
        cmd, input="\n".join(lines) + "\n", stdout=subprocess.PIPE, text=True, check=False
    )
    selected = result.stdout.strip()
    if result.returncode != 0 or not selected:
        raise SelectionCancelledError()

    index = selected.split("\t", 1)[0]
    try:
        return items[int(index)].value
    except (ValueError, IndexError) as e:
        raise SelectionCancelledError(f"unexpected selection: {selected}") from e


def select_with_prompt(
    items: List[SelectorItem],
    prompt: str,
    stdin: Optional[TextIO] = None,
    stdout: Optional[TextIO] = None,
) -> Any:
    """Select an item from a numbered list read from stdin.

    The answer may be the item's number or its exact filter key.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    stdout.write(f"{prompt}:\n")
    for number, item in enumerate(items, start=1):
        line = f"{number}) {item.title}"
        if item.description:
            line += f"  {item.description}"
        stdout.write(line + "\n")
    stdout.write("Enter choice (number): ")
    stdout.flush()

    answer = stdin.readline().strip()
    if not answer:
        raise SelectionCancelledError()

    if answer.isdigit() and 1 <= int(answer) <= len(items):
        return items[int(answer) - 1].value

    for item in items:
        if item.filter_key == answer:
            return item.value

    raise SelectionCancelledError(f"invalid choice: {answer}")
