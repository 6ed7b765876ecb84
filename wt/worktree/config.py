"""Configuration management for worktree backend.

Configuration is layered: built-in defaults, then the global file
(``$XDG_CONFIG_HOME/wt/config.toml``), then ``.wt.toml`` in the repository.
Scalars from the local file win; arrays from both files are concatenated and
de-duplicated. ``WORKTREE_BASE_DIR`` overrides the base directory last.
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import tomli
import tomli_w

logger = logging.getLogger(__name__)

BASE_DIR_ENV = "WORKTREE_BASE_DIR"
LOCAL_CONFIG_NAME = ".wt.toml"
# Top-level base directory key used by earlier config files
LEGACY_BASE_DIR_KEY = "worktrees_location"


def _default_base_dir() -> Path:
    return Path.home() / "projects" / "worktrees"


def expand_path(path: Union[Path, str]) -> Path:
    """Expand ``~`` and make the path absolute."""
    return Path(path).expanduser().absolute()


def _table(data: Dict, key: str) -> Dict:
    value = data.get(key, {})
    if not isinstance(value, dict):
        logger.warning(f"Ignoring invalid [{key}] section {value!r}: expected a table")
        return {}
    return value


@dataclass
class WindowSpec:
    """An extra tmux window opened in every new session."""

    name: str
    command: Optional[str] = None

    def to_dict(self) -> Dict:
        """Convert to dictionary for TOML serialization."""
        data = {"name": self.name}
        if self.command:
            data["command"] = self.command
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "WindowSpec":
        """Create from dictionary."""
        return cls(name=str(data["name"]), command=data.get("command"))


@dataclass
class WorktreeConfig:
    """Configuration for worktree backend."""

    base_dir: Union[Path, str] = field(default_factory=_default_base_dir)
    copy_files: List[str] = field(default_factory=list)
    windows: List[WindowSpec] = field(default_factory=list)

    def __post_init__(self):
        """Ensure base_dir is an absolute Path with ``~`` expanded."""
        self.base_dir = expand_path(self.base_dir)

    def to_dict(self) -> Dict:
        """Convert to dictionary for TOML serialization."""
        return {
            "worktree": {
                "base_dir": str(self.base_dir),
                "copy_files": list(self.copy_files),
            },
            "tmux": {
                "windows": [window.to_dict() for window in self.windows],
            },
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "WorktreeConfig":
        """Create from dictionary.

        Values of the wrong type are ignored with a warning and replaced by
        their defaults. The top-level ``worktrees_location`` key is read when
        ``[worktree].base_dir`` is not set.
        """
        worktree_data = _table(data, "worktree")
        tmux_data = _table(data, "tmux")

        base_dir = worktree_data.get("base_dir", data.get(LEGACY_BASE_DIR_KEY))
        if base_dir is not None and not isinstance(base_dir, str):
            logger.warning(f"Ignoring invalid base_dir {base_dir!r}: expected a string")
            base_dir = None

        copy_files = worktree_data.get("copy_files", [])
        if isinstance(copy_files, str):
            copy_files = [copy_files]
        elif not isinstance(copy_files, list):
            logger.warning(f"Ignoring invalid copy_files {copy_files!r}: expected a list")
            copy_files = []

        patterns = []
        for pattern in copy_files:
            if isinstance(pattern, str):
                patterns.append(pattern)
            else:
                logger.warning(f"Ignoring invalid copy_files entry: {pattern!r}")

        window_entries = tmux_data.get("windows", [])
        if not isinstance(window_entries, list):
            logger.warning(f"Ignoring invalid tmux windows {window_entries!r}: expected a list")
            window_entries = []

        windows = []
        for window in window_entries:
            if (
                isinstance(window, dict)
                and isinstance(window.get("name"), str)
                and window["name"]
                and isinstance(window.get("command", ""), str)
            ):
                windows.append(WindowSpec.from_dict(window))
            else:
                logger.warning(f"Ignoring invalid tmux window entry: {window!r}")

        return cls(
            base_dir=base_dir or _default_base_dir(),
            copy_files=patterns,
            windows=windows,
        )


def get_config_path() -> Path:
    """Get the path to the global config file."""
    config_dir = Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config"))
    return config_dir / "wt" / "config.toml"


def get_local_config_path(local_dir: Optional[Path] = None) -> Path:
    """Get the path to the repository-local config file."""
    return (local_dir or Path.cwd()) / LOCAL_CONFIG_NAME


def load_config_file(path: Path) -> Dict:
    """Load a single TOML file, returning an empty dict if it is unusable."""
    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            return tomli.load(f)
    except (OSError, tomli.TOMLDecodeError) as e:
        logger.warning(f"Ignoring config file {path}: {e}")
        return {}


def _dedupe(items: List[Any]) -> List[Any]:
    seen = set()
    result = []
    for item in items:
        key = item if isinstance(item, str) else json.dumps(item, sort_keys=True, default=str)
        if key not in seen:
            seen.add(key)
            result.append(item)
    return result


def merge_config(base: Dict, override: Dict) -> Dict:
    """Merge two config dicts: tables recurse, arrays concatenate, scalars override."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = merge_config(current, value)
        elif isinstance(current, list) and isinstance(value, list):
            merged[key] = _dedupe(current + value)
        else:
            merged[key] = value
    return merged


def load_config(local_dir: Optional[Path] = None) -> Dict:
    """Load the global and local configuration files merged together."""
    global_data = load_config_file(get_config_path())
    local_data = load_config_file(get_local_config_path(local_dir))
    return merge_config(global_data, local_data)


def save_config(config: Dict, path: Optional[Path] = None) -> Path:
    """Save configuration to file (the global file by default)."""
    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "wb") as f:
        tomli_w.dump(config, f)

    return config_path


def get_worktree_config(local_dir: Optional[Path] = None) -> WorktreeConfig:
    """Get worktree configuration, loading from files if they exist."""
    config = WorktreeConfig.from_dict(load_config(local_dir))

    env_base_dir = os.environ.get(BASE_DIR_ENV)
    if env_base_dir:
        config.base_dir = expand_path(env_base_dir)

    return config
