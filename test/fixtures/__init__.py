"""Test fixtures for wt tests."""

# Note: Fixtures are imported directly from modules in conftest.py
# This __init__.py enables the fixtures package to be imported

__all__ = [
    "isolated_wt_env",
    "local_git_repo",
    "real_managers",
    "TmuxMock",
    "mock_tmux",
]
