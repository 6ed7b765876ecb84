"""Tests for worktree manager."""
# pylint: disable=redefined-outer-name

import os
import shutil
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from wt.worktree.config import WorktreeConfig
from wt.worktree.errors import CommandFailedError, WorktreeExistsError
from wt.worktree.worktree_manager import WorktreeManager


@pytest.fixture
def base_dir(tmp_path):
    """Worktree base directory."""
    return tmp_path / "worktrees"


@pytest.fixture
def repo_manager(tmp_path):
    """Repository manager stub whose main checkout is a temp directory."""
    manager = MagicMock()
    manager.cwd = tmp_path / "src" / "acme"
    manager.get_main_repo_path.return_value = tmp_path / "src" / "acme"
    return manager


@pytest.fixture
def worktree_manager(base_dir, repo_manager):
    """Create a worktree manager for testing."""
    return WorktreeManager(WorktreeConfig(base_dir=base_dir), repo_manager)


def make_worktrees(base_dir, project, *names):
    for name in names:
        (base_dir / project / name).mkdir(parents=True)


class TestPaths:
    """Tests for path helpers."""

    def test_worktree_path(self, worktree_manager, base_dir):
        """Test worktrees live at base_dir/project/name."""
        assert worktree_manager.get_worktree_path("acme", "feat_x") == base_dir / "acme" / "feat_x"


class TestListWorktrees:
    """Tests for list_worktrees."""

    def test_missing_project(self, worktree_manager):
        """Test a project without a directory has no worktrees."""
        assert worktree_manager.list_worktrees("acme") == []

    def test_lists_directories_sorted(self, worktree_manager, base_dir):
        """Test directories are listed case-insensitively sorted."""
        make_worktrees(base_dir, "acme", "zeta", "Beta", "alpha")

        names = [wt.name for wt in worktree_manager.list_worktrees("acme")]

        assert names == ["alpha", "Beta", "zeta"]

    def test_skips_files(self, worktree_manager, base_dir):
        """Test plain files in a project directory are not worktrees."""
        make_worktrees(base_dir, "acme", "main")
        (base_dir / "acme" / "notes.txt").write_text("x")

        assert [wt.name for wt in worktree_manager.list_worktrees("acme")] == ["main"]

    def test_paths(self, worktree_manager, base_dir):
        """Test each worktree records its directory."""
        make_worktrees(base_dir, "acme", "main")

        (worktree,) = worktree_manager.list_worktrees("acme")

        assert worktree.path == base_dir / "acme" / "main"


class TestFindWorktree:
    """Tests for worktree lookups."""

    def test_find_by_name(self, worktree_manager, base_dir):
        """Test lookup by directory name."""
        make_worktrees(base_dir, "acme", "feat_login")
        assert worktree_manager.find_worktree("acme", "feat_login").name == "feat_login"

    def test_find_by_unsanitized_name(self, worktree_manager, base_dir):
        """Test lookup by a name that sanitizes to the directory name."""
        make_worktrees(base_dir, "acme", "feat_login")
        assert worktree_manager.find_worktree("acme", "feat/login").name == "feat_login"

    def test_find_missing(self, worktree_manager, base_dir):
        """Test a missing worktree gives None."""
        make_worktrees(base_dir, "acme", "main")
        assert worktree_manager.find_worktree("acme", "nope") is None

    def test_find_for_branch(self, worktree_manager, base_dir):
        """Test a branch is found through its sanitized directory name."""
        make_worktrees(base_dir, "acme", "main", "feat_login")

        worktree = worktree_manager.find_worktree_for_branch("acme", "feat/login")

        assert worktree.path == base_dir / "acme" / "feat_login"

    def test_find_for_branch_none(self, worktree_manager):
        """Test an unknown project has no worktree for any branch."""
        assert worktree_manager.find_worktree_for_branch("acme", "main") is None

    def test_find_for_branch_unreadable(self, worktree_manager, caplog):
        """Test an unreadable project directory is logged and treated as empty."""
        with patch.object(worktree_manager, "list_worktrees", side_effect=OSError("denied")):
            assert worktree_manager.find_worktree_for_branch("acme", "main") is None
        assert "Failed to list worktrees" in caplog.text


class TestCreateWorktree:
    """Tests for create_worktree."""

    @patch("wt.worktree.git.subprocess.run")
    def test_runs_git_worktree_add(self, mock_run, worktree_manager, base_dir, repo_manager):
        """Test git worktree add is run from the repository."""
        mock_run.return_value = MagicMock(stdout="", returncode=0)

        path = worktree_manager.create_worktree("acme", "feat_login", "feat/login")

        assert path == base_dir / "acme" / "feat_login"
        assert path.parent.is_dir()
        cmd = mock_run.call_args[0][0]
        assert cmd == ["git", "worktree", "add", str(path), "feat/login"]
        assert mock_run.call_args[1]["cwd"] == str(repo_manager.cwd)

    @patch("wt.worktree.git.subprocess.run")
    def test_existing_directory(self, mock_run, worktree_manager, base_dir):
        """Test an existing directory is refused without calling git."""
        make_worktrees(base_dir, "acme", "main")

        with pytest.raises(WorktreeExistsError) as exc_info:
            worktree_manager.create_worktree("acme", "main", "main")

        assert exc_info.value.path == str(base_dir / "acme" / "main")
        mock_run.assert_not_called()

    @patch("wt.worktree.git.subprocess.run")
    def test_git_failure(self, mock_run, worktree_manager):
        """Test git failures propagate with git's output."""
        mock_run.side_effect = subprocess.CalledProcessError(
            128, ["git"], output="", stderr="fatal: 'main' is already checked out"
        )

        with pytest.raises(CommandFailedError) as exc_info:
            worktree_manager.create_worktree("acme", "main", "main")

        assert "already checked out" in exc_info.value.output

    @patch("wt.worktree.git.subprocess.run")
    def test_copies_configured_files(self, mock_run, worktree_manager, repo_manager):
        """Test configured files are copied after the worktree is created."""
        mock_run.return_value = MagicMock(stdout="", returncode=0)
        source = repo_manager.get_main_repo_path()
        source.mkdir(parents=True)
        (source / ".env").write_text("SECRET=1\n")
        worktree_manager.config.copy_files = [".env"]

        path = worktree_manager.create_worktree("acme", "feat", "feat")

        assert (path / ".env").read_text() == "SECRET=1\n"


class TestCopyConfiguredFiles:
    """Tests for copy_configured_files."""

    def test_absolute_pattern_is_relative_to_source(self, worktree_manager, tmp_path):
        """Test an absolute pattern is joined onto the source root."""
        source = tmp_path / "src"
        source.mkdir()
        (source / ".env").write_text("A=1\n")
        dest = tmp_path / "dest"
        dest.mkdir()
        worktree_manager.config.copy_files = ["/.env"]

        copied, errors = worktree_manager.copy_configured_files(dest, source)

        assert copied == [".env"]
        assert errors == []
        assert (dest / ".env").read_text() == "A=1\n"

    def test_unsupported_pattern_is_reported(self, worktree_manager, tmp_path):
        """Test a pattern rejected by glob is collected as an error."""
        source = tmp_path / "src"
        source.mkdir()
        dest = tmp_path / "dest"
        dest.mkdir()
        worktree_manager.config.copy_files = ["*.txt"]

        with patch.object(type(source), "glob", side_effect=NotImplementedError("unsupported")):
            copied, errors = worktree_manager.copy_configured_files(dest, source)

        assert copied == []
        assert errors == ["*.txt: unsupported"]

    def test_copies_globs_keeping_layout_and_mode(self, worktree_manager, tmp_path):
        """Test glob matches are copied with relative paths and file mode."""
        source = tmp_path / "src"
        (source / "config").mkdir(parents=True)
        (source / "config" / "a.local").write_text("a")
        (source / "config" / "b.local").write_text("b")
        script = source / "run.sh"
        script.write_text("#!/bin/sh\n")
        os.chmod(script, 0o755)
        dest = tmp_path / "dest"
        dest.mkdir()
        worktree_manager.config.copy_files = ["config/*.local", "run.sh", "missing.txt"]

        copied, errors = worktree_manager.copy_configured_files(dest, source)

        assert copied == ["config/a.local", "config/b.local", "run.sh"]
        assert errors == []
        assert (dest / "config" / "b.local").read_text() == "b"
        assert os.stat(dest / "run.sh").st_mode & 0o777 == 0o755

    def test_skips_directories(self, worktree_manager, tmp_path):
        """Test directories matched by a pattern are not copied."""
        source = tmp_path / "src"
        (source / "node_modules").mkdir(parents=True)
        dest = tmp_path / "dest"
        dest.mkdir()
        worktree_manager.config.copy_files = ["*"]

        copied, errors = worktree_manager.copy_configured_files(dest, source)

        assert copied == []
        assert errors == []
        assert not (dest / "node_modules").exists()

    def test_collects_errors(self, worktree_manager, tmp_path):
        """Test a failing copy is reported and the rest still copied."""
        source = tmp_path / "src"
        source.mkdir()
        (source / "a.txt").write_text("a")
        (source / "b.txt").write_text("b")
        dest = tmp_path / "dest"
        dest.mkdir()
        worktree_manager.config.copy_files = ["*.txt"]

        real_copy = shutil.copy

        def flaky_copy(src, dst):
            if src.name == "a.txt":
                raise PermissionError("denied")
            return real_copy(src, dst)

        with patch("wt.worktree.worktree_manager.shutil.copy", side_effect=flaky_copy):
            copied, errors = worktree_manager.copy_configured_files(dest, source)

        assert copied == ["b.txt"]
        assert len(errors) == 1
        assert "a.txt" in errors[0]


class TestRemoveWorktree:
    """Tests for remove_worktree."""

    @patch("wt.worktree.git.subprocess.run")
    def test_force_remove(self, mock_run, worktree_manager, base_dir):
        """Test git worktree remove --force is used."""
        mock_run.return_value = MagicMock(stdout="", returncode=0)
        path = base_dir / "acme" / "feat"

        worktree_manager.remove_worktree(path)

        assert mock_run.call_args[0][0] == ["git", "worktree", "remove", "--force", str(path)]
