"""
Unit tests for filesystem.py
"""

from pathlib import Path
from unittest import mock

import pytest

from syncdb.errors import SyncDbError
from syncdb.filesystem import LocalFileSystem, RemoteFileSystem, is_importable
from syncdb.invoker import ProcessResult


class TestIsImportable:
    """Tests for is_importable predicate."""

    @pytest.mark.parametrize("name,expected", [
        ("users.sql", True),
        ("structure.sql", True),
        ("users.sql.gz", True),
        (".hidden.sql", False),
        (".gitkeep", False),
        ("README", False),
        ("", False),
    ])
    def test_predicate(self, name, expected):
        assert is_importable(name) is expected


class TestLocalFileSystem:
    """Tests for LocalFileSystem class."""

    def test_make_and_remove(self, tmp_path):
        fs = LocalFileSystem()
        target = tmp_path / "a" / "b"
        fs.make_dirs(target)
        assert fs.exists(target)
        (target / "users.sql").write_text("x")
        fs.remove_tree(tmp_path / "a")
        assert not fs.exists(tmp_path / "a")

    def test_remove_missing_is_noop(self, tmp_path):
        LocalFileSystem().remove_tree(tmp_path / "missing")

    def test_list_files_skips_directories(self, tmp_path):
        (tmp_path / "users.sql").write_text("x")
        (tmp_path / "nested").mkdir()
        assert LocalFileSystem().list_files(tmp_path) == ["users.sql"]


class TestRemoteFileSystem:
    """Tests for RemoteFileSystem class."""

    @pytest.fixture
    def invoker(self):
        invoker = mock.MagicMock()
        invoker.remote_target = "deploy@web1"
        invoker.execute.return_value = ProcessResult(command="", exit_code=0)
        return invoker

    def test_make_dirs(self, invoker):
        RemoteFileSystem(invoker).make_dirs(Path("/tmp/syncdb/web1_shop"))
        invoker.execute.assert_called_once_with("mkdir -p /tmp/syncdb/web1_shop")

    def test_remove_tree(self, invoker):
        RemoteFileSystem(invoker).remove_tree(Path("/tmp/syncdb/web1_shop"))
        invoker.execute.assert_called_once_with("rm -rf /tmp/syncdb/web1_shop")

    def test_failure_raises(self, invoker):
        invoker.execute.return_value = ProcessResult(
            command="", exit_code=1, stderr="Permission denied"
        )
        with pytest.raises(SyncDbError) as exc_info:
            RemoteFileSystem(invoker).make_dirs(Path("/root/x"))
        assert "Permission denied" in str(exc_info.value)
