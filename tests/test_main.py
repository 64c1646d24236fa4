"""
Unit tests for main.py
"""

from pathlib import Path
from unittest import mock

import pytest
import yaml

from syncdb.errors import StructureDumpFailed, TableImportFailed
from syncdb.main import build_parser, collect_overrides, main
from syncdb.models import DumpResult, RunReport


@pytest.fixture
def config_path(tmp_path):
    data = {
        "sites": {
            "prod": {"driver": "mysql", "database": "shop", "remote_host": "web1"},
            "local": {"driver": "mysql", "database": "shop_local"},
        },
        "table_lists": {"common": ["cache_*"]},
        "defaults": {"concurrency": 12},
    }
    path = tmp_path / "syncdb.yaml"
    path.write_text(yaml.dump(data))
    return str(path)


class TestParser:
    """Tests for the argument parser."""

    def test_sync_arguments(self):
        args = build_parser().parse_args([
            "sync", "prod", "local", "--concurrency", "5", "--no-fanout",
            "--skip-tables-key", "common", "--tables-list", "users,orders"
        ])
        overrides = collect_overrides(args)
        assert args.source == "prod"
        assert args.target == "local"
        assert overrides["concurrency"] == 5
        assert overrides["use_fanout"] is False
        assert overrides["skip_tables_key"] == "common"
        assert overrides["tables_list"] == "users,orders"

    def test_unset_flags_are_none(self):
        overrides = collect_overrides(build_parser().parse_args(["dump", "prod"]))
        assert overrides["concurrency"] is None
        assert overrides["use_fanout"] is None
        assert overrides["cleanup"] is None

    def test_command_required(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args([])


class TestMain:
    """Tests for main entry point."""

    def test_missing_config(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", "/nonexistent/syncdb.yaml", "dump", "prod"])
        assert exc_info.value.code == 1
        assert "not found" in capsys.readouterr().out

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("sites: [unclosed")
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", str(path), "dump", "prod"])
        assert exc_info.value.code == 1

    @mock.patch('syncdb.main.run_dump')
    def test_dump(self, mock_dump, config_path):
        mock_dump.return_value = DumpResult(staging_dir=Path("/tmp/x"), files=[Path("/tmp/x/a.sql")])
        main(["-c", config_path, "dump", "prod", "--skip-tables-key", "common"])

        _, alias, options = mock_dump.call_args[0]
        assert alias == "prod"
        assert options.skip_tables == ["cache_*"]
        assert options.concurrency == 12

    @mock.patch('syncdb.main.run_dump')
    def test_dump_failure_exits(self, mock_dump, config_path):
        mock_dump.side_effect = StructureDumpFailed("access denied")
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", config_path, "dump", "prod"])
        assert exc_info.value.code == 1

    @mock.patch('syncdb.main.run_import')
    def test_import_failure_exits(self, mock_import, config_path):
        mock_import.return_value = RunReport(
            strategy="chunked", first_fatal_error=TableImportFailed("users", "boom")
        )
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", config_path, "import", "local", "--dump-dir", "/tmp/stage"])
        assert exc_info.value.code == 1
        assert mock_import.call_args[0][3] == Path("/tmp/stage")

    @mock.patch('syncdb.main.SyncRunner')
    def test_sync(self, mock_runner, config_path):
        mock_runner.return_value.run.return_value = (
            DumpResult(staging_dir=Path("/tmp/x")), RunReport(strategy="fanout")
        )
        main(["-c", config_path, "sync", "prod", "local", "--concurrency", "4"])

        _, source, target, options = mock_runner.call_args[0]
        assert (source, target) == ("prod", "local")
        assert options.concurrency == 4

    @mock.patch('syncdb.sync.discover_remote_temp_dir', return_value="/var/tmp")
    @mock.patch('syncdb.main.SyncRunner')
    def test_dry_run(self, mock_runner, mock_discover, config_path, caplog):
        import logging
        caplog.set_level(logging.INFO)
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", config_path, "sync", "prod", "local", "--dry-run"])

        assert exc_info.value.code == 0
        mock_runner.assert_not_called()
        assert "DRY RUN" in caplog.text
        mock_discover.assert_called_once()
        assert "/var/tmp/syncdb/web1_shop" in caplog.text

    def test_unknown_site_exits(self, config_path):
        with pytest.raises(SystemExit) as exc_info:
            main(["-c", config_path, "dump", "staging", "--dry-run"])
        assert exc_info.value.code == 1
