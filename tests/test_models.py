"""
Unit tests for models.py
"""

from pathlib import Path

import pytest

from syncdb.errors import TableImportFailed
from syncdb.models import (
    DbSpec,
    Driver,
    ImportJob,
    JobResult,
    JobStatus,
    RunReport,
    SyncOptions,
    TableSelection,
)


class TestDriver:
    """Tests for Driver enum."""

    @pytest.mark.parametrize("name,expected", [
        ("mysql", Driver.MYSQL),
        ("MySQL", Driver.MYSQL),
        ("postgres", Driver.POSTGRES),
        ("pgsql", Driver.POSTGRES),
        ("postgresql", Driver.POSTGRES),
        ("sqlite", Driver.UNSUPPORTED),
        ("", Driver.UNSUPPORTED),
        (None, Driver.UNSUPPORTED),
    ])
    def test_parse(self, name, expected):
        """Test driver names are parsed into the closed set."""
        assert Driver.parse(name) == expected


class TestDbSpec:
    """Tests for DbSpec dataclass."""

    def test_local(self):
        spec = DbSpec(driver=Driver.MYSQL, database="shop")
        assert spec.host == "localhost"
        assert not spec.is_remote

    def test_remote(self):
        spec = DbSpec(driver=Driver.MYSQL, database="shop", remote_host="web1")
        assert spec.is_remote


class TestTableSelection:
    """Tests for TableSelection dataclass."""

    def test_empty(self):
        assert TableSelection().is_empty
        assert TableSelection(skip=("cache",)).is_empty

    def test_not_empty(self):
        assert not TableSelection(data=("users",)).is_empty
        assert not TableSelection(structure=("cache",)).is_empty

    def test_immutable(self):
        selection = TableSelection(data=("users",))
        with pytest.raises(AttributeError):
            selection.data = ()


class TestRunReport:
    """Tests for RunReport dataclass."""

    @pytest.fixture
    def job(self):
        return ImportJob(table="users", source_file=Path("/tmp/users.sql"))

    def test_empty_report_succeeds(self):
        report = RunReport()
        assert report.success
        report.raise_for_status()

    def test_failed_report(self, job):
        error = TableImportFailed("users", "boom")
        report = RunReport(
            results=[
                JobResult(job=job, status=JobStatus.SUCCESS),
                JobResult(job=job, status=JobStatus.FAILED, error_detail="boom"),
            ],
            first_fatal_error=error
        )
        assert not report.success
        assert len(report.succeeded) == 1
        assert len(report.failed) == 1
        with pytest.raises(TableImportFailed):
            report.raise_for_status()


class TestSyncOptions:
    """Tests for SyncOptions.from_configs."""

    def test_defaults(self):
        options = SyncOptions()
        assert options.concurrency == 30
        assert options.use_fanout is True
        assert options.jobs_per_cpu == 2
        assert options.tables is None

    def test_override_priority(self):
        options = SyncOptions.from_configs(
            {"concurrency": 10, "dump_dir": "/data"},
            {"concurrency": 5}
        )
        assert options.concurrency == 5
        assert options.dump_dir == "/data"

    def test_none_does_not_mask_default(self):
        options = SyncOptions.from_configs({"concurrency": 10}, {"concurrency": None})
        assert options.concurrency == 10

    def test_unknown_keys_ignored(self):
        options = SyncOptions.from_configs({"row_limit": 5}, {})
        assert options == SyncOptions()
