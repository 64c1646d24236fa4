"""
Data models and enums for syncdb.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Optional

STRUCTURE_FILE = "structure.sql"
DUMP_EXTENSION = "sql"
DEFAULT_DATABASE_KEY = "default"


class Driver(Enum):
    """Database engine families with known dump/restore tooling."""
    MYSQL = "mysql"
    POSTGRES = "postgres"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, name: Optional[str]) -> "Driver":
        aliases = {'pgsql': cls.POSTGRES, 'postgresql': cls.POSTGRES}
        key = (name or '').strip().lower()
        if key in aliases:
            return aliases[key]
        for driver in (cls.MYSQL, cls.POSTGRES):
            if driver.value == key:
                return driver
        return cls.UNSUPPORTED


class DumpPurpose(Enum):
    """What a dump command should contain."""
    STRUCTURE_ONLY = "structure"
    FULL_TABLE = "full"


class JobStatus(Enum):
    """Outcome of a single import job."""
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class DbSpec:
    """Connection details of one site's database."""
    driver: Driver
    database: str
    host: str = "localhost"
    port: Optional[int] = None
    user: Optional[str] = None
    password: Optional[str] = None
    remote_host: Optional[str] = None
    remote_user: Optional[str] = None

    @property
    def is_remote(self) -> bool:
        return bool(self.remote_host)


@dataclass(frozen=True)
class TableSelection:
    """Tables of one dump run split into data, structure-only and skipped."""
    data: tuple[str, ...] = ()
    structure: tuple[str, ...] = ()
    skip: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.data and not self.structure


@dataclass(frozen=True)
class DumpTarget:
    """A table (or the structure group) and the file it is dumped into."""
    table: str
    destination_file: Path


@dataclass
class DumpResult:
    """Files produced by a dump run, in dump order."""
    staging_dir: Path
    selection: TableSelection = field(default_factory=TableSelection)
    files: list[Path] = field(default_factory=list)


@dataclass(frozen=True)
class ImportJob:
    """One dump file to load into the target database."""
    table: str
    source_file: Path
    database_key: Optional[str] = None


@dataclass
class JobResult:
    """Result of executing one import job."""
    job: ImportJob
    status: JobStatus
    error_detail: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.status == JobStatus.SUCCESS


@dataclass
class RunReport:
    """Aggregated outcome of an import run."""
    strategy: str = ""
    results: list[JobResult] = field(default_factory=list)
    first_fatal_error: Optional[Exception] = None
    batches_dispatched: int = 0

    @property
    def success(self) -> bool:
        return self.first_fatal_error is None

    @property
    def succeeded(self) -> list[JobResult]:
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[JobResult]:
        return [r for r in self.results if not r.success]

    def raise_for_status(self) -> None:
        if self.first_fatal_error is not None:
            raise self.first_fatal_error


@dataclass
class SyncOptions:
    """Explicit settings for a dump, import or sync run."""
    skip_tables: list[str] = field(default_factory=list)
    structure_tables: list[str] = field(default_factory=list)
    tables: Optional[list[str]] = None
    concurrency: int = 30
    dump_dir: Optional[str] = None
    database_key: Optional[str] = None
    use_fanout: bool = True
    jobs_per_cpu: int = 2
    cleanup: bool = False

    KEYS = (
        'skip_tables', 'structure_tables', 'tables', 'concurrency', 'dump_dir',
        'database_key', 'use_fanout', 'jobs_per_cpu', 'cleanup',
    )

    @classmethod
    def from_configs(
        cls,
        defaults: dict[str, Any],
        overrides: dict[str, Any]
    ) -> "SyncOptions":
        """
        Create SyncOptions by merging configs with priority: overrides > defaults.

        Override values of None mean "not given" and never mask a default.
        """
        settings = {}
        for key in cls.KEYS:
            if defaults.get(key) is not None:
                settings[key] = defaults[key]
            if overrides.get(key) is not None:
                settings[key] = overrides[key]
        return cls(**settings)
