"""
syncdb
======
Synchronize a database between environments one table at a time:
- Per-table dump files plus one structure-only file
- Skip, structure-only and explicit table lists with wildcards
- MySQL and PostgreSQL
- Parallel import through GNU parallel or bounded concurrent batches
- Remote sources over ssh and rsync
"""

from .classifier import classify_tables
from .config import ConfigLoader
from .connection import DatabaseConnection, list_all_tables
from .drivers import MySQLProfile, PostgresProfile, build_command, get_profile
from .dumper import DumpDirector
from .errors import (
    ConfigurationError,
    FanOutImportFailed,
    InvalidConcurrency,
    MissingStagingDirectory,
    StructureDumpFailed,
    SyncDbError,
    TableDumpFailed,
    TableImportFailed,
    TransferFailed,
    UnsupportedDriver,
)
from .importer import (
    ChunkedConcurrencyStrategy,
    FanOutStrategy,
    ImportScheduler,
    list_import_jobs,
    partition_batches,
)
from .invoker import ConcurrentBatchInvoker, ProcessInvoker
from .main import main
from .models import (
    DbSpec,
    Driver,
    DumpPurpose,
    DumpResult,
    ImportJob,
    JobResult,
    JobStatus,
    RunReport,
    SyncOptions,
    TableSelection,
)
from .paths import resolve_dump_path
from .sync import SyncRunner, run_dump, run_import
from .utils import setup_logging

__version__ = "1.0.0"

__all__ = [
    # Main entry point
    "main",
    # Core classes
    "ConfigLoader",
    "DatabaseConnection",
    "DumpDirector",
    "ImportScheduler",
    "FanOutStrategy",
    "ChunkedConcurrencyStrategy",
    "ProcessInvoker",
    "ConcurrentBatchInvoker",
    "SyncRunner",
    "MySQLProfile",
    "PostgresProfile",
    # Functions
    "build_command",
    "classify_tables",
    "get_profile",
    "list_all_tables",
    "list_import_jobs",
    "partition_batches",
    "resolve_dump_path",
    "run_dump",
    "run_import",
    "setup_logging",
    # Models
    "DbSpec",
    "Driver",
    "DumpPurpose",
    "DumpResult",
    "ImportJob",
    "JobResult",
    "JobStatus",
    "RunReport",
    "SyncOptions",
    "TableSelection",
    # Errors
    "SyncDbError",
    "ConfigurationError",
    "UnsupportedDriver",
    "InvalidConcurrency",
    "StructureDumpFailed",
    "TableDumpFailed",
    "TableImportFailed",
    "FanOutImportFailed",
    "MissingStagingDirectory",
    "TransferFailed",
]
