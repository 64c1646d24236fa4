"""
Exception hierarchy for syncdb.

Configuration errors are raised before any work starts; the remaining
kinds carry the table or file involved and the captured error output.
"""

from typing import Optional


class SyncDbError(Exception):
    """Base class for all syncdb errors."""


def _message(prefix: str, detail: Optional[str]) -> str:
    detail = (detail or "").strip()
    return f"{prefix}: {detail}" if detail else prefix


class ConfigurationError(SyncDbError):
    """Invalid or incomplete configuration."""


class UnsupportedDriver(ConfigurationError):
    def __init__(self, driver: str):
        self.driver = driver
        super().__init__(f"Unsupported database driver: '{driver}'")


class InvalidConcurrency(ConfigurationError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Concurrency must be a positive integer, got {value!r}")


class StructureDumpFailed(SyncDbError):
    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(_message("Structure dump failed", detail))


class TableDumpFailed(SyncDbError):
    def __init__(self, table: str, detail: str = ""):
        self.table = table
        self.detail = detail
        super().__init__(_message(f"Dump of table '{table}' failed", detail))


class TableImportFailed(SyncDbError):
    def __init__(self, table: str, detail: Optional[str] = None):
        self.table = table
        self.detail = detail or ""
        super().__init__(_message(f"Import of table '{table}' failed", detail))


class FanOutImportFailed(SyncDbError):
    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(_message("Parallel import failed", detail))


class MissingStagingDirectory(SyncDbError):
    def __init__(self, path):
        self.path = path
        super().__init__(f"Staging directory '{path}' does not exist")


class TransferFailed(SyncDbError):
    def __init__(self, detail: str = ""):
        self.detail = detail
        super().__init__(_message("Transfer failed", detail))
