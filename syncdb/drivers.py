"""
Dump and restore command building for the supported database drivers.

Each driver is a DriverProfile subclass; adding a driver means adding a
subclass and registering it in PROFILES.
"""

import logging
import shlex
from pathlib import Path
from typing import Iterable, Optional

from .errors import UnsupportedDriver
from .models import DbSpec, Driver, DumpPurpose


def _quote(value) -> str:
    return shlex.quote(str(value))


class DriverProfile:
    """Command templates for one database engine family."""

    driver: Driver = Driver.UNSUPPORTED
    dump_tool = ""
    client_tool = ""

    def __init__(self, db_spec: DbSpec):
        self.db_spec = db_spec

    def credentials(self) -> str:
        """Connection flags (and positional database name) for the CLI tools."""
        raise NotImplementedError

    def env_prefix(self) -> str:
        return ""

    def _command(self, *parts: str) -> str:
        prefix = self.env_prefix()
        command = ' '.join(part for part in parts if part)
        return f"{prefix} {command}" if prefix else command

    def build_structure_command(self, tables: Iterable[str], output_file: Path) -> str:
        raise NotImplementedError

    def build_data_command(self, table: str, output_file: Path) -> str:
        raise NotImplementedError

    def import_prefix(self) -> str:
        """Client invocation that reads SQL from stdin."""
        raise NotImplementedError

    def build_import_command(self, source_file: Path) -> str:
        return f"{self.import_prefix()} < {_quote(source_file)}"

    def build_list_tables_command(self) -> str:
        raise NotImplementedError


class MySQLProfile(DriverProfile):
    """mysqldump / mysql command lines."""

    driver = Driver.MYSQL
    dump_tool = "mysqldump"
    client_tool = "mysql"

    def credentials(self) -> str:
        spec = self.db_spec
        parts = [f"--host={_quote(spec.host)}"]
        if spec.port:
            parts.append(f"--port={int(spec.port)}")
        if spec.user:
            parts.append(f"--user={_quote(spec.user)}")
        if spec.password:
            parts.append(f"--password={_quote(spec.password)}")
        parts.append(_quote(spec.database))
        return ' '.join(parts)

    def build_structure_command(self, tables: Iterable[str], output_file: Path) -> str:
        table_args = ' '.join(_quote(t) for t in tables)
        return self._command(
            self.dump_tool, "--no-data", self.credentials(), table_args,
            f"> {_quote(output_file)}"
        )

    def build_data_command(self, table: str, output_file: Path) -> str:
        return self._command(
            self.dump_tool, "--single-transaction --quick", self.credentials(),
            _quote(table), f"> {_quote(output_file)}"
        )

    def import_prefix(self) -> str:
        return self._command(self.client_tool, self.credentials())

    def build_list_tables_command(self) -> str:
        return self._command(
            self.client_tool, "--batch --skip-column-names",
            f"--execute={_quote('SHOW TABLES')}", self.credentials()
        )


class PostgresProfile(DriverProfile):
    """pg_dump / psql command lines. The password travels as PGPASSWORD."""

    driver = Driver.POSTGRES
    dump_tool = "pg_dump"
    client_tool = "psql"

    LIST_TABLES_QUERY = (
        "SELECT tablename FROM pg_tables "
        "WHERE schemaname = current_schema() ORDER BY tablename"
    )

    def env_prefix(self) -> str:
        if self.db_spec.password:
            return f"PGPASSWORD={_quote(self.db_spec.password)}"
        return ""

    def credentials(self) -> str:
        spec = self.db_spec
        parts = [f"--host={_quote(spec.host)}"]
        if spec.port:
            parts.append(f"--port={int(spec.port)}")
        if spec.user:
            parts.append(f"--username={_quote(spec.user)}")
        parts.append(f"--dbname={_quote(spec.database)}")
        return ' '.join(parts)

    def build_structure_command(self, tables: Iterable[str], output_file: Path) -> str:
        table_args = ' '.join(_quote(t) for t in tables)
        return self._command(
            self.dump_tool, self.credentials(), "--if-exists --clean --schema-only", table_args,
            f"> {_quote(output_file)}"
        )

    def build_data_command(self, table: str, output_file: Path) -> str:
        return self._command(
            self.dump_tool, self.credentials(), "--if-exists --clean",
            f"--table={_quote(table)}", f"> {_quote(output_file)}"
        )

    def import_prefix(self) -> str:
        # Runs without ON_ERROR_STOP: when the DROP of a referenced table is
        # refused, the existing table still receives the rows.
        return self._command(self.client_tool, "--quiet", self.credentials())

    def build_list_tables_command(self) -> str:
        return self._command(
            self.client_tool, self.credentials(), "--no-align --tuples-only",
            f"--command={_quote(self.LIST_TABLES_QUERY)}"
        )


PROFILES: dict[Driver, type[DriverProfile]] = {
    Driver.MYSQL: MySQLProfile,
    Driver.POSTGRES: PostgresProfile,
}


def get_profile(db_spec: DbSpec) -> DriverProfile:
    """Return the command profile for a database, or raise UnsupportedDriver."""
    profile_class = PROFILES.get(db_spec.driver)
    if profile_class is None:
        raise UnsupportedDriver(db_spec.driver.value)
    return profile_class(db_spec)


def build_command(
    purpose: DumpPurpose,
    db_spec: DbSpec,
    tables: Iterable[str],
    output_file: Path
) -> Optional[str]:
    """
    Build the dump command for a table or table group.

    STRUCTURE_ONLY dumps the schema of every listed table into one file and
    returns None when there is nothing to dump. FULL_TABLE expects exactly
    one table.
    """
    profile = get_profile(db_spec)
    tables = list(tables)

    if purpose == DumpPurpose.STRUCTURE_ONLY:
        if not tables:
            return None
        command = profile.build_structure_command(tables, output_file)
    else:
        if len(tables) != 1:
            raise ValueError(f"A full table dump takes exactly one table, got {len(tables)}")
        command = profile.build_data_command(tables[0], output_file)

    logging.debug(f"Built {purpose.value} command: {command}")
    return command
