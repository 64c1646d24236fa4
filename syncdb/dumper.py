"""
Per-table dump orchestration for syncdb.

A dump run prepares an empty staging directory, dumps the schema of all
structure-only tables into one file, then dumps every data table into its
own '<table>.sql'. The first failing command stops the run.
"""

import logging
from pathlib import PurePath
from typing import Union

from .classifier import classify_tables
from .drivers import build_command, get_profile
from .errors import StructureDumpFailed, TableDumpFailed
from .filesystem import LocalFileSystem, RemoteFileSystem
from .invoker import ProcessInvoker
from .models import (
    DUMP_EXTENSION,
    STRUCTURE_FILE,
    DbSpec,
    DumpPurpose,
    DumpResult,
    DumpTarget,
    SyncOptions,
    TableSelection,
)

FileSystem = Union[LocalFileSystem, RemoteFileSystem]


class DumpDirector:
    """Drives structure and per-table dumps into a staging directory."""

    def __init__(
        self,
        db_spec: DbSpec,
        invoker: ProcessInvoker,
        filesystem: FileSystem,
        staging_dir: PurePath
    ):
        self.db_spec = db_spec
        self.invoker = invoker
        self.filesystem = filesystem
        self.staging_dir = staging_dir

    def plan(
        self,
        selection: TableSelection
    ) -> list[tuple[DumpPurpose, DumpTarget, str]]:
        """Return (purpose, target, command) for every dump, in dump order."""
        steps = []
        if selection.structure:
            target = DumpTarget(
                table=PurePath(STRUCTURE_FILE).stem,
                destination_file=self.staging_dir / STRUCTURE_FILE
            )
            command = build_command(
                DumpPurpose.STRUCTURE_ONLY, self.db_spec,
                selection.structure, target.destination_file
            )
            steps.append((DumpPurpose.STRUCTURE_ONLY, target, command))

        for table in selection.data:
            target = DumpTarget(
                table=table,
                destination_file=self.staging_dir / f"{table}.{DUMP_EXTENSION}"
            )
            command = build_command(
                DumpPurpose.FULL_TABLE, self.db_spec, [table], target.destination_file
            )
            steps.append((DumpPurpose.FULL_TABLE, target, command))
        return steps

    def select_tables(self, options: SyncOptions, all_tables: list[str]) -> TableSelection:
        return classify_tables(
            all_tables,
            skip=options.skip_tables,
            structure=options.structure_tables,
            tables=options.tables
        )

    def run(self, options: SyncOptions, all_tables: list[str]) -> DumpResult:
        """
        Dump the selected tables of the database.

        Args:
            options: Table lists for the run.
            all_tables: Every table the database reports, in server order.

        Returns:
            DumpResult listing the produced files in dump order.

        Raises:
            UnsupportedDriver: before the staging directory is touched.
            StructureDumpFailed: the structure dump exited non-zero.
            TableDumpFailed: a table dump exited non-zero; later tables are
                not attempted.
        """
        get_profile(self.db_spec)

        self._prepare_staging_dir()
        selection = self.select_tables(options, all_tables)
        result = DumpResult(staging_dir=self.staging_dir, selection=selection)

        if selection.is_empty:
            logging.info(f"No tables to dump from '{self.db_spec.database}'")
            return result

        logging.info(
            f"Dumping {len(selection.data)} table(s) and the structure of "
            f"{len(selection.structure)} table(s) from '{self.db_spec.database}' "
            f"into {self.staging_dir}"
        )

        for purpose, target, command in self.plan(selection):
            self._execute(purpose, target, command)
            result.files.append(target.destination_file)

        logging.info(f"Dumped {len(result.files)} file(s) into {self.staging_dir}")
        return result

    def _prepare_staging_dir(self) -> None:
        """Delete any previous dump and recreate the directory empty."""
        self.filesystem.remove_tree(self.staging_dir)
        self.filesystem.make_dirs(self.staging_dir)
        logging.debug(f"Prepared staging directory {self.staging_dir}")

    def _execute(self, purpose: DumpPurpose, target: DumpTarget, command: str) -> None:
        logging.info(f"Dumping '{target.table}' with command: {command}")
        outcome = self.invoker.execute(command)

        if outcome.ok:
            logging.info(f"  ✓ {target.table}: {target.destination_file}")
            return

        detail = outcome.stderr.strip()
        logging.error(f"  ✗ {target.table}: {detail}")
        if purpose == DumpPurpose.STRUCTURE_ONLY:
            raise StructureDumpFailed(detail)
        raise TableDumpFailed(target.table, detail)
