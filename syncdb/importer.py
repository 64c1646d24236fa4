"""
Parallel import of a staging directory into the target database.

When GNU parallel is installed the whole directory is handed to it in a
single call. Otherwise the files are imported in consecutive batches of at
most `concurrency` concurrent imports; a failed import lets the rest of
its batch finish but no further batch is started.
"""

import logging
import os
import shlex
from pathlib import Path, PurePath
from typing import Optional

from .drivers import get_profile
from .errors import (
    FanOutImportFailed,
    InvalidConcurrency,
    MissingStagingDirectory,
    TableImportFailed,
)
from .filesystem import LocalFileSystem, is_importable
from .invoker import BatchCommand, ConcurrentBatchInvoker, ProcessInvoker
from .models import (
    STRUCTURE_FILE,
    DbSpec,
    ImportJob,
    JobResult,
    JobStatus,
    RunReport,
    SyncOptions,
)


def validate_concurrency(value) -> int:
    """Return value when it is a positive integer, else raise InvalidConcurrency."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidConcurrency(value)
    return value


def list_import_jobs(
    directory: PurePath,
    database_key: Optional[str] = None,
    filesystem: Optional[LocalFileSystem] = None
) -> list[ImportJob]:
    """
    Build one ImportJob per importable file of a staging directory.

    Hidden files and files without an extension are ignored. The structure
    file comes first, the remaining files follow in name order.
    """
    if isinstance(directory, str):
        directory = Path(directory)
    filesystem = filesystem or LocalFileSystem()
    names = sorted(name for name in filesystem.list_files(directory) if is_importable(name))
    if STRUCTURE_FILE in names:
        names.remove(STRUCTURE_FILE)
        names.insert(0, STRUCTURE_FILE)

    return [
        ImportJob(
            table=PurePath(name).stem,
            source_file=directory / name,
            database_key=database_key
        )
        for name in names
    ]


def partition_batches(jobs: list[ImportJob], limit: int) -> list[list[ImportJob]]:
    """Split jobs into consecutive batches of at most limit jobs, keeping order."""
    limit = validate_concurrency(limit)
    return [jobs[i:i + limit] for i in range(0, len(jobs), limit)]


class ImportStrategy:
    """Imports a list of jobs and reports the outcome."""

    name = ""

    def run(self, jobs: list[ImportJob]) -> RunReport:
        raise NotImplementedError


class FanOutStrategy(ImportStrategy):
    """Hands every file to GNU parallel in one call and trusts its report."""

    name = "fanout"
    TOOL = "parallel"

    def __init__(self, db_spec: DbSpec, invoker: ProcessInvoker, jobs_per_cpu: int = 2):
        self.db_spec = db_spec
        self.invoker = invoker
        self.jobs_per_cpu = jobs_per_cpu

    @property
    def job_slots(self) -> int:
        return max(1, self.jobs_per_cpu * (os.cpu_count() or 1))

    def build_command(self, jobs: list[ImportJob]) -> str:
        template = f"{get_profile(self.db_spec).import_prefix()} < {{}}"
        files = ' '.join(shlex.quote(str(job.source_file)) for job in jobs)
        return (
            f"{self.TOOL} --jobs {self.job_slots} --verbose "
            f"{shlex.quote(template)} ::: {files}"
        )

    def run(self, jobs: list[ImportJob]) -> RunReport:
        report = RunReport(strategy=self.name)
        if not jobs:
            return report

        command = self.build_command(jobs)
        logging.info(f"Importing {len(jobs)} file(s) with {self.TOOL} ({self.job_slots} jobs)")
        logging.debug(f"Fan-out command: {command}")
        report.batches_dispatched = 1
        outcome = self.invoker.execute(command)

        for line in outcome.stdout.splitlines():
            logging.info(f"  {line}")
        if not outcome.ok:
            detail = outcome.stderr.strip() or f"{self.TOOL} exited with {outcome.exit_code}"
            logging.error(f"  ✗ {self.TOOL}: {detail}")
            report.first_fatal_error = FanOutImportFailed(detail)
        return report


class ChunkedConcurrencyStrategy(ImportStrategy):
    """Imports jobs in batches of bounded size, stopping after a failed batch."""

    name = "chunked"
    DEFAULT_CONCURRENCY = 30

    def __init__(
        self,
        db_spec: DbSpec,
        batch_invoker: ConcurrentBatchInvoker,
        concurrency: int = DEFAULT_CONCURRENCY
    ):
        self.db_spec = db_spec
        self.batch_invoker = batch_invoker
        self.concurrency = validate_concurrency(concurrency)

    def run(self, jobs: list[ImportJob]) -> RunReport:
        report = RunReport(strategy=self.name)
        profile = get_profile(self.db_spec)
        batches = partition_batches(jobs, self.concurrency)

        for index, batch in enumerate(batches, start=1):
            logging.info(f"Importing batch {index}/{len(batches)} ({len(batch)} file(s))")
            commands = [
                BatchCommand(command=profile.build_import_command(job.source_file), metadata=job)
                for job in batch
            ]
            report.batches_dispatched += 1

            for outcome in self.batch_invoker.invoke_batch(commands):
                self._record(report, outcome.metadata, outcome.exit_code, outcome.error_log)

            if not report.success:
                skipped = len(jobs) - len(report.results)
                logging.error(
                    f"Stopping after batch {index}/{len(batches)}: "
                    f"{skipped} file(s) not imported"
                )
                break

        return report

    def _record(self, report: RunReport, job: ImportJob, exit_code: int, error_log: str) -> None:
        if exit_code == 0:
            report.results.append(JobResult(job=job, status=JobStatus.SUCCESS))
            logging.info(f"  ✓ {job.table}")
            if error_log.strip():
                logging.warning(f"  {job.table}: {error_log.strip()}")
            return

        detail = error_log.strip() or f"exit code {exit_code}"
        report.results.append(JobResult(job=job, status=JobStatus.FAILED, error_detail=detail))
        logging.error(f"  ✗ {job.table}: {detail}")
        if report.first_fatal_error is None:
            report.first_fatal_error = TableImportFailed(job.table, detail)


class ImportScheduler:
    """Chooses an import strategy and runs it over a staging directory."""

    def __init__(
        self,
        db_spec: DbSpec,
        invoker: ProcessInvoker,
        options: SyncOptions,
        batch_invoker: Optional[ConcurrentBatchInvoker] = None,
        filesystem: Optional[LocalFileSystem] = None
    ):
        validate_concurrency(options.concurrency)
        get_profile(db_spec)

        self.db_spec = db_spec
        self.invoker = invoker
        self.options = options
        self.batch_invoker = batch_invoker or ConcurrentBatchInvoker(invoker)
        self.filesystem = filesystem or LocalFileSystem()

    def fanout_available(self) -> bool:
        """Check whether the external parallel runner is installed."""
        available = self.invoker.execute(f"command -v {FanOutStrategy.TOOL}").ok
        logging.debug(f"{FanOutStrategy.TOOL} available: {available}")
        return available

    def select_strategy(self) -> ImportStrategy:
        if self.options.use_fanout and self.fanout_available():
            return FanOutStrategy(self.db_spec, self.invoker, self.options.jobs_per_cpu)
        return ChunkedConcurrencyStrategy(
            self.db_spec, self.batch_invoker, self.options.concurrency
        )

    def run(self, staging_dir: PurePath) -> RunReport:
        """
        Import every dump file of staging_dir.

        Raises:
            MissingStagingDirectory: staging_dir does not exist.
        """
        if not self.filesystem.exists(staging_dir):
            raise MissingStagingDirectory(staging_dir)

        jobs = list_import_jobs(staging_dir, self.options.database_key, self.filesystem)
        if not jobs:
            logging.info(f"No dump files found in {staging_dir}")
            return RunReport()

        strategy = self.select_strategy()
        logging.info(
            f"Importing {len(jobs)} file(s) from {staging_dir} into "
            f"'{self.db_spec.database}' using the {strategy.name} strategy"
        )
        report = strategy.run(jobs)

        if report.success:
            logging.info(f"Import into '{self.db_spec.database}' complete")
        else:
            logging.error(f"Import into '{self.db_spec.database}' failed: {report.first_fatal_error}")
        return report
