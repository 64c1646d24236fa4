"""
Entry points for dump, import and full sync runs.

Each run receives its configuration and options explicitly; nothing here
reads global state.
"""

import logging
from pathlib import PurePath
from typing import Optional

from .config import ConfigLoader
from .connection import list_all_tables
from .drivers import get_profile
from .dumper import DumpDirector
from .errors import ConfigurationError
from .filesystem import LocalFileSystem, RemoteFileSystem
from .importer import ImportScheduler, validate_concurrency
from .invoker import ProcessInvoker
from .models import DbSpec, DumpResult, RunReport, SyncOptions
from .paths import discover_remote_temp_dir, resolve_dump_path
from .transfer import Transferer


def invoker_for(db_spec: DbSpec) -> ProcessInvoker:
    return ProcessInvoker(remote_host=db_spec.remote_host, remote_user=db_spec.remote_user)


def staging_dir_for(db_spec: DbSpec, options: SyncOptions) -> PurePath:
    """Resolve the staging directory of a site, asking the remote host if needed."""
    invoker = invoker_for(db_spec)
    return resolve_dump_path(
        db_spec,
        user_dir=options.dump_dir,
        discover=lambda: discover_remote_temp_dir(invoker)
    )


def run_dump(config: ConfigLoader, alias: str, options: SyncOptions) -> DumpResult:
    """Dump a site's database into its staging directory."""
    db_spec = config.get_db_spec(alias)
    get_profile(db_spec)

    invoker = invoker_for(db_spec)
    filesystem = RemoteFileSystem(invoker) if db_spec.is_remote else LocalFileSystem()
    staging_dir = staging_dir_for(db_spec, options)

    all_tables = list_all_tables(db_spec, invoker)
    return DumpDirector(db_spec, invoker, filesystem, staging_dir).run(options, all_tables)


def run_import(
    config: ConfigLoader,
    alias: str,
    options: SyncOptions,
    staging_dir: Optional[PurePath] = None
) -> RunReport:
    """Import a staging directory into a local site's database."""
    db_spec = config.get_db_spec(alias, options.database_key)
    if db_spec.is_remote:
        raise ConfigurationError(f"Import target '{alias}' must be a local site")

    invoker = invoker_for(db_spec)
    scheduler = ImportScheduler(db_spec, invoker, options)
    return scheduler.run(staging_dir or staging_dir_for(db_spec, options))


class SyncRunner:
    """Dumps a source site, copies the dump here and imports it into a target site."""

    def __init__(
        self,
        config: ConfigLoader,
        source_alias: str,
        target_alias: str,
        options: SyncOptions
    ):
        self.config = config
        self.source_alias = source_alias
        self.target_alias = target_alias
        self.options = options

    def run(self) -> tuple[DumpResult, RunReport]:
        options = self.options
        validate_concurrency(options.concurrency)

        source = self.config.get_db_spec(self.source_alias)
        target = self.config.get_db_spec(self.target_alias, options.database_key)
        get_profile(source)
        get_profile(target)
        if target.is_remote:
            raise ConfigurationError(f"Sync target '{self.target_alias}' must be a local site")

        local_invoker = ProcessInvoker()
        local_fs = LocalFileSystem()
        scheduler = ImportScheduler(target, local_invoker, options)

        source_invoker = invoker_for(source)
        source_fs = RemoteFileSystem(source_invoker) if source.is_remote else local_fs
        source_dir = staging_dir_for(source, options)
        target_dir = staging_dir_for(target, options) if source.is_remote else source_dir

        logging.info(
            f"Syncing '{self.source_alias}' ({source.database}) to "
            f"'{self.target_alias}' ({target.database})"
        )

        all_tables = list_all_tables(source, source_invoker)
        dump = DumpDirector(source, source_invoker, source_fs, source_dir).run(options, all_tables)

        if source.is_remote:
            local_fs.remove_tree(target_dir)
            local_fs.make_dirs(target_dir)
            Transferer(local_invoker).pull(source, source_dir, target_dir)

        report = scheduler.run(target_dir)

        if report.success and options.cleanup:
            logging.info("Removing staging directories")
            local_fs.remove_tree(target_dir)
            if source.is_remote:
                source_fs.remove_tree(source_dir)

        return dump, report
