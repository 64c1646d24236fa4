#!/usr/bin/env python3
"""
syncdb - CLI Entry Point
========================
Dump a database one file per table, copy the files between machines and
load them into another database in parallel.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from .config import ConfigLoader
from .errors import SyncDbError
from .sync import SyncRunner, run_dump, run_import, staging_dir_for
from .utils import print_dry_run_info, setup_logging


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='syncdb - Per-table parallel database dump and import'
    )
    parser.add_argument(
        '-c', '--config',
        default='syncdb.yaml',
        help='Path to configuration file (default: syncdb.yaml)'
    )
    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable verbose output'
    )

    table_options = argparse.ArgumentParser(add_help=False)
    for name in ('skip-tables', 'structure-tables', 'tables'):
        table_options.add_argument(
            f'--{name}-key',
            help=f'Named table list to use as {name.replace("-", " ")}'
        )
        table_options.add_argument(
            f'--{name}-list',
            help=f'Comma separated {name.replace("-", " ")} (wildcards allowed)'
        )

    run_options = argparse.ArgumentParser(add_help=False)
    run_options.add_argument(
        '--dump-dir',
        help='Staging directory to use instead of the computed one'
    )
    run_options.add_argument(
        '--dry-run',
        action='store_true',
        help='Show what would be done without doing it'
    )

    import_options = argparse.ArgumentParser(add_help=False)
    import_options.add_argument(
        '--concurrency',
        type=int,
        help='Maximum number of concurrent imports (default: 30)'
    )
    import_options.add_argument(
        '--database',
        dest='database_key',
        help='Connection key of the target site (default: default)'
    )
    import_options.add_argument(
        '--no-fanout',
        dest='use_fanout',
        action='store_const',
        const=False,
        help='Do not use GNU parallel even when it is installed'
    )
    import_options.add_argument(
        '--cleanup',
        action='store_const',
        const=True,
        help='Remove staging directories after a successful sync'
    )

    commands = parser.add_subparsers(dest='command', required=True)

    dump = commands.add_parser(
        'dump', parents=[table_options, run_options], help='Dump a site into its staging directory'
    )
    dump.add_argument('site', help='Site alias to dump')

    load = commands.add_parser(
        'import', parents=[run_options, import_options], help='Import a staging directory into a site'
    )
    load.add_argument('site', help='Site alias to import into')

    sync = commands.add_parser(
        'sync', parents=[table_options, run_options, import_options],
        help='Dump the source site and import it into the target site'
    )
    sync.add_argument('source', help='Site alias to copy from')
    sync.add_argument('target', help='Site alias to copy into')

    return parser


def collect_overrides(args: argparse.Namespace) -> dict[str, Any]:
    """Option overrides given on the command line; None means not given."""
    overrides = {}
    for key in (
        'skip_tables_key', 'skip_tables_list', 'structure_tables_key',
        'structure_tables_list', 'tables_key', 'tables_list', 'dump_dir',
        'concurrency', 'database_key', 'use_fanout', 'cleanup',
    ):
        overrides[key] = getattr(args, key, None)
    return overrides


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    # Load configuration
    try:
        config = ConfigLoader(args.config)
    except FileNotFoundError:
        print(f"Error: Configuration file '{args.config}' not found")
        sys.exit(1)
    except yaml.YAMLError as e:
        print(f"Error: Invalid YAML in configuration file: {e}")
        sys.exit(1)

    # Setup logging
    log_settings = config.get_logging_settings()
    if args.verbose:
        log_settings['level'] = 'DEBUG'
    setup_logging(log_settings)

    try:
        options = config.build_options(collect_overrides(args))

        if args.dry_run:
            logging.info("DRY RUN MODE - Nothing will be dumped or imported")
            _dry_run(config, args, options)
            sys.exit(0)

        if args.command == 'dump':
            result = run_dump(config, args.site, options)
            logging.info("=" * 50)
            logging.info("DUMP COMPLETE")
            logging.info(f"Files: {len(result.files)}")
            logging.info(f"Staging directory: {result.staging_dir}")
        elif args.command == 'import':
            staging_dir = Path(options.dump_dir) if options.dump_dir else None
            report = run_import(config, args.site, options, staging_dir)
            _log_report(report)
            report.raise_for_status()
        else:
            dump, report = SyncRunner(config, args.source, args.target, options).run()
            logging.info(f"Dumped {len(dump.files)} file(s)")
            _log_report(report)
            report.raise_for_status()

    except SyncDbError as e:
        logging.error(f"Fatal error: {e}")
        sys.exit(1)


def _dry_run(config: ConfigLoader, args: argparse.Namespace, options) -> None:
    if args.command == 'dump':
        source, target = config.get_db_spec(args.site), None
    elif args.command == 'import':
        source, target = None, config.get_db_spec(args.site, options.database_key)
    else:
        source = config.get_db_spec(args.source)
        target = config.get_db_spec(args.target, options.database_key)
    staging_dir = staging_dir_for(source or target, options)
    print_dry_run_info(args.command, source, target, options, staging_dir)


def _log_report(report) -> None:
    logging.info("=" * 50)
    logging.info("IMPORT COMPLETE" if report.success else "IMPORT FAILED")
    logging.info(f"Strategy: {report.strategy or 'none'}")
    logging.info(f"Batches: {report.batches_dispatched}")
    if report.results:
        logging.info(f"Imported: {len(report.succeeded)}/{len(report.results)}")
    for result in report.failed:
        logging.warning(f"  - {result.job.table}: {result.error_detail}")


if __name__ == '__main__':
    main()
