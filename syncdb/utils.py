"""
Utility functions for syncdb.
"""

import logging
import sys
from pathlib import Path, PurePath
from typing import Any, Optional

from .models import DbSpec, SyncOptions


def setup_logging(log_settings: dict[str, Any]) -> None:
    """Setup logging configuration."""
    log_level = getattr(logging, log_settings.get('level', 'INFO').upper())
    log_file = log_settings.get('file')

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers
    )
    logging.getLogger().setLevel(log_level)


def format_options_display(options: SyncOptions) -> list[str]:
    """Format options for display in dry-run mode."""
    parts = []
    if options.tables is not None:
        parts.append(f"tables={','.join(options.tables) or '(none)'}")
    if options.structure_tables:
        parts.append(f"structure={','.join(options.structure_tables)}")
    if options.skip_tables:
        parts.append(f"skip={','.join(options.skip_tables)}")
    parts.append(f"concurrency={options.concurrency}")
    if not options.use_fanout:
        parts.append("fanout=off")
    if options.database_key:
        parts.append(f"database={options.database_key}")
    return parts


def describe_site(db_spec: DbSpec) -> str:
    location = f"{db_spec.remote_host}:" if db_spec.is_remote else ""
    return f"{location}{db_spec.driver.value}://{db_spec.host}/{db_spec.database}"


def print_dry_run_info(
    action: str,
    source: Optional[DbSpec],
    target: Optional[DbSpec],
    options: SyncOptions,
    staging_dir: PurePath
) -> None:
    """Log what a run would do in dry-run mode."""
    logging.info(f"Would {action}:")
    if source is not None:
        logging.info(f"  Source: {describe_site(source)}")
    if target is not None:
        logging.info(f"  Target: {describe_site(target)}")
    logging.info(f"  Staging directory: {staging_dir}")
    logging.info(f"  Options: {', '.join(format_options_display(options))}")
