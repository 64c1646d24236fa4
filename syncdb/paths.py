"""
Staging directory resolution.

The same site and options always resolve to the same directory, so both
ends of a sync can compute it independently.
"""

import logging
import tempfile
from pathlib import Path, PurePosixPath
from typing import Callable, Optional

from .errors import SyncDbError
from .invoker import ProcessInvoker
from .models import DbSpec

STAGING_SUBDIR = "syncdb"
FALLBACK_TEMP_ROOT = "/tmp"

TEMP_DIR_COMMAND = "python3 -c 'import tempfile; print(tempfile.gettempdir())'"


def staging_base_name(db_spec: DbSpec) -> str:
    if db_spec.is_remote:
        return f"{db_spec.remote_host}_{db_spec.database}"
    return db_spec.database


def discover_remote_temp_dir(invoker: ProcessInvoker) -> Optional[str]:
    """Ask the remote host for its temporary directory; None on any failure."""
    result = invoker.execute(TEMP_DIR_COMMAND)
    if not result.ok:
        logging.warning(
            f"Remote temp dir discovery failed on {invoker.remote_target}: "
            f"{result.stderr.strip()}"
        )
        return None
    lines = [line.strip() for line in result.stdout.splitlines() if line.strip()]
    return lines[-1] if lines else None


def resolve_dump_path(
    db_spec: DbSpec,
    user_dir: Optional[str] = None,
    discover: Optional[Callable[[], Optional[str]]] = None
) -> PurePosixPath:
    """
    Compute the staging directory of a site.

    A user supplied directory is returned as is. Remote sites use the
    temporary directory reported by discover(), or /tmp when discovery
    yields nothing. Local sites use this machine's temporary directory.
    """
    if user_dir:
        return PurePosixPath(user_dir) if db_spec.is_remote else Path(user_dir)

    base_name = staging_base_name(db_spec)

    if not db_spec.is_remote:
        return Path(tempfile.gettempdir()) / STAGING_SUBDIR / base_name

    temp_root = None
    if discover is not None:
        try:
            temp_root = discover()
        except SyncDbError as e:
            logging.warning(f"Remote temp dir discovery failed: {e}")
    if not temp_root:
        temp_root = FALLBACK_TEMP_ROOT
        logging.debug(f"Using fallback staging root {temp_root} for {db_spec.remote_host}")

    return PurePosixPath(temp_root) / STAGING_SUBDIR / base_name
