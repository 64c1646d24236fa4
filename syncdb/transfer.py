"""
Copying a staging directory between machines with rsync.
"""

import logging
import shlex
from pathlib import PurePath

from .errors import TransferFailed
from .invoker import ProcessInvoker
from .models import DbSpec


class Transferer:
    """Pulls a staging directory from a (possibly remote) site."""

    RSYNC_FLAGS = "-az --delete"

    def __init__(self, invoker: ProcessInvoker):
        self.invoker = invoker

    def build_command(self, db_spec: DbSpec, source_dir: PurePath, dest_dir: PurePath) -> str:
        source = f"{str(source_dir).rstrip('/')}/"
        if db_spec.is_remote:
            host = db_spec.remote_host
            if db_spec.remote_user:
                host = f"{db_spec.remote_user}@{host}"
            source = f"{host}:{source}"
        dest = f"{str(dest_dir).rstrip('/')}/"
        return f"rsync {self.RSYNC_FLAGS} {shlex.quote(source)} {shlex.quote(dest)}"

    def pull(self, db_spec: DbSpec, source_dir: PurePath, dest_dir: PurePath) -> None:
        """Mirror source_dir of the site into the local dest_dir."""
        command = self.build_command(db_spec, source_dir, dest_dir)
        logging.info(f"Transferring {source_dir} to {dest_dir}")
        result = self.invoker.execute(command)
        if not result.ok:
            raise TransferFailed(result.stderr.strip() or f"rsync exited with {result.exit_code}")
        logging.info("Transfer complete")
