"""
Staging directory operations, local and over ssh.
"""

import logging
import shlex
import shutil
from pathlib import Path

from .errors import SyncDbError
from .invoker import ProcessInvoker


def is_importable(name: str) -> bool:
    """True for entries that are not hidden and carry an extension."""
    if not name or name.startswith('.'):
        return False
    return bool(Path(name).suffix)


class LocalFileSystem:
    """Directory lifecycle on the machine running syncdb."""

    def exists(self, path: Path) -> bool:
        return Path(path).is_dir()

    def remove_tree(self, path: Path) -> None:
        if Path(path).exists():
            logging.debug(f"Removing directory {path}")
            shutil.rmtree(path)

    def make_dirs(self, path: Path) -> None:
        Path(path).mkdir(parents=True, exist_ok=True)

    def list_files(self, path: Path) -> list[str]:
        """Names of the regular files directly inside path."""
        return [entry.name for entry in Path(path).iterdir() if entry.is_file()]


class RemoteFileSystem:
    """Directory lifecycle on a remote host, through a remote ProcessInvoker."""

    def __init__(self, invoker: ProcessInvoker):
        self.invoker = invoker

    def _run(self, command: str) -> str:
        result = self.invoker.execute(command)
        if not result.ok:
            raise SyncDbError(
                f"Remote command failed on {self.invoker.remote_target}: "
                f"{command}: {result.stderr.strip()}"
            )
        return result.stdout

    def remove_tree(self, path: Path) -> None:
        self._run(f"rm -rf {shlex.quote(str(path))}")

    def make_dirs(self, path: Path) -> None:
        self._run(f"mkdir -p {shlex.quote(str(path))}")
