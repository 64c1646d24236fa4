"""
External command execution for syncdb.

ProcessInvoker runs one shell command, locally or over ssh.
ConcurrentBatchInvoker runs a bounded set of commands at once.
"""

import logging
import shlex
import subprocess
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Optional

EXIT_TIMEOUT = 124
EXIT_NOT_FOUND = 127


@dataclass
class ProcessResult:
    """Exit status and captured output of one command."""
    command: str
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


@dataclass
class BatchCommand:
    """A command plus caller data returned untouched with its result."""
    command: str
    metadata: Any = None


@dataclass
class BatchResult:
    metadata: Any
    exit_code: int
    error_log: str = ""
    output: str = field(default="", repr=False)

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class ProcessInvoker:
    """Runs shell commands, wrapping them in ssh when a remote host is set."""

    SSH_OPTIONS = ('-o', 'BatchMode=yes')

    def __init__(
        self,
        remote_host: Optional[str] = None,
        remote_user: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.remote_host = remote_host
        self.remote_user = remote_user
        self.timeout = timeout

    @property
    def is_remote(self) -> bool:
        return bool(self.remote_host)

    @property
    def remote_target(self) -> str:
        if self.remote_user:
            return f"{self.remote_user}@{self.remote_host}"
        return self.remote_host or ""

    def wrap(self, command: str) -> str:
        """Return the command line actually handed to the local shell."""
        if not self.is_remote:
            return command
        ssh = ' '.join(('ssh',) + self.SSH_OPTIONS + (shlex.quote(self.remote_target),))
        return f"{ssh} {shlex.quote(command)}"

    def execute(self, command: str) -> ProcessResult:
        """Execute a command and capture its exit code and output."""
        shell_command = self.wrap(command)
        logging.debug(f"Executing: {shell_command}")
        try:
            completed = subprocess.run(
                shell_command,
                shell=True,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout
            )
        except subprocess.TimeoutExpired as e:
            logging.error(f"Command timed out after {self.timeout}s: {command}")
            return ProcessResult(
                command=command,
                exit_code=EXIT_TIMEOUT,
                stdout=_as_text(e.stdout),
                stderr=f"Timed out after {self.timeout}s"
            )
        except OSError as e:
            return ProcessResult(command=command, exit_code=EXIT_NOT_FOUND, stderr=str(e))

        return ProcessResult(
            command=command,
            exit_code=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or ""
        )


def _as_text(value) -> str:
    if isinstance(value, bytes):
        return value.decode('utf-8', errors='replace')
    return value or ""


class ConcurrentBatchInvoker:
    """Runs every command of a batch concurrently and waits for all of them."""

    def __init__(self, invoker: ProcessInvoker):
        self.invoker = invoker

    def invoke_batch(self, jobs: list[BatchCommand]) -> list[BatchResult]:
        """
        Run the batch and return one result per job, in input order.

        Returns only after every job has finished.
        """
        if not jobs:
            return []

        with ThreadPoolExecutor(max_workers=len(jobs)) as executor:
            return list(executor.map(self._run, jobs))

    def _run(self, job: BatchCommand) -> BatchResult:
        result = self.invoker.execute(job.command)
        return BatchResult(
            metadata=job.metadata,
            exit_code=result.exit_code,
            error_log=result.stderr,
            output=result.stdout
        )
