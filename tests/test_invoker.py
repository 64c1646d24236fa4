"""
Unit tests for invoker.py
"""

import subprocess
import threading
import time
from unittest import mock

import pytest

from syncdb.invoker import (
    EXIT_TIMEOUT,
    BatchCommand,
    ConcurrentBatchInvoker,
    ProcessInvoker,
    ProcessResult,
)


class TestProcessInvoker:
    """Tests for ProcessInvoker class."""

    def test_local_command_not_wrapped(self):
        assert ProcessInvoker().wrap("ls /tmp") == "ls /tmp"

    def test_remote_command_wrapped_in_ssh(self):
        invoker = ProcessInvoker(remote_host="web1", remote_user="deploy")
        assert invoker.wrap("ls /tmp") == "ssh -o BatchMode=yes deploy@web1 'ls /tmp'"

    def test_remote_target_without_user(self):
        assert ProcessInvoker(remote_host="web1").remote_target == "web1"

    @mock.patch('syncdb.invoker.subprocess.run')
    def test_execute(self, mock_run):
        """Test output and exit code are captured."""
        mock_run.return_value = subprocess.CompletedProcess(
            args="echo hi", returncode=0, stdout="hi\n", stderr=""
        )
        result = ProcessInvoker().execute("echo hi")

        mock_run.assert_called_once_with(
            "echo hi", shell=True, capture_output=True, text=True,
            encoding="utf-8", errors="replace", timeout=None
        )
        assert result.ok
        assert result.stdout == "hi\n"

    @mock.patch('syncdb.invoker.subprocess.run')
    def test_execute_failure(self, mock_run):
        mock_run.return_value = subprocess.CompletedProcess(
            args="false", returncode=2, stdout=None, stderr="bad\n"
        )
        result = ProcessInvoker().execute("false")
        assert not result.ok
        assert result.exit_code == 2
        assert result.stdout == ""
        assert result.stderr == "bad\n"

    @mock.patch('syncdb.invoker.subprocess.run')
    def test_execute_timeout(self, mock_run):
        """Test a timeout becomes a failed result instead of an exception."""
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="sleep 10", timeout=1)
        result = ProcessInvoker(timeout=1).execute("sleep 10")
        assert result.exit_code == EXIT_TIMEOUT
        assert "Timed out" in result.stderr

    def test_execute_real_shell(self):
        """Test a real shell round trip."""
        result = ProcessInvoker().execute("echo out; echo err >&2; exit 3")
        assert result.exit_code == 3
        assert result.stdout.strip() == "out"
        assert result.stderr.strip() == "err"

    def test_execute_non_utf8_stderr(self):
        """Test undecodable bytes are replaced rather than raising."""
        result = ProcessInvoker().execute("printf '\\351\\n' >&2; exit 1")
        assert result.exit_code == 1
        assert result.stderr == "\ufffd\n"


class TestConcurrentBatchInvoker:
    """Tests for ConcurrentBatchInvoker class."""

    def test_empty_batch(self):
        assert ConcurrentBatchInvoker(mock.MagicMock()).invoke_batch([]) == []

    def test_results_in_input_order(self):
        invoker = mock.MagicMock()
        invoker.execute.side_effect = lambda command: ProcessResult(
            command=command,
            exit_code=0 if command != "b" else 1,
            stderr="failed b" if command == "b" else ""
        )
        jobs = [BatchCommand(command=c, metadata=c.upper()) for c in ("a", "b", "c")]

        results = ConcurrentBatchInvoker(invoker).invoke_batch(jobs)

        assert [r.metadata for r in results] == ["A", "B", "C"]
        assert [r.exit_code for r in results] == [0, 1, 0]
        assert results[1].error_log == "failed b"

    def test_jobs_run_concurrently(self):
        """Test every job of a batch is in flight at the same time."""
        barrier = threading.Barrier(3, timeout=5)

        def execute(command):
            barrier.wait()
            return ProcessResult(command=command, exit_code=0)

        invoker = mock.MagicMock()
        invoker.execute.side_effect = execute
        jobs = [BatchCommand(command=str(i)) for i in range(3)]

        results = ConcurrentBatchInvoker(invoker).invoke_batch(jobs)
        assert all(r.ok for r in results)

    def test_waits_for_all_jobs(self):
        finished = []

        def execute(command):
            time.sleep(0.05 if command == "slow" else 0)
            finished.append(command)
            return ProcessResult(command=command, exit_code=0)

        invoker = mock.MagicMock()
        invoker.execute.side_effect = execute
        ConcurrentBatchInvoker(invoker).invoke_batch(
            [BatchCommand(command="slow"), BatchCommand(command="fast")]
        )
        assert sorted(finished) == ["fast", "slow"]

    def test_non_utf8_output_does_not_raise(self):
        """Test a batch with undecodable stderr still yields a result per job."""
        jobs = [
            BatchCommand(command="printf ok", metadata="good"),
            BatchCommand(command="printf '\\351\\n' >&2; exit 1", metadata="bad"),
        ]
        results = ConcurrentBatchInvoker(ProcessInvoker()).invoke_batch(jobs)

        assert [r.metadata for r in results] == ["good", "bad"]
        assert results[0].ok
        assert results[1].exit_code == 1
        assert "\ufffd" in results[1].error_log
