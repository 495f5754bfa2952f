from __future__ import annotations

import contextlib
import logging
import os
import signal
import subprocess
from typing import Iterable, Iterator

from .classifier import classify
from .types import (
    Aborted,
    Command,
    CommandExit,
    ExecutionError,
    ProcessKillError,
    Testcase,
    TestResult,
    UnableToRun,
)

logger = logging.getLogger(__name__)

# Upper bound for collecting output once a timed-out process has been killed.
KILL_GRACE_S = 1.0

_POSIX = os.name == "posix"


def lazy_run(
    testcases: Iterable[Testcase], command: Command, timeout_s: float
) -> Iterator[tuple[Testcase, TestResult]]:
    """
    Run `command` against each testcase, one at a time, in input order.

    The returned iterator is single-pass and nothing is cached: a testcase's
    process is spawned only when its pair is requested. Stopping early leaves
    the remaining testcases unexecuted; calling lazy_run again runs everything
    again.

    A testcase hitting an internal I/O fault still yields a pair, with an
    Aborted result. ProcessKillError is not recovered and ends the iteration.
    """
    _check_timeout(timeout_s)
    return _lazy_run(testcases, command, timeout_s)


def _lazy_run(
    testcases: Iterable[Testcase], command: Command, timeout_s: float
) -> Iterator[tuple[Testcase, TestResult]]:
    for testcase in testcases:
        try:
            result = run_testcase(testcase, command, timeout_s)
        except ExecutionError as exc:
            logger.exception("Testcase #%d (%s) aborted", testcase.index, testcase.title)
            result = Aborted(str(exc))

        yield testcase, result


def run_testcase(testcase: Testcase, command: Command, timeout_s: float) -> TestResult:
    """Run `command` once with the testcase's input and classify what it did."""
    _check_timeout(timeout_s)

    try:
        proc = _spawn(command)
    except OSError as exc:
        logger.debug("Unable to spawn %s: %s", command.program, exc)
        return UnableToRun(f"{command.program}: {exc}")

    try:
        stdout, stderr, exit = _communicate(
            proc, testcase.test_in.encode("utf-8"), timeout_s
        )
    finally:
        _release(proc)

    result = classify(testcase.test_out, stdout, stderr, exit)
    logger.debug(
        "Testcase #%d (%s): %s, %s", testcase.index, testcase.title, exit.name, type(result).__name__
    )
    return result


def _check_timeout(timeout_s: float) -> None:
    if isinstance(timeout_s, bool) or not isinstance(timeout_s, (int, float)):
        raise TypeError(f"timeout must be a number of seconds, got {type(timeout_s)}")

    if timeout_s <= 0:
        raise ValueError(f"timeout must be positive, got {timeout_s}")


def _spawn(command: Command) -> subprocess.Popen[bytes]:
    env = {**os.environ, **dict(command.env)} if command.env else None
    logger.debug("Spawning %s", command.argv())

    # A new session lets a timeout kill the whole process group.
    return subprocess.Popen(
        command.argv(),
        stdin=subprocess.PIPE,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=command.working_dir or None,
        env=env,
        start_new_session=_POSIX,
    )


def _communicate(
    proc: subprocess.Popen[bytes], data: bytes, timeout_s: float
) -> tuple[bytes, bytes, CommandExit]:
    # communicate() writes stdin while draining stdout/stderr, so large inputs
    # cannot deadlock on full pipes. A child that exits without reading its
    # input is not a fault: the broken pipe is ignored there.
    try:
        stdout, stderr = proc.communicate(data, timeout=timeout_s)
    except subprocess.TimeoutExpired:
        logger.warning(
            "Process %d (%s) still running after %.3fs, killing it",
            proc.pid,
            proc.args[0],
            timeout_s,
        )
        _kill(proc)
        stdout, stderr = _drain_killed(proc)
        return stdout, stderr, CommandExit.TIMEOUT
    except OSError as exc:
        raise ExecutionError(f"{proc.args[0]}: {exc}") from exc

    exit = CommandExit.OK if proc.returncode == 0 else CommandExit.ERROR
    return stdout, stderr, exit


def _kill(proc: subprocess.Popen[bytes]) -> None:
    if _POSIX:
        try:
            os.killpg(proc.pid, signal.SIGKILL)
            return
        except ProcessLookupError:
            # Already gone.
            return
        except PermissionError:
            pass

    proc.kill()


def _drain_killed(proc: subprocess.Popen[bytes]) -> tuple[bytes, bytes]:
    try:
        return proc.communicate(timeout=KILL_GRACE_S)
    except subprocess.TimeoutExpired as exc:
        if proc.poll() is None:
            raise ProcessKillError(proc.pid, str(proc.args[0])) from exc

        # The process is dead but something it started still holds the pipes.
        logger.warning(
            "Process %d exited but its output pipes are still open, keeping partial output",
            proc.pid,
        )
        return exc.stdout or b"", exc.stderr or b""


def _release(proc: subprocess.Popen[bytes]) -> None:
    if proc.stdin is not None:
        with contextlib.suppress(BrokenPipeError):
            proc.stdin.close()

    for stream in (proc.stdout, proc.stderr):
        if stream is not None:
            stream.close()

    if proc.poll() is not None:
        return

    # Still running after an error or an interrupt: it must not outlive us.
    logger.debug("Killing process %d (%s) left running", proc.pid, proc.args[0])
    _kill(proc)
    try:
        proc.wait(timeout=KILL_GRACE_S)
    except subprocess.TimeoutExpired as exc:
        raise ProcessKillError(proc.pid, str(proc.args[0])) from exc
