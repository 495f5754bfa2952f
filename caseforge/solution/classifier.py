from __future__ import annotations

from .types import CommandExit, Failed, Success, TestResult, TimedOut


def normalize(output: str | bytes) -> bytes:
    """
    Unify line endings, drop trailing whitespace on every line and
    trailing blank lines. Everything else is left byte for byte.
    """
    data = output.encode("utf-8") if isinstance(output, str) else bytes(output)
    data = data.replace(b"\r\n", b"\n").replace(b"\r", b"\n")
    lines = [line.rstrip() for line in data.split(b"\n")]
    return b"\n".join(lines).rstrip(b"\n")


def outputs_match(expected: str | bytes, actual: str | bytes) -> bool:
    return normalize(expected) == normalize(actual)


def classify(
    expected: str | bytes, stdout: bytes, stderr: bytes, exit: CommandExit
) -> TestResult:
    if exit is CommandExit.TIMEOUT:
        return TimedOut(stdout, stderr)

    # Output decides; a non-zero exit with the right output still passes.
    if outputs_match(expected, stdout):
        return Success()

    return Failed(stdout, stderr, exit)
