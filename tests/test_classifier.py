from __future__ import annotations

import pytest

from caseforge.solution.classifier import classify, normalize, outputs_match
from caseforge.solution.types import (
    Aborted,
    CommandExit,
    Failed,
    Success,
    TimedOut,
    UnableToRun,
)


# -------------------------
# Normalization
# -------------------------


@pytest.mark.parametrize(
    "expected, actual",
    [
        ("hey", b"hey\n"),
        ("hey\n", b"hey"),
        ("a\nb", b"a\r\nb\r\n"),
        ("a  \nb", b"a\nb   \n\n\n"),
        ("", b"\n"),
    ],
)
def test_trailing_whitespace_and_line_endings_are_ignored(expected, actual) -> None:
    assert outputs_match(expected, actual)


@pytest.mark.parametrize(
    "expected, actual",
    [
        ("hey", b"Hey"),
        ("a b", b"a  b"),
        ("a\nb", b"a\n\nb"),
        ("  indented", b"indented"),
        ("hey", b""),
    ],
)
def test_content_differences_are_not_ignored(expected, actual) -> None:
    assert not outputs_match(expected, actual)


def test_normalize_accepts_text_and_bytes() -> None:
    assert normalize("héllo \r\n") == normalize("héllo".encode("utf-8")) == "héllo".encode("utf-8")


# -------------------------
# Classification
# -------------------------


def test_matching_output_with_ok_exit_is_success() -> None:
    result = classify("heby", b"heby\n", b"", CommandExit.OK)

    assert result == Success()
    assert result.is_success()


def test_mismatch_is_failed_and_keeps_streams() -> None:
    result = classify("heXy", b"heby", b"warning\n", CommandExit.OK)

    assert isinstance(result, Failed)
    assert not result.is_success()
    assert result.stdout == b"heby"
    assert result.stderr == b"warning\n"
    assert result.exit is CommandExit.OK


def test_mismatch_with_error_exit_is_failed() -> None:
    result = classify("42", b"", b"Traceback ...", CommandExit.ERROR)

    assert isinstance(result, Failed)
    assert result.exit is CommandExit.ERROR


def test_matching_output_with_error_exit_is_success() -> None:
    # Output decides, the exit status is only informational.
    assert classify("42", b"42\n", b"", CommandExit.ERROR) == Success()


def test_timeout_wins_over_matching_output() -> None:
    result = classify("hey", b"hey", b"", CommandExit.TIMEOUT)

    assert result == TimedOut(b"hey", b"")
    assert not result.is_success()


def test_only_success_is_success() -> None:
    assert not UnableToRun("nope: not found").is_success()
    assert not Aborted("broken pipe").is_success()
    assert not TimedOut(b"", b"").is_success()


def test_results_are_immutable() -> None:
    result = classify("a", b"b", b"", CommandExit.OK)

    with pytest.raises(AttributeError):
        result.stdout = b"a"  # type: ignore[misc]
