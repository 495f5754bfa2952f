from __future__ import annotations

import argparse


def _positive_float(value: str) -> float:
    try:
        seconds = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {value!r}")

    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value!r}")

    return seconds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="caseforge")

    parser.add_argument(
        "--config",
        default="caseforge.yml",
        help="Path to suite file",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log every spawned process to stderr",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        required=True,
    )

    # run
    run = subparsers.add_parser("run", help="Run the testcases")
    run.add_argument(
        "--timeout",
        type=_positive_float,
        default=None,
        help="Seconds allowed per testcase (overrides the suite file)",
    )
    run.add_argument(
        "--fail-fast",
        action="store_true",
        help="Stop at the first testcase that does not pass",
    )
    only = run.add_mutually_exclusive_group()
    only.add_argument(
        "--examples-only",
        action="store_true",
        help="Skip validator testcases",
    )
    only.add_argument(
        "--validators-only",
        action="store_true",
        help="Run only validator testcases",
    )
    run.add_argument(
        "override",
        nargs=argparse.REMAINDER,
        metavar="COMMAND",
        help="Program and arguments to run instead of the suite's command (after --)",
    )

    # list
    subparsers.add_parser("list", help="List testcases")

    return parser
