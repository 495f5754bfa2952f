from __future__ import annotations

import argparse
import logging
import sys

from caseforge.config import ConfigError, SuiteConfig, load_suite
from caseforge.solution import (
    Aborted,
    Command,
    Failed,
    ProcessKillError,
    Success,
    Testcase,
    TestResult,
    TimedOut,
    UnableToRun,
    lazy_run,
)

from .args import build_parser


def run_cli(argv: list[str] | None = None) -> int:
    parser = build_parser()
    try:
        args = parser.parse_args(argv)
        _configure_logging(args.verbose)

        match args.command:
            case "run":
                return cmd_run(args)
            case "list":
                return cmd_list(args)
            case _:
                return 2

    except (ConfigError, ValueError) as exc:
        print(str(exc), file=sys.stderr)
        return 2

    except ProcessKillError as exc:
        print(f"fatal: {exc}", file=sys.stderr)
        return 2

    except KeyboardInterrupt:
        return 130


def cmd_run(args: argparse.Namespace) -> int:
    suite = load_suite(args.config)
    command = _command_for(args, suite)
    timeout_s = args.timeout if args.timeout is not None else suite.timeout_s
    testcases = _select(args, suite)

    passed = 0
    ran = 0
    for testcase, result in lazy_run(testcases, command, timeout_s):
        ran += 1
        _print_result(testcase, result)
        if result.is_success():
            passed += 1
        elif args.fail_fast:
            break

    summary = f"{passed}/{len(testcases)} passed"
    if ran < len(testcases):
        summary += f", {len(testcases) - ran} not run"
    print(summary)

    return 0 if passed == len(testcases) else 1


def cmd_list(args: argparse.Namespace) -> int:
    suite = load_suite(args.config)
    for testcase in suite:
        print(_label(testcase))
    return 0


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _command_for(args: argparse.Namespace, suite: SuiteConfig) -> Command:
    override: list[str] = list(args.override)
    if override and override[0] == "--":
        override = override[1:]

    if len(override) == 0:
        return suite.command

    return Command.from_argv(
        override, env=dict(suite.command.env), working_dir=suite.command.working_dir
    )


def _select(args: argparse.Namespace, suite: SuiteConfig) -> list[Testcase]:
    if args.examples_only:
        return suite.examples()
    if args.validators_only:
        return suite.validators()
    return list(suite)


def _label(testcase: Testcase) -> str:
    label = f"#{testcase.index} {testcase.title}"
    if testcase.is_validator:
        label += " [validator]"
    return label


def _print_result(testcase: Testcase, result: TestResult) -> None:
    label = _label(testcase)

    match result:
        case Success():
            print(f"PASS {label}")
        case Failed(stdout=stdout, stderr=stderr, exit=exit):
            print(f"FAIL {label}, exit = {exit.name}")
            _print_block("expected", testcase.test_out)
            _print_block("actual", stdout)
            _print_block("stderr", stderr)
        case TimedOut(stdout=stdout, stderr=stderr):
            print(f"TIMEOUT {label}")
            _print_block("actual", stdout)
            _print_block("stderr", stderr)
        case UnableToRun(error_msg=error_msg):
            print(f"ERROR {label}: {error_msg}")
        case Aborted(error_msg=error_msg):
            print(f"ABORT {label}: {error_msg}")
        case _:
            raise AssertionError(f"Unknown result: {result!r}")


def _print_block(name: str, data: str | bytes) -> None:
    text = data.decode("utf-8", errors="replace") if isinstance(data, bytes) else data
    if not text:
        return

    print(f"  {name}:")
    for line in text.splitlines():
        print(f"    {line}")
