from .classifier import classify, normalize, outputs_match
from .runner import lazy_run, run_testcase
from .types import (
    Aborted,
    Command,
    CommandExit,
    ExecutionError,
    Failed,
    ProcessKillError,
    SolutionError,
    Success,
    Testcase,
    TestResult,
    TimedOut,
    UnableToRun,
)

__all__ = [
    "classify",
    "normalize",
    "outputs_match",
    "lazy_run",
    "run_testcase",
    "Aborted",
    "Command",
    "CommandExit",
    "ExecutionError",
    "Failed",
    "ProcessKillError",
    "SolutionError",
    "Success",
    "Testcase",
    "TestResult",
    "TimedOut",
    "UnableToRun",
]
