from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto
from typing import Mapping, Sequence


@dataclass(frozen=True)
class Testcase:
    __test__ = False

    index: int
    title: str
    test_in: str
    test_out: str
    is_validator: bool = False


@dataclass(frozen=True)
class Command:
    """Program and arguments to run for every testcase. Never run through a shell."""

    program: str
    args: tuple[str, ...] = ()
    # Sorted (name, value) pairs laid over os.environ.
    env: tuple[tuple[str, str], ...] = ()
    working_dir: str | None = None

    @classmethod
    def from_argv(
        cls,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        working_dir: str | None = None,
    ) -> Command:
        if len(argv) < 1:
            raise ValueError("A command needs at least a program name")

        pairs = tuple(sorted((env or {}).items()))
        return cls(str(argv[0]), tuple(str(a) for a in argv[1:]), pairs, working_dir)

    def argv(self) -> list[str]:
        return [self.program, *self.args]


class CommandExit(Enum):
    OK = auto()
    ERROR = auto()
    TIMEOUT = auto()


@dataclass(frozen=True)
class TestResult:
    __test__ = False

    def is_success(self) -> bool:
        return False


@dataclass(frozen=True)
class Success(TestResult):
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failed(TestResult):
    stdout: bytes
    stderr: bytes
    exit: CommandExit


@dataclass(frozen=True)
class TimedOut(TestResult):
    stdout: bytes
    stderr: bytes


@dataclass(frozen=True)
class UnableToRun(TestResult):
    error_msg: str


@dataclass(frozen=True)
class Aborted(TestResult):
    error_msg: str


class SolutionError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class ExecutionError(SolutionError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class ProcessKillError(SolutionError):
    def __init__(self, pid: int, program: str):
        super().__init__(f"Could not terminate process {pid} ({program})")
        self.pid = pid
        self.program = program
