from dataclasses import dataclass

from caseforge.solution.types import Command, Testcase


@dataclass
class SuiteConfig:
    command: Command
    timeout_s: float
    testcases: list[Testcase]

    def __iter__(self):
        yield from self.testcases

    def __len__(self):
        return len(self.testcases)

    def examples(self) -> list[Testcase]:
        return [t for t in self.testcases if not t.is_validator]

    def validators(self) -> list[Testcase]:
        return [t for t in self.testcases if t.is_validator]

    def get_testcase(self, index: int, is_validator: bool = False) -> Testcase:
        for testcase in self.testcases:
            if testcase.index == index and testcase.is_validator == is_validator:
                return testcase

        raise KeyError(index)


class ConfigError(Exception):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)


class UnsupportedConfigFormatError(ConfigError):
    def __init__(self, *args: object) -> None:
        super().__init__(*args)
